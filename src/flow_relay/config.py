"""
Flow Relay - Configuration

환경변수 기반 설정 관리.
"""

import json
import os
import logging
import sys
from functools import lru_cache
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from flow_relay.constants import DEFAULT_TWEAKS

load_dotenv()

_config_logger = logging.getLogger(__name__)


def _safe_int(value: str, default: int, name: str) -> int:
    """환경변수를 안전하게 int로 변환

    Args:
        value: 변환할 문자열
        default: 변환 실패 시 기본값
        name: 환경변수 이름 (로깅용)

    Returns:
        변환된 int 값 또는 기본값
    """
    try:
        return int(value)
    except (ValueError, TypeError):
        _config_logger.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default


def _safe_float(value: str, default: float, name: str) -> float:
    """환경변수를 안전하게 float로 변환"""
    try:
        return float(value)
    except (ValueError, TypeError):
        _config_logger.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default


def _load_tweaks(value: Optional[str]) -> dict:
    """FLOW_TWEAKS(JSON 객체)를 읽어 tweaks 맵으로 변환

    미설정이거나 JSON 객체가 아니면 기본 tweaks를 사용합니다.
    """
    if not value:
        return dict(DEFAULT_TWEAKS)
    try:
        tweaks = json.loads(value)
    except json.JSONDecodeError as e:
        _config_logger.warning(f"Invalid FLOW_TWEAKS JSON ({e}), using default tweaks")
        return dict(DEFAULT_TWEAKS)
    if not isinstance(tweaks, dict):
        _config_logger.warning("FLOW_TWEAKS must be a JSON object, using default tweaks")
        return dict(DEFAULT_TWEAKS)
    return tweaks


@dataclass
class Settings:
    """애플리케이션 설정"""

    # 서비스 정보
    service_name: str = "flow-relay"
    version: str = "0.1.0"
    environment: str = "development"  # development, staging, production

    # 서버 설정
    host: str = "0.0.0.0"
    port: int = 3000

    # Flow engine (Langflow) 설정
    base_url: str = ""
    application_token: str = ""
    flow_id: str = ""
    langflow_id: str = ""
    request_timeout: float = 0.0  # 초기 run 요청 전체 타임아웃 (0이면 없음)
    tweaks: dict = field(default_factory=lambda: dict(DEFAULT_TWEAKS))

    # 로깅
    log_level: str = "INFO"
    log_format: str = "json"  # json, text

    @classmethod
    def from_env(cls) -> "Settings":
        """환경변수에서 설정 로드"""
        settings = cls(
            service_name=os.getenv("SERVICE_NAME", cls.service_name),
            version=os.getenv("SERVICE_VERSION", cls.version),
            environment=os.getenv("ENVIRONMENT", cls.environment),
            host=os.getenv("HOST", cls.host),
            port=_safe_int(os.getenv("PORT", str(cls.port)), cls.port, "PORT"),
            base_url=os.getenv("BASE_URL", ""),
            application_token=os.getenv("APPLICATION_TOKEN", ""),
            flow_id=os.getenv("FLOW_ID", ""),
            langflow_id=os.getenv("LANGFLOW_ID", ""),
            request_timeout=_safe_float(
                os.getenv("FLOW_REQUEST_TIMEOUT", str(cls.request_timeout)),
                cls.request_timeout,
                "FLOW_REQUEST_TIMEOUT",
            ),
            tweaks=_load_tweaks(os.getenv("FLOW_TWEAKS")),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            log_format=os.getenv("LOG_FORMAT", cls.log_format),
        )

        settings.validate()
        return settings

    def validate(self) -> None:
        """필수 설정값 검증. 누락 시 즉시 에러."""
        missing = []
        if not self.base_url:
            missing.append("BASE_URL")
        if not self.application_token:
            missing.append("APPLICATION_TOKEN")
        if not self.flow_id:
            missing.append("FLOW_ID")
        if not self.langflow_id:
            missing.append("LANGFLOW_ID")
        if missing:
            raise RuntimeError(
                f"필수 환경변수 누락: {', '.join(missing)}. "
                f".env 파일 또는 환경변수를 확인하세요."
            )
        if self.request_timeout < 0:
            self.request_timeout = 0.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """설정 싱글톤 반환"""
    return Settings.from_env()


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """로깅 설정

    프로덕션: JSON 포맷 (구조화된 로그)
    개발: 텍스트 포맷 (가독성)
    """
    if settings is None:
        settings = get_settings()

    # 기존 핸들러 제거
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json" and settings.is_production:

        class JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                log_data = {
                    "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                    "service": settings.service_name,
                    "environment": settings.environment,
                }

                if record.exc_info:
                    log_data["exception"] = self.formatException(record.exc_info)

                return json.dumps(log_data, ensure_ascii=False)

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # uvicorn 로거 레벨 조정
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    logger = logging.getLogger(settings.service_name)
    logger.setLevel(log_level)

    return logger
