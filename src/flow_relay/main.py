"""
Flow Relay - FastAPI Application

Langflow run API 중계 서비스.
"""

import time
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flow_relay.api import create_relay_router
from flow_relay.config import get_settings, setup_logging
from flow_relay.models import ErrorResponse, HealthResponse
from flow_relay.service import FlowClient

# 설정 로드
settings = get_settings()

# 로깅 설정
logger = setup_logging(settings)

# 서비스 시작 시간 (uptime 계산용)
_start_time = time.time()

# 프로세스 전역 클라이언트 (설정은 기동 후 읽기 전용)
_flow_client = FlowClient(
    base_url=settings.base_url,
    token=settings.application_token,
    request_timeout=settings.request_timeout,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 라이프사이클 관리"""
    logger.info("Flow Relay starting...")
    logger.info(f"  Version: {settings.version}")
    logger.info(f"  Environment: {settings.environment}")
    logger.info(f"  Flow engine: {settings.base_url}")
    logger.info(f"  Flow: {settings.flow_id} (langflow={settings.langflow_id})")
    logger.info(f"  Tweaks: {len(settings.tweaks)} components")

    yield

    logger.info("Flow Relay shutting down...")
    active = len(_flow_client.active_subscriptions)
    await _flow_client.close()
    if active > 0:
        logger.info(f"  Cancelled {active} active streams")


app = FastAPI(
    title="Flow Relay",
    description="Langflow run API relay",
    version=settings.version,
    lifespan=lifespan,
    # 프로덕션에서는 OpenAPI 문서 비활성화
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS 설정
if settings.is_production:
    _allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
else:
    _allowed_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Health Endpoint ===

@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """헬스 체크 엔드포인트"""
    return HealthResponse(
        status="healthy",
        version=settings.version,
        uptime_seconds=int(time.time() - _start_time),
        environment=settings.environment,
    )


# === API Routers ===

app.include_router(
    create_relay_router(
        client=_flow_client,
        flow_id=settings.flow_id,
        langflow_id=settings.langflow_id,
        tweaks=settings.tweaks,
    ),
    tags=["flow"],
)


# === Exception Handlers ===

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 바디 검증 실패"""
    logger.warning(f"Invalid request on {request.url.path}: {exc.errors()}")
    body = ErrorResponse(
        error="Invalid request body",
        code="VALIDATION_ERROR",
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 예외 핸들러"""
    logger.exception(f"Unhandled exception: {exc}")

    # 프로덕션에서는 내부 정보 노출 방지
    error_message = (
        "Internal server error"
        if settings.is_production
        else str(exc)
    )

    body = ErrorResponse(error=error_message, code="INTERNAL_ERROR")
    return JSONResponse(status_code=500, content=body.model_dump())


def run() -> None:
    """uvicorn 실행 (flow-relay 콘솔 스크립트)"""
    import uvicorn

    uvicorn.run(
        "flow_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        access_log=not settings.is_production,
    )


if __name__ == "__main__":
    run()
