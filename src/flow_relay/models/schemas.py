"""
Pydantic 모델 - Request/Response 스키마
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from flow_relay.constants import (
    DEFAULT_INPUT_TYPE,
    DEFAULT_OUTPUT_TYPE,
    STREAM_IN_PROGRESS_MESSAGE,
)


# === Request Models ===

class RunFlowRequest(BaseModel):
    """flow 실행 요청 (camelCase 필드)"""
    model_config = ConfigDict(populate_by_name=True)

    input_value: str = Field(..., alias="inputValue", description="flow에 전달할 입력")
    input_type: str = Field(DEFAULT_INPUT_TYPE, alias="inputType", description="입력 타입")
    output_type: str = Field(DEFAULT_OUTPUT_TYPE, alias="outputType", description="출력 타입")
    stream: bool = Field(False, description="스트리밍 여부")


# === Response Models ===

class RunFlowOutputResponse(BaseModel):
    """비스트림 실행 결과"""
    success: bool = True
    output: str


class StreamAckResponse(BaseModel):
    """스트림 시작 확인 응답"""
    success: bool = True
    message: str = STREAM_IN_PROGRESS_MESSAGE


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    version: str
    uptime_seconds: int
    environment: Optional[str] = None


# === Error Response ===

class ErrorResponse(BaseModel):
    """에러 응답

    success/error는 항상 포함. code/details는 원인 구분용.
    """
    success: bool = False
    error: str
    code: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)
