"""
Relay API - flow 실행 엔드포인트

POST /run-flow 요청을 FlowClient.run_flow 호출로 변환하고,
결과 텍스트 또는 스트림 진행 확인을 반환합니다.
스트림 내용은 로깅 콜백으로만 관찰되며 호출자에게 전달되지 않습니다.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from flow_relay.constants import DEFAULT_TWEAKS
from flow_relay.engine.errors import FlowRelayError, StreamError
from flow_relay.engine.response import extract_output_text
from flow_relay.models import (
    ErrorResponse,
    RunFlowOutputResponse,
    RunFlowRequest,
    StreamAckResponse,
)
from flow_relay.service.flow_client import FlowClient

logger = logging.getLogger(__name__)


def error_response(exc: FlowRelayError, status_code: int = 500) -> JSONResponse:
    """FlowRelayError를 {success: false, error, code, details} 응답으로 변환"""
    body = ErrorResponse(error=exc.message or exc.code, code=exc.code, details=exc.details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def log_stream_update(data: Any) -> None:
    chunk = data.get("chunk") if isinstance(data, dict) else data
    logger.info(f"Streaming Update: {chunk}")


async def log_stream_close(reason: str) -> None:
    logger.info(f"Stream Closed: {reason}")


async def log_stream_error(error: StreamError) -> None:
    logger.error(f"Stream Error: {error}")


def create_relay_router(
    client: FlowClient,
    flow_id: str,
    langflow_id: str,
    tweaks: Optional[dict] = None,
) -> APIRouter:
    """
    Relay API 라우터 팩토리.

    Args:
        client: flow engine 클라이언트
        flow_id: 실행할 flow ID
        langflow_id: Langflow 인스턴스 ID
        tweaks: 컴포넌트별 오버라이드 (없으면 기본 tweaks)

    Returns:
        FastAPI APIRouter
    """
    router = APIRouter()
    run_tweaks = dict(tweaks) if tweaks is not None else dict(DEFAULT_TWEAKS)

    @router.post(
        "/run-flow",
        responses={500: {"model": ErrorResponse}},
    )
    async def run_flow(request: RunFlowRequest):
        """
        POST /run-flow — flow 실행

        stream=false: 최종 텍스트 반환
        stream=true: 스트림 시작 확인만 즉시 반환
        """
        logger.info(
            f"run-flow: input_type={request.input_type}, output_type={request.output_type}, "
            f"stream={request.stream}, input={request.input_value[:80]!r}"
        )

        try:
            run = await client.run_flow(
                flow_id,
                langflow_id,
                request.input_value,
                request.input_type,
                request.output_type,
                tweaks=run_tweaks,
                stream=request.stream,
                on_update=log_stream_update,
                on_close=log_stream_close,
                on_error=log_stream_error,
            )
            if not request.stream:
                return RunFlowOutputResponse(output=extract_output_text(run.response))
        except FlowRelayError as e:
            logger.error(f"Error in /run-flow: {e}")
            return error_response(e)

        return StreamAckResponse()

    return router
