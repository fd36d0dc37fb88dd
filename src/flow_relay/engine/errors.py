"""Flow engine 오류 분류

initiate_run / run_flow / 스트림 구독에서 발생하는 예외를 정의합니다.
엔드포인트는 FlowRelayError 하나만 잡아 균일한 500 응답으로 변환합니다.
"""

import json
from typing import Any, Optional


class FlowRelayError(Exception):
    """Flow relay 공통 오류"""

    code = "FLOW_RELAY_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details: dict = details or {}


class TransportError(FlowRelayError):
    """flow engine 또는 스트림 엔드포인트에 도달하지 못한 네트워크 오류"""

    code = "TRANSPORT_ERROR"


class RequestError(FlowRelayError):
    """flow engine이 2xx가 아닌 상태로 응답함"""

    code = "REQUEST_ERROR"

    def __init__(self, status: int, reason: str = "", body: Any = None):
        self.status = status
        self.reason = reason or ""
        self.body = body
        status_line = f"{status} {self.reason}".strip()
        super().__init__(
            f"{status_line} - {_render_body(body)}",
            details={"status": status, "body": body},
        )


class ResponseShapeError(FlowRelayError):
    """성공 응답에 기대한 필드 경로가 없음"""

    code = "RESPONSE_SHAPE_ERROR"

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(
            message or f"Unexpected flow response shape: missing {path}",
            details={"path": path},
        )


class StreamError(FlowRelayError):
    """이벤트 스트림 구독 중 오류 (on_error 콜백으로만 전달됨)"""

    code = "STREAM_ERROR"


class FlowExecutionError(FlowRelayError):
    """run_flow 실패 래퍼

    원인 예외(cause)와 그 code/details를 그대로 보존하여
    호출자가 transport 실패와 engine 거부를 구분할 수 있게 합니다.
    """

    code = "FLOW_EXECUTION_ERROR"

    def __init__(self, message: str, cause: FlowRelayError):
        self.cause = cause
        super().__init__(f"{message}: {cause.message}", details=dict(cause.details))

    @property
    def kind(self) -> str:
        """원인 오류의 code"""
        return self.cause.code

    @property
    def status(self) -> Optional[int]:
        return getattr(self.cause, "status", None)

    @property
    def body(self) -> Any:
        return getattr(self.cause, "body", None)


def _render_body(body: Any) -> str:
    if isinstance(body, (dict, list)):
        return json.dumps(body, ensure_ascii=False)
    return "" if body is None else str(body)
