"""Flow engine 계약

외부 flow engine(Langflow)과 주고받는 타입, 오류, 응답 경로를 정의합니다.
"""

from flow_relay.engine.errors import (
    FlowRelayError,
    TransportError,
    RequestError,
    ResponseShapeError,
    StreamError,
    FlowExecutionError,
)
from flow_relay.engine.types import (
    RunState,
    RunParams,
    StreamEvent,
    StreamEventType,
    UpdateCallback,
    CloseCallback,
    ErrorCallback,
)
from flow_relay.engine.response import (
    extract_output_text,
    find_stream_url,
)

__all__ = [
    "FlowRelayError",
    "TransportError",
    "RequestError",
    "ResponseShapeError",
    "StreamError",
    "FlowExecutionError",
    "RunState",
    "RunParams",
    "StreamEvent",
    "StreamEventType",
    "UpdateCallback",
    "CloseCallback",
    "ErrorCallback",
    "extract_output_text",
    "find_stream_url",
]
