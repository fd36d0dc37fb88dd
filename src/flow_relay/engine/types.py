"""Flow engine 타입 정의

실행 상태와 스트림 이벤트, 콜백 타입만 정의합니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Coroutine, Optional

from flow_relay.engine.errors import StreamError


class RunState(str, Enum):
    """단일 run의 상태

    idle → requesting → completed | failed
    스트리밍 시: completed → streaming → closed | stream_failed | cancelled
    """

    IDLE = "idle"
    REQUESTING = "requesting"
    COMPLETED = "completed"
    FAILED = "failed"
    STREAMING = "streaming"
    CLOSED = "closed"
    STREAM_FAILED = "stream_failed"
    CANCELLED = "cancelled"


class StreamEventType(str, Enum):
    """스트림 이벤트 태그"""

    UPDATE = "update"
    CLOSE = "close"
    ERROR = "error"


@dataclass
class StreamEvent:
    """이벤트 스트림에서 나온 단일 이벤트

    type: UPDATE | CLOSE | ERROR
    data: UPDATE의 JSON 페이로드 (스키마는 해석하지 않음)
    reason: CLOSE 사유
    error: ERROR의 StreamError
    """

    type: StreamEventType
    data: Any = None
    reason: Optional[str] = None
    error: Optional[StreamError] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in (StreamEventType.CLOSE, StreamEventType.ERROR)


@dataclass
class RunParams:
    """flow run 요청 파라미터 (요청마다 생성, 저장하지 않음)"""

    input_value: str
    input_type: str = "chat"
    output_type: str = "chat"
    stream: bool = False
    tweaks: dict = field(default_factory=dict)

    def to_body(self) -> dict:
        """flow engine 요청 바디"""
        return {
            "input_value": self.input_value,
            "input_type": self.input_type,
            "output_type": self.output_type,
            "tweaks": self.tweaks,
        }


# 스트림 콜백 타입
UpdateCallback = Callable[[Any], Coroutine[Any, Any, None]]
CloseCallback = Callable[[str], Coroutine[Any, Any, None]]
ErrorCallback = Callable[[StreamError], Coroutine[Any, Any, None]]
