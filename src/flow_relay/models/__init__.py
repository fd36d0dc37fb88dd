from flow_relay.models.schemas import (
    RunFlowRequest,
    RunFlowOutputResponse,
    StreamAckResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    "RunFlowRequest",
    "RunFlowOutputResponse",
    "StreamAckResponse",
    "HealthResponse",
    "ErrorResponse",
]
