# Business Logic Services
from .flow_client import FlowClient, FlowRun, StreamSubscription

__all__ = [
    "FlowClient",
    "FlowRun",
    "StreamSubscription",
]
