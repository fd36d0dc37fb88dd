# API Routers
from .relay import create_relay_router, error_response

__all__ = [
    "create_relay_router",
    "error_response",
]
