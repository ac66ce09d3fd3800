"""HTTP API module."""

from .routes import router, set_availability_service, get_availability_service

__all__ = [
    "router",
    "set_availability_service",
    "get_availability_service",
]
