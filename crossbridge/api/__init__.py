"""HTTP API for the bridge service."""

from .routes import APIResponse, RouteQuery, bridge_router, create_bridge_router, get_service

__all__ = [
    "APIResponse",
    "RouteQuery",
    "bridge_router",
    "create_bridge_router",
    "get_service",
]
