"""Failure routing package."""

from recorder_platform.routes.base import RouteDispatchResult
from recorder_platform.routes.router import RouteOrchestrator, build_route_orchestrator

__all__ = [
    "RouteDispatchResult",
    "RouteOrchestrator",
    "build_route_orchestrator",
]
