"""Route orchestrator for configured failure reports."""

from __future__ import annotations

import logging
from typing import Any

from recorder_platform.config_models import FailureRouteType, RecorderConfig
from recorder_platform.routes.base import FailureRoute, RouteDispatchResult
from recorder_platform.routes.log import LogRoute
from recorder_platform.routes.webhook import WebhookRoute


logger = logging.getLogger(__name__)


class RouteOrchestrator:
    """Dispatches failure reports to all enabled routes."""

    def __init__(self, routes: tuple[FailureRoute, ...]) -> None:
        self._routes = routes

    @property
    def route_count(self) -> int:
        return len(self._routes)

    async def dispatch_all(self, payload: dict[str, Any]) -> list[RouteDispatchResult]:
        results: list[RouteDispatchResult] = []
        for route in self._routes:
            result = await route.dispatch(payload)
            if result.ok:
                logger.debug("Failure report %s", result.describe())
            else:
                logger.warning("Failure report %s", result.describe())
            results.append(result)
        return results


def build_route_orchestrator(config: RecorderConfig) -> RouteOrchestrator:
    """Create route instances from a validated recorder config."""
    routes: list[FailureRoute] = []

    for route in config.failure_routes:
        if not route.enabled:
            continue

        if route.type == FailureRouteType.LOG:
            routes.append(LogRoute(route.id))
            continue

        if route.type == FailureRouteType.WEBHOOK:
            if not route.url:
                raise RuntimeError(
                    f"Route '{route.id}' is webhook but has no URL configured."
                )
            routes.append(
                WebhookRoute(
                    route_id=route.id,
                    url=route.url,
                    headers=route.headers,
                    timeout_seconds=route.timeout_seconds,
                )
            )
            continue

        raise RuntimeError(f"Unsupported route type '{route.type.value}'.")

    if not routes:
        raise RuntimeError("No enabled failure routes configured.")

    return RouteOrchestrator(tuple(routes))
