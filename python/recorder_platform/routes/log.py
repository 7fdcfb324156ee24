"""Log failure route.

Writes failure reports to the `recorder_platform.failures` logger so they
reach whatever handler the deployment configures for logging.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from recorder_platform.routes.base import RouteDispatchResult


failure_logger = logging.getLogger("recorder_platform.failures")


class LogRoute:
    """Emit each failure report as one WARNING log record."""

    route_type = "log"

    def __init__(self, route_id: str) -> None:
        self.route_id = route_id

    async def dispatch(self, payload: dict[str, Any]) -> RouteDispatchResult:
        failure_logger.warning(
            "Interview failure reported: %s",
            json.dumps(payload, sort_keys=True, default=str),
        )
        return RouteDispatchResult(
            route_id=self.route_id,
            route_type=self.route_type,
            ok=True,
        )
