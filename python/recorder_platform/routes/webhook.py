"""Webhook failure route.

POSTs each failure report, wrapped in a small envelope, to an operator
endpoint (incident tooling, a chat webhook, a log collector).
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from recorder_platform.routes.base import RouteDispatchResult


REPORT_SOURCE = "interview-recorder"


class WebhookRoute:
    """Deliver failure reports to an external HTTP endpoint. Never raises."""

    route_type = "webhook"

    def __init__(
        self,
        route_id: str,
        url: str,
        headers: dict[str, str] | None = None,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.route_id = route_id
        self.url = url
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _envelope(self, payload: dict[str, Any]) -> str:
        return json.dumps(
            {"source": REPORT_SOURCE, "route_id": self.route_id, "report": payload},
            default=str,
        )

    def _result(self, ok: bool, detail: str | None = None) -> RouteDispatchResult:
        return RouteDispatchResult(self.route_id, self.route_type, ok, detail)

    async def dispatch(self, payload: dict[str, Any]) -> RouteDispatchResult:
        body = self._envelope(payload)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self.url, headers=self.headers, content=body)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._result(False, f"{type(exc).__name__}: {exc}")

        if response.status_code >= 400:
            return self._result(False, f"HTTP {response.status_code}: {response.text[:160]}")
        return self._result(True)
