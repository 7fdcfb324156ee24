"""Failure route interfaces and shared types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class RouteDispatchResult:
    """Outcome of delivering one failure report to one route."""

    route_id: str
    route_type: str
    ok: bool
    detail: str | None = None

    def describe(self) -> str:
        status = "delivered" if self.ok else f"failed ({self.detail})"
        return f"{self.route_type}:{self.route_id} {status}"


class FailureRoute(Protocol):
    """A destination for upload/completion failure reports."""

    route_id: str
    route_type: str

    async def dispatch(self, payload: dict[str, Any]) -> RouteDispatchResult:
        """Deliver one report. Implementations return a failed result instead of raising."""
