"""Recruiter dashboard API client (auth, jobs, candidates)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .api_client import DEFAULT_API_BASE_URL
from .auth import AuthSession, TokenRefreshAuth
from .errors import AuthenticationError, DashboardApiError


__all__ = ["DashboardApiClient"]


logger = logging.getLogger(__name__)


def _require_token_payload(data: Any, action: str) -> None:
    if not isinstance(data, dict):
        raise AuthenticationError(f"{action} response did not include an access token")


class DashboardApiClient:
    """
    Async client for the recruiter-facing endpoints.

    Requests carry the bearer token from the injected AuthSession; an
    expired token is refreshed once per request via TokenRefreshAuth.
    Payloads are passed through as dicts since their schema belongs to
    the API.
    """

    def __init__(
        self,
        auth_session: AuthSession,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_session = auth_session
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
            auth=TokenRefreshAuth(auth_session, f"{self.base_url}/auth/refresh"),
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "DashboardApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if not authenticated:
            kwargs["auth"] = None

        response = await self._client.request(method, path, **kwargs)
        if response.status_code == 401:
            raise AuthenticationError(f"{method} {path} was rejected as unauthenticated")
        if response.status_code >= 400:
            raise DashboardApiError(method, path, response.status_code, response.text[:160])
        if not response.content:
            return None
        return response.json()

    # Auth

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and store the issued tokens in the auth session."""
        data = await self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        _require_token_payload(data, "Login")
        self.auth_session.login(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            user=data.get("user"),
        )
        logger.info("Logged in as %s", email)
        return data

    async def signup(self, email: str, password: str, company: str, role: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/auth/signup",
            json={"email": email, "password": password, "company": company, "role": role},
            authenticated=False,
        )

    async def get_me(self) -> dict[str, Any]:
        return await self._request("GET", "/auth/me")

    async def refresh(self) -> dict[str, Any]:
        """Exchange the refresh token explicitly (normally done on 401)."""
        refresh_token = self.auth_session.refresh_token
        if not refresh_token:
            raise AuthenticationError("No refresh token available")
        data = await self._request(
            "POST",
            "/auth/refresh",
            json={"refresh_token": refresh_token},
            authenticated=False,
        )
        _require_token_payload(data, "Refresh")
        self.auth_session.login(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token", refresh_token),
        )
        return data

    def logout(self) -> None:
        self.auth_session.logout()

    # Jobs

    async def list_jobs(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/jobs")

    async def get_job(self, job_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/jobs/{job_id}")

    async def create_job(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/jobs", json=data)

    async def update_job(self, job_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/jobs/{job_id}", json=data)

    async def delete_job(self, job_id: str) -> Any:
        return await self._request("DELETE", f"/jobs/{job_id}")

    # Candidates

    async def list_candidates(self, job_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/candidates/job/{job_id}")

    async def create_candidate(self, job_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/candidates/{job_id}", json=data)

    async def update_candidate(self, candidate_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/candidates/{candidate_id}", json=data)

    async def delete_candidate(self, candidate_id: str) -> Any:
        return await self._request("DELETE", f"/candidates/{candidate_id}")
