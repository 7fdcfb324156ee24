"""
Dashboard authentication context and refresh-on-401 handling.

`AuthSession` replaces browser-storage tokens with an explicit object that
is created at login, passed to API clients, and cleared at logout.
`TokenRefreshAuth` plugs it into httpx: it sends the bearer token, and on a
401 it refreshes once and replays the original request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generator, Optional

import httpx

from .errors import AuthenticationError


__all__ = ["AuthSession", "TokenRefreshAuth"]


logger = logging.getLogger(__name__)


class AuthSession:
    """
    Holds the recruiter's tokens for the lifetime of one login.

    Attributes:
        access_token: Bearer token sent with every request.
        refresh_token: Token exchanged for a new pair when access expires.
        user: User payload returned at login, if any.
    """

    def __init__(self, on_logout: Optional[Callable[[], None]] = None) -> None:
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[dict[str, Any]] = None
        self._on_logout = on_logout

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def login(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        user: Optional[dict[str, Any]] = None,
    ) -> None:
        """Store a freshly issued token pair."""
        if not access_token:
            raise AuthenticationError("Login response did not include an access token")
        self.access_token = access_token
        self.refresh_token = refresh_token
        if user is not None:
            self.user = user
        logger.debug("Auth session updated (refresh token: %s)", bool(refresh_token))

    def logout(self) -> None:
        """Forget all tokens and notify the owner."""
        was_authenticated = self.is_authenticated
        self.access_token = None
        self.refresh_token = None
        self.user = None
        if was_authenticated:
            logger.info("Auth session cleared")
        if self._on_logout is not None:
            self._on_logout()


class TokenRefreshAuth(httpx.Auth):
    """
    httpx auth flow: bearer token plus a single refresh-and-retry on 401.

    The refresh endpoint receives `{"refresh_token": ...}` and must answer
    with `{"access_token": ..., "refresh_token": ...}`.
    """

    requires_response_body = True

    def __init__(self, session: AuthSession, refresh_url: str) -> None:
        self.session = session
        self.refresh_url = refresh_url

    def _apply(self, request: httpx.Request) -> None:
        if self.session.access_token:
            request.headers["Authorization"] = f"Bearer {self.session.access_token}"

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        self._apply(request)
        response = yield request

        if response.status_code != 401:
            return

        refresh_token = self.session.refresh_token
        if not refresh_token:
            self.session.logout()
            raise AuthenticationError("Access token rejected and no refresh token is available")

        logger.info("Access token rejected, refreshing")
        refresh_response = yield httpx.Request(
            "POST",
            self.refresh_url,
            json={"refresh_token": refresh_token},
        )

        if refresh_response.status_code >= 400:
            self.session.logout()
            raise AuthenticationError(
                f"Token refresh failed with HTTP {refresh_response.status_code}"
            )

        try:
            data = refresh_response.json()
            self.session.login(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token", refresh_token),
            )
        except (ValueError, KeyError, TypeError) as exc:
            self.session.logout()
            raise AuthenticationError(f"Malformed refresh response: {exc}") from exc

        self._apply(request)
        yield request
