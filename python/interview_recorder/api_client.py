"""
Interview API client.

Wraps the three HTTP calls a candidate session makes:

    GET  /candidates/interview/{token}            - resolve the interview
    POST /videos/upload/{token}/{question_id}     - upload one clip
    POST /videos/complete/{token}                 - mark the session finished

Every call carries an explicit timeout. Uploads use their own (longer)
timeout because clips can be large.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .errors import (
    CompletionSignalError,
    InterviewApiError,
    InvalidTokenError,
    UploadError,
)
from .models import InterviewDefinition


__all__ = ["InterviewApiClient", "DEFAULT_API_BASE_URL"]


logger = logging.getLogger(__name__)


DEFAULT_API_BASE_URL = "http://127.0.0.1:8000/api"


def _error_detail(response: httpx.Response) -> str:
    return f"HTTP {response.status_code}: {response.text[:160]}"


class InterviewApiClient:
    """
    Async client for the candidate-facing interview endpoints.

    The client owns its `httpx.AsyncClient` unless one is passed in.
    Use it as an async context manager or call `aclose()`.

    Example:
        >>> async with InterviewApiClient("http://127.0.0.1:8000/api") as api:
        ...     definition = await api.fetch_interview("tok_123")
        ...     await api.upload_clip("tok_123", definition.questions[0].id, clip)
        ...     await api.complete_session("tok_123")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        timeout_seconds: float = 10.0,
        upload_timeout_seconds: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.upload_timeout_seconds = upload_timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "InterviewApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def fetch_interview(self, token: str) -> InterviewDefinition:
        """
        Resolve an interview token.

        Raises:
            InvalidTokenError: Token unknown/expired (4xx), or the payload is unusable.
            InterviewApiError: The API could not be reached or returned a 5xx.
        """
        url = self._url(f"candidates/interview/{token}")
        try:
            response = await self._client.get(url, timeout=self.timeout_seconds)
        except httpx.RequestError as exc:
            raise InterviewApiError(url, exc) from exc

        if response.status_code >= 500:
            logger.warning("Interview API unavailable (%d)", response.status_code)
            raise InterviewApiError(url, _error_detail(response), response.status_code)
        if response.status_code >= 400:
            logger.info("Interview token rejected (%d)", response.status_code)
            raise InvalidTokenError(token, _error_detail(response))

        try:
            definition = InterviewDefinition.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise InvalidTokenError(token, f"malformed interview payload: {exc}") from exc

        logger.info(
            "Loaded interview for '%s' (%s at %s, %d questions)",
            definition.candidate_name,
            definition.job_title,
            definition.company_name,
            definition.question_count,
        )
        return definition

    async def upload_clip(
        self,
        token: str,
        question_id: int,
        clip: bytes,
        *,
        content_type: str = "video/webm",
        extension: str = "webm",
    ) -> dict[str, Any]:
        """
        Upload one question's clip as multipart field `file`.

        Returns:
            The API's JSON response (empty dict when the body is not JSON).

        Raises:
            UploadError: Rejected by the API or failed in transit.
        """
        url = self._url(f"videos/upload/{token}/{question_id}")
        files = {"file": (f"question_{question_id}.{extension}", clip, content_type)}
        try:
            response = await self._client.post(
                url,
                files=files,
                timeout=self.upload_timeout_seconds,
            )
        except httpx.RequestError as exc:
            raise UploadError(question_id, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            raise UploadError(question_id, _error_detail(response), response.status_code)

        logger.info("Uploaded clip for question %d (%d bytes)", question_id, len(clip))
        try:
            return response.json()
        except ValueError:
            return {}

    async def complete_session(self, token: str) -> None:
        """
        Tell the API the candidate has finished.

        Raises:
            CompletionSignalError: Rejected by the API or failed in transit.
        """
        url = self._url(f"videos/complete/{token}")
        try:
            response = await self._client.post(url, timeout=self.timeout_seconds)
        except httpx.RequestError as exc:
            raise CompletionSignalError(token, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            raise CompletionSignalError(token, _error_detail(response), response.status_code)

        logger.info("Completion signal acknowledged")
