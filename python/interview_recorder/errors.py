"""
Error taxonomy for the interview recorder.

Terminal errors (shown to the candidate):
    InvalidTokenError, InterviewApiError, PermissionDeniedError

Non-fatal errors (logged and reported, session keeps going):
    UploadError, CompletionSignalError

Dashboard client errors:
    AuthenticationError, DashboardApiError
"""

from typing import Optional


__all__ = [
    "InterviewRecorderError",
    "InvalidTokenError",
    "NotFoundError",
    "InterviewApiError",
    "PermissionDeniedError",
    "UploadError",
    "CompletionSignalError",
    "SessionStateError",
    "AuthenticationError",
    "DashboardApiError",
]


class InterviewRecorderError(Exception):
    """Base class for all recorder errors."""


class InvalidTokenError(InterviewRecorderError):
    """Raised when an interview token is invalid, expired or unusable."""

    def __init__(self, token: str, detail: Optional[str] = None) -> None:
        self.token = token
        self.detail = detail
        message = f"Interview token '{token}' is invalid or expired"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


NotFoundError = InvalidTokenError


class InterviewApiError(InterviewRecorderError):
    """Raised when the interview API cannot be reached or answers with a 5xx."""

    def __init__(self, url: str, cause: Exception | str, status_code: Optional[int] = None) -> None:
        self.url = url
        self.cause = cause
        self.status_code = status_code
        super().__init__(f"Request to {url} failed: {cause}")


class PermissionDeniedError(InterviewRecorderError):
    """Raised when camera/microphone access is denied or no device exists."""


class UploadError(InterviewRecorderError):
    """Raised when a clip upload is rejected or cannot be sent."""

    def __init__(
        self,
        question_id: int,
        detail: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.question_id = question_id
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Upload for question {question_id} failed: {detail}")


class CompletionSignalError(InterviewRecorderError):
    """Raised when the session completion signal fails."""

    def __init__(
        self,
        token: str,
        detail: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.token = token
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Completion signal for '{token}' failed: {detail}")


class SessionStateError(InterviewRecorderError):
    """Raised when an operation is not valid in the session's current state."""


class AuthenticationError(InterviewRecorderError):
    """Raised when dashboard credentials are missing, rejected or expired."""


class DashboardApiError(InterviewRecorderError):
    """Raised when a dashboard API call returns an error status."""

    def __init__(self, method: str, url: str, status_code: int, detail: str) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{method} {url} returned HTTP {status_code}: {detail}")
