"""
Async Interview Recorder Package.

Client-side orchestration for one-way video interviews: a candidate opens a
tokenized link, records one clip per question under a time limit, and the
clips are uploaded to the interview API one at a time.

Components:
    - InterviewSession: State machine for one candidate's session
    - InterviewApiClient: Fetch interview, upload clips, signal completion
    - Countdown: Per-question answer timer with auto-stop
    - SessionEventPublisher: Real-time session events for a UI
    - DashboardApiClient / AuthSession: Recruiter API with refresh-on-401
    - Models: Pydantic models for interviews, questions and upload outcomes

Example:
    >>> from interview_recorder import InterviewApiClient, InterviewSession
    >>>
    >>> async with InterviewApiClient() as api:
    ...     async with InterviewSession("tok_123", api, device) as session:
    ...         await session.load_interview()
    ...         await session.begin()
    ...         session.start_interview()
    ...         session.start_recording()

Last Grunted: 10/19/2026
"""

from .models import (
    InterviewDefinition,
    Question,
    SessionStage,
    SessionSummary,
    UploadAttempt,
)

from .errors import (
    AuthenticationError,
    CompletionSignalError,
    DashboardApiError,
    InterviewApiError,
    InterviewRecorderError,
    InvalidTokenError,
    NotFoundError,
    PermissionDeniedError,
    SessionStateError,
    UploadError,
)

from .media import (
    CaptureConstraints,
    MediaCaptureDevice,
    MediaRecorder,
    MediaStream,
    MediaTrack,
    release_stream,
)

from .countdown import Countdown

from .pubsub import (
    SessionEvent,
    SessionEventPublisher,
    SessionEventType,
)

from .api_client import DEFAULT_API_BASE_URL, InterviewApiClient

from .session import FailureReporter, InterviewSession

from .auth import AuthSession, TokenRefreshAuth

from .dashboard_client import DashboardApiClient


__all__ = [
    # Models
    "InterviewDefinition",
    "Question",
    "SessionStage",
    "SessionSummary",
    "UploadAttempt",
    # Errors
    "AuthenticationError",
    "CompletionSignalError",
    "DashboardApiError",
    "InterviewApiError",
    "InterviewRecorderError",
    "InvalidTokenError",
    "NotFoundError",
    "PermissionDeniedError",
    "SessionStateError",
    "UploadError",
    # Media
    "CaptureConstraints",
    "MediaCaptureDevice",
    "MediaRecorder",
    "MediaStream",
    "MediaTrack",
    "release_stream",
    # Session
    "Countdown",
    "FailureReporter",
    "InterviewSession",
    # Pub/Sub
    "SessionEvent",
    "SessionEventPublisher",
    "SessionEventType",
    # API
    "DEFAULT_API_BASE_URL",
    "InterviewApiClient",
    "AuthSession",
    "TokenRefreshAuth",
    "DashboardApiClient",
]

__version__ = "0.1.0"
