"""
Interview Session Controller.

Drives one candidate's visit to an interview link:

    loading -> welcome -> camera_setup -> recording <-> uploading -> complete
         \\                     \\
          -> error               -> error

The session exclusively owns the media stream, the active recorder and the
answer countdown. Teardown (`close()` or leaving an `async with` block)
releases the stream exactly once, whichever exit path is taken.

Thread Safety:
    This class is NOT thread-safe. All methods must be called from the event
    loop that runs the session.

Last Grunted: 10/19/2026
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol

from .api_client import InterviewApiClient
from .countdown import Countdown
from .errors import (
    CompletionSignalError,
    InterviewApiError,
    InvalidTokenError,
    PermissionDeniedError,
    SessionStateError,
    UploadError,
)
from .media import (
    CaptureConstraints,
    MediaCaptureDevice,
    MediaRecorder,
    MediaStream,
    release_stream,
)
from .models import (
    InterviewDefinition,
    Question,
    SessionStage,
    SessionSummary,
    UploadAttempt,
)
from .pubsub import SessionEvent, SessionEventPublisher, SessionEventType


__all__ = ["InterviewSession", "FailureReporter"]


logger = logging.getLogger(__name__)


INVALID_TOKEN_MESSAGE = "Interview link is invalid or expired"
API_UNREACHABLE_MESSAGE = "Unable to reach the interview service"
PERMISSION_DENIED_MESSAGE = "Unable to access camera. Please allow camera permissions."


def _format_utc_timestamp(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


class FailureReporter(Protocol):
    """Destination for reports of non-fatal failures."""

    async def dispatch_all(self, payload: dict[str, Any]) -> list[Any]:
        """Dispatch one failure report. Must never raise."""


class InterviewSession:
    """
    State machine for one async video interview.

    Responsibilities:
        - Resolve the token into an InterviewDefinition
        - Acquire exactly one camera+microphone stream
        - Record each question under its time limit (auto-stop at zero)
        - Upload one clip per question, in order, then signal completion
        - Release the stream on every exit path

    Example:
        >>> async with InterviewSession(token, api, device) as session:
        ...     await session.load_interview()
        ...     await session.begin()
        ...     session.start_interview()
        ...     session.start_recording()
        ...     ...
        ...     session.stop_recording()
        ...     await session.submit_and_advance()
    """

    def __init__(
        self,
        token: str,
        api: InterviewApiClient,
        device: MediaCaptureDevice,
        *,
        publisher: Optional[SessionEventPublisher] = None,
        failure_reporter: Optional[FailureReporter] = None,
        constraints: Optional[CaptureConstraints] = None,
        tick_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        max_upload_attempts: int = 1,
        upload_backoff_seconds: float = 0.0,
    ) -> None:
        """
        Create a session bound to one interview token.

        Args:
            token: Opaque interview token from the candidate's link.
            api: Client for the interview endpoints.
            device: Capture device used to open the stream and recorders.
            publisher: Receives progress events for a UI.
            failure_reporter: Receives reports of failed uploads/completion.
            constraints: Requested stream shape (1280x720, front camera).
            tick_interval: Seconds between countdown ticks.
            sleep: Sleep coroutine used by the countdown and retry backoff.
            max_upload_attempts: Attempts per clip. 1 means no retry.
            upload_backoff_seconds: Delay multiplier between retry attempts.
        """
        if not token or not token.strip():
            raise ValueError("Interview token is empty")
        if max_upload_attempts < 1:
            raise ValueError("max_upload_attempts must be at least 1")

        self.token = token.strip()
        self._api = api
        self._device = device
        self._publisher = publisher
        self._failure_reporter = failure_reporter
        self._constraints = constraints or CaptureConstraints()
        self._tick_interval = tick_interval
        self._sleep = sleep
        self._max_upload_attempts = max_upload_attempts
        self._upload_backoff_seconds = upload_backoff_seconds

        self._stage = SessionStage.LOADING
        self._definition: Optional[InterviewDefinition] = None
        self._error_message: Optional[str] = None
        self._question_index = 0
        self._time_remaining = 0
        self._chunks: list[bytes] = []
        self._upload_progress = 0

        self._stream: Optional[MediaStream] = None
        self._stream_released = False
        self._recorder: Optional[MediaRecorder] = None
        self._countdown: Optional[Countdown] = None
        self._is_recording = False
        self._auto_stop_count = 0

        self._uploaded_question_ids: set[int] = set()
        self._uploads: list[UploadAttempt] = []
        self._completion_acknowledged: Optional[bool] = None
        self._completion_sent = False
        self._started_at = _format_utc_timestamp(datetime.now(timezone.utc))
        self._ended_at: Optional[str] = None
        self._closed = False

        logger.debug("InterviewSession created for token %s", self.token)

    async def __aenter__(self) -> "InterviewSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # State accessors
    # -------------------------------------------------------------------------

    @property
    def stage(self) -> SessionStage:
        return self._stage

    @property
    def definition(self) -> Optional[InterviewDefinition]:
        return self._definition

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def current_question_index(self) -> int:
        return self._question_index

    @property
    def current_question(self) -> Optional[Question]:
        if self._definition is None:
            return None
        return self._definition.questions[self._question_index]

    @property
    def is_last_question(self) -> bool:
        return (
            self._definition is not None
            and self._question_index == self._definition.question_count - 1
        )

    @property
    def time_remaining_seconds(self) -> int:
        return self._time_remaining

    @property
    def captured_chunks(self) -> tuple[bytes, ...]:
        return tuple(self._chunks)

    @property
    def is_recording(self) -> bool:
        return self._is_recording

    @property
    def camera_ready(self) -> bool:
        return self._stream is not None and not self._stream_released

    @property
    def upload_progress(self) -> int:
        return self._upload_progress

    @property
    def uploads(self) -> list[UploadAttempt]:
        return list(self._uploads)

    @property
    def auto_stop_count(self) -> int:
        return self._auto_stop_count

    @property
    def countdown_running(self) -> bool:
        return self._countdown is not None and self._countdown.running

    @property
    def stream_released(self) -> bool:
        return self._stream_released

    @property
    def can_submit(self) -> bool:
        return (
            self._stage == SessionStage.RECORDING
            and not self._is_recording
            and bool(self._chunks)
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _publish(self, event_type: SessionEventType, content: str, **fields: Any) -> None:
        if self._publisher is None:
            return
        question = self.current_question
        fields.setdefault("stage", self._stage.value)
        if self._stage in (SessionStage.RECORDING, SessionStage.UPLOADING):
            fields.setdefault("question_index", self._question_index)
            fields.setdefault("question_id", question.id if question else None)
        self._publisher.publish(SessionEvent(event_type=event_type, content=content, **fields))

    def _transition(self, stage: SessionStage) -> None:
        previous = self._stage
        self._stage = stage
        logger.info("Session %s: %s -> %s", self.token, previous.value, stage.value)
        self._publish(SessionEventType.STAGE, f"{previous.value} -> {stage.value}")

    def _require_stage(self, *allowed: SessionStage, operation: str) -> None:
        if self._closed:
            raise SessionStateError(f"{operation}() called on a closed session")
        if self._stage not in allowed:
            expected = ", ".join(stage.value for stage in allowed)
            raise SessionStateError(
                f"{operation}() is not valid in stage '{self._stage.value}' "
                f"(expected: {expected})"
            )

    def _fail(self, message: str) -> None:
        self._error_message = message
        self._transition(SessionStage.ERROR)
        self._publish(SessionEventType.ERROR, message, ok=False)

    async def _report_failure(self, payload: dict[str, Any]) -> None:
        if self._failure_reporter is None:
            return
        report = {
            "token": self.token,
            "timestamp_utc": _format_utc_timestamp(datetime.now(timezone.utc)),
            **payload,
        }
        await self._failure_reporter.dispatch_all(report)

    def _on_chunk(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def _on_tick(self, remaining: int) -> None:
        self._time_remaining = remaining
        logger.debug("Question %d: %ds remaining", self._question_index, remaining)
        self._publish(SessionEventType.TICK, f"{remaining}s remaining", time_remaining=remaining)

    def _on_expire(self) -> None:
        if self.stop_recording():
            self._auto_stop_count += 1
            logger.info(
                "Time limit reached on question %d, recording stopped",
                self._question_index,
            )

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _stop_recorder(self) -> None:
        recorder, self._recorder = self._recorder, None
        if recorder is not None and recorder.state != "inactive":
            recorder.stop()

    def _release_stream(self) -> None:
        if self._stream is None or self._stream_released:
            return
        self._stream_released = True
        stopped = release_stream(self._stream)
        logger.info("Media stream released (%d tracks stopped)", stopped)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def load_interview(self) -> InterviewDefinition:
        """
        Resolve the token into an interview definition.

        Returns:
            The fetched InterviewDefinition; the session moves to welcome.

        Raises:
            InvalidTokenError: Token invalid or expired. Session moves to error.
            InterviewApiError: API unreachable. Session moves to error.
        """
        self._require_stage(SessionStage.LOADING, operation="load_interview")

        try:
            definition = await self._api.fetch_interview(self.token)
        except InvalidTokenError:
            self._fail(INVALID_TOKEN_MESSAGE)
            raise
        except InterviewApiError as exc:
            logger.warning("Could not load interview: %s", exc)
            self._fail(API_UNREACHABLE_MESSAGE)
            raise

        self._definition = definition
        self._transition(SessionStage.WELCOME)
        return definition

    def proceed_to_camera_setup(self) -> None:
        self._require_stage(SessionStage.WELCOME, operation="proceed_to_camera_setup")
        self._transition(SessionStage.CAMERA_SETUP)

    async def request_camera_access(self) -> None:
        """
        Open the single audio+video stream for this session.

        Raises:
            PermissionDeniedError: Access denied or no device. Session moves
                to error; access is not requested again.
            SessionStateError: Not in camera_setup, or a stream is already held.
        """
        self._require_stage(SessionStage.CAMERA_SETUP, operation="request_camera_access")
        if self._stream is not None:
            raise SessionStateError("Session already holds a media stream")

        try:
            stream = await self._device.open_stream(self._constraints)
        except PermissionDeniedError as exc:
            logger.warning("Camera access denied: %s", exc)
            self._fail(PERMISSION_DENIED_MESSAGE)
            raise

        if self._closed:
            # Session was torn down while the permission prompt was open.
            release_stream(stream)
            raise SessionStateError("Session closed while acquiring camera")

        self._stream = stream
        logger.info(
            "Camera ready (%dx%d, facing=%s)",
            self._constraints.width,
            self._constraints.height,
            self._constraints.facing_mode,
        )
        self._publish(SessionEventType.SYSTEM, "Camera and microphone are ready")

    async def begin(self) -> None:
        """Move from welcome to camera setup and request the camera."""
        self.proceed_to_camera_setup()
        await self.request_camera_access()

    def start_interview(self) -> None:
        """Enter recording at the first question once the camera is ready."""
        self._require_stage(SessionStage.CAMERA_SETUP, operation="start_interview")
        if not self.camera_ready:
            raise SessionStateError("Camera is not ready")

        self._question_index = 0
        self._time_remaining = self._definition.questions[0].time_limit_seconds
        self._transition(SessionStage.RECORDING)

    def start_recording(self) -> None:
        """
        Start capturing the current question's answer.

        Starting again after a stop is a retake: chunks captured by the
        previous take are discarded.
        """
        self._require_stage(SessionStage.RECORDING, operation="start_recording")
        if not self.camera_ready:
            raise SessionStateError("Camera is not ready")
        if self._is_recording:
            raise SessionStateError("Already recording")

        if self._chunks:
            logger.info("Retake on question %d, discarding previous take", self._question_index)
            self._chunks = []

        question = self.current_question
        recorder = self._device.create_recorder(
            self._stream,
            self._constraints.mime_type,
            self._on_chunk,
        )
        recorder.start()
        self._recorder = recorder
        self._is_recording = True
        self._time_remaining = question.time_limit_seconds

        self._cancel_countdown()
        self._countdown = Countdown(
            question.time_limit_seconds,
            on_tick=self._on_tick,
            on_expire=self._on_expire,
            interval=self._tick_interval,
            sleep=self._sleep,
        )
        self._countdown.start()

        logger.info(
            "Recording question %d (id=%d, limit=%ds)",
            self._question_index,
            question.id,
            question.time_limit_seconds,
        )
        self._publish(
            SessionEventType.RECORDING,
            "Recording started",
            time_remaining=self._time_remaining,
            ok=True,
        )

    def stop_recording(self) -> bool:
        """
        Stop capturing. Does not submit.

        Returns:
            True if a recording was stopped, False if nothing was recording.
        """
        if not self._is_recording:
            return False

        self._is_recording = False
        self._cancel_countdown()
        self._stop_recorder()

        logger.info(
            "Stopped recording question %d (%d chunks, %ds left)",
            self._question_index,
            len(self._chunks),
            self._time_remaining,
        )
        self._publish(
            SessionEventType.RECORDING,
            "Recording stopped",
            time_remaining=self._time_remaining,
            ok=False,
        )
        return True

    async def submit_and_advance(self) -> None:
        """
        Upload the current clip and move to the next question or finish.

        Upload and completion failures are non-fatal: they are logged,
        reported, and the session advances anyway. A session closed while
        the upload is in flight stays where it was.

        Raises:
            SessionStateError: Not in recording, still recording, or nothing
                captured. The session is left unchanged.
        """
        self._require_stage(SessionStage.RECORDING, operation="submit_and_advance")
        if self._is_recording:
            raise SessionStateError("Stop recording before submitting")
        if not self._chunks:
            raise SessionStateError("Nothing recorded for the current question")

        question = self.current_question
        if question.id in self._uploaded_question_ids:
            raise SessionStateError(f"Question {question.id} was already submitted")

        clip = b"".join(self._chunks)
        self._cancel_countdown()
        self._transition(SessionStage.UPLOADING)
        self._set_upload_progress(0)

        await self._upload_clip(question, clip)

        if self._closed:
            # Candidate left mid-upload: no advance and no completion signal.
            logger.info("Session closed during upload of question %d", question.id)
            return

        self._set_upload_progress(100)
        self._chunks = []

        if self.is_last_question:
            await self._finish()
            return

        self._question_index += 1
        self._time_remaining = self.current_question.time_limit_seconds
        self._upload_progress = 0
        self._transition(SessionStage.RECORDING)

    def _set_upload_progress(self, progress: int) -> None:
        self._upload_progress = progress
        self._publish(SessionEventType.UPLOAD, f"Upload {progress}%", progress=progress)

    async def _upload_clip(self, question: Question, clip: bytes) -> bool:
        self._uploaded_question_ids.add(question.id)

        for attempt in range(1, self._max_upload_attempts + 1):
            try:
                await self._api.upload_clip(
                    self.token,
                    question.id,
                    clip,
                    content_type=self._constraints.container_type,
                )
            except UploadError as exc:
                self._uploads.append(
                    UploadAttempt(
                        question_id=question.id,
                        attempt=attempt,
                        ok=False,
                        size_bytes=len(clip),
                        detail=exc.detail,
                    )
                )
                logger.warning(
                    "Upload attempt %d/%d for question %d failed: %s",
                    attempt,
                    self._max_upload_attempts,
                    question.id,
                    exc.detail,
                )
                if attempt < self._max_upload_attempts:
                    await self._sleep(self._upload_backoff_seconds * attempt)
                    continue

                self._publish(
                    SessionEventType.ERROR,
                    f"Upload failed for question {question.id}",
                    ok=False,
                )
                await self._report_failure(
                    {
                        "event_type": "upload_failed",
                        "question_id": question.id,
                        "attempts": attempt,
                        "size_bytes": len(clip),
                        "status_code": exc.status_code,
                        "detail": exc.detail,
                    }
                )
                return False

            self._uploads.append(
                UploadAttempt(
                    question_id=question.id,
                    attempt=attempt,
                    ok=True,
                    size_bytes=len(clip),
                )
            )
            self._publish(
                SessionEventType.UPLOAD,
                f"Uploaded answer to question {question.id}",
                progress=self._upload_progress,
                ok=True,
            )
            return True

        return False

    async def _finish(self) -> None:
        if not self._completion_sent:
            self._completion_sent = True
            try:
                await self._api.complete_session(self.token)
                self._completion_acknowledged = True
            except CompletionSignalError as exc:
                self._completion_acknowledged = False
                logger.warning("Completion signal failed: %s", exc.detail)
                self._publish(SessionEventType.ERROR, "Completion signal failed", ok=False)
                await self._report_failure(
                    {
                        "event_type": "completion_failed",
                        "status_code": exc.status_code,
                        "detail": exc.detail,
                    }
                )

        self._ended_at = _format_utc_timestamp(datetime.now(timezone.utc))
        self._transition(SessionStage.COMPLETE)
        self._release_stream()

    def close(self) -> None:
        """
        Tear the session down (candidate navigated away or flow finished).

        Cancels the countdown, stops any active recorder and stops every
        track of the stream. Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        self._is_recording = False
        self._cancel_countdown()
        self._stop_recorder()
        self._release_stream()
        if self._ended_at is None:
            self._ended_at = _format_utc_timestamp(datetime.now(timezone.utc))
        logger.debug("Session %s closed in stage %s", self.token, self._stage.value)

    def summary(self) -> SessionSummary:
        """Build the summary shown to the candidate at the end."""
        definition = self._definition
        answered = len(self._uploaded_question_ids)
        return SessionSummary(
            token=self.token,
            stage=self._stage,
            candidate_name=definition.candidate_name if definition else None,
            job_title=definition.job_title if definition else None,
            company_name=definition.company_name if definition else None,
            questions_total=definition.question_count if definition else 0,
            questions_answered=answered,
            uploads=list(self._uploads),
            completion_acknowledged=self._completion_acknowledged,
            started_at=self._started_at,
            ended_at=self._ended_at,
        )
