"""
Synthetic capture device and scripted session runner.

Stands in for a browser camera so an InterviewSession can be driven end to
end from a terminal or a test: streams have one video and one audio track,
recorders emit a WebM-looking chunk sized by how long they recorded.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from interview_recorder.errors import PermissionDeniedError
from interview_recorder.media import CaptureConstraints, ChunkCallback
from interview_recorder.models import SessionSummary
from interview_recorder.session import InterviewSession

logger = logging.getLogger(__name__)


# EBML header magic that starts every WebM file
WEBM_MAGIC = b"\x1a\x45\xdf\xa3"
DEFAULT_BYTES_PER_SECOND = 4096


@dataclass
class SyntheticTrack:
    """One synthetic audio or video track."""

    kind: str
    label: str = ""
    _ended: bool = field(default=False, repr=False)

    @property
    def ready_state(self) -> str:
        return "ended" if self._ended else "live"

    def stop(self) -> None:
        self._ended = True


@dataclass
class SyntheticStream:
    """Stream with one video track and, if requested, one audio track."""

    constraints: CaptureConstraints
    tracks: list[SyntheticTrack] = field(default_factory=list)

    def get_tracks(self) -> Sequence[SyntheticTrack]:
        return list(self.tracks)

    @property
    def live_track_count(self) -> int:
        return sum(1 for track in self.tracks if track.ready_state == "live")


class SyntheticRecorder:
    """Recorder that emits one chunk on stop, sized by elapsed time."""

    def __init__(
        self,
        stream: SyntheticStream,
        mime_type: str,
        on_chunk: ChunkCallback,
        *,
        bytes_per_second: int = DEFAULT_BYTES_PER_SECOND,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stream = stream
        self.mime_type = mime_type
        self._on_chunk = on_chunk
        self._bytes_per_second = bytes_per_second
        self._clock = clock
        self._state = "inactive"
        self._started_at = 0.0

    @property
    def state(self) -> str:
        return self._state

    def start(self) -> None:
        if self._state == "recording":
            raise RuntimeError("Recorder already started")
        if self.stream.live_track_count == 0:
            raise RuntimeError("Cannot record an ended stream")
        self._state = "recording"
        self._started_at = self._clock()

    def stop(self) -> None:
        if self._state == "inactive":
            return
        self._state = "inactive"
        elapsed = max(0.0, self._clock() - self._started_at)
        size = max(1, int(elapsed * self._bytes_per_second))
        self._on_chunk(WEBM_MAGIC + random.randbytes(size))


class SyntheticCaptureDevice:
    """
    MediaCaptureDevice implementation backed by synthetic tracks.

    Attributes:
        deny_permission: Simulate the candidate refusing camera access.
        streams_opened: Every stream handed out, for inspection.
        recorders_created: Every recorder handed out, for inspection.
    """

    def __init__(
        self,
        *,
        deny_permission: bool = False,
        bytes_per_second: int = DEFAULT_BYTES_PER_SECOND,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.deny_permission = deny_permission
        self.bytes_per_second = bytes_per_second
        self.clock = clock
        self.streams_opened: list[SyntheticStream] = []
        self.recorders_created: list[SyntheticRecorder] = []
        self.requested_constraints: list[CaptureConstraints] = []

    async def open_stream(self, constraints: CaptureConstraints) -> SyntheticStream:
        self.requested_constraints.append(constraints)
        if self.deny_permission:
            raise PermissionDeniedError("Permission denied by user")

        tracks = [SyntheticTrack("video", f"Synthetic camera {constraints.width}x{constraints.height}")]
        if constraints.audio:
            tracks.append(SyntheticTrack("audio", "Synthetic microphone"))
        stream = SyntheticStream(constraints=constraints, tracks=tracks)
        self.streams_opened.append(stream)
        logger.debug("Opened synthetic stream with %d tracks", len(tracks))
        return stream

    def create_recorder(
        self,
        stream: SyntheticStream,
        mime_type: str,
        on_chunk: ChunkCallback,
    ) -> SyntheticRecorder:
        recorder = SyntheticRecorder(
            stream,
            mime_type,
            on_chunk,
            bytes_per_second=self.bytes_per_second,
            clock=self.clock,
        )
        self.recorders_created.append(recorder)
        return recorder

    @property
    def live_track_count(self) -> int:
        return sum(stream.live_track_count for stream in self.streams_opened)

    @property
    def active_recorder_count(self) -> int:
        return sum(1 for recorder in self.recorders_created if recorder.state == "recording")


async def answer_question(
    session: InterviewSession,
    answer_seconds: int,
    *,
    tick_interval: float = 1.0,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> bool:
    """
    Record the current question for up to `answer_seconds`.

    Returns:
        True if the countdown stopped the recording, False if stopped here.
    """
    session.start_recording()
    waited = 0
    while session.is_recording and waited < answer_seconds:
        await sleep(tick_interval)
        waited += 1
    return not session.stop_recording()


async def run_scripted_session(
    session: InterviewSession,
    answer_seconds: Sequence[int],
    *,
    tick_interval: float = 1.0,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> SessionSummary:
    """
    Drive a session from loading to complete.

    Args:
        session: A fresh session in the loading stage.
        answer_seconds: How long to answer each question. Missing entries
            reuse the last value; answers longer than the limit auto-stop.
        tick_interval: Real seconds per simulated second.
        sleep: Sleep coroutine, shared with the session's countdown in tests.

    Raises:
        InvalidTokenError, InterviewApiError, PermissionDeniedError:
            Terminal failures; the session is left in the error stage.
    """
    if not answer_seconds:
        raise ValueError("answer_seconds must contain at least one duration")

    definition = await session.load_interview()
    logger.info(
        "Interview for %s: %s at %s (%d questions)",
        definition.candidate_name,
        definition.job_title,
        definition.company_name,
        definition.question_count,
    )

    await session.begin()
    session.start_interview()

    for index, question in enumerate(definition.questions):
        seconds = answer_seconds[min(index, len(answer_seconds) - 1)]
        logger.info(
            "[%d/%d] %s (limit %ds, answering %ds)",
            index + 1,
            definition.question_count,
            question.prompt,
            question.time_limit_seconds,
            seconds,
        )
        auto_stopped = await answer_question(
            session,
            seconds,
            tick_interval=tick_interval,
            sleep=sleep,
        )
        if auto_stopped:
            logger.info("Time limit reached, recording stopped automatically")
        await session.submit_and_advance()

    return session.summary()
