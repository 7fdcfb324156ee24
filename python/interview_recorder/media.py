"""Capture device interfaces consumed by the interview session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence


__all__ = [
    "CaptureConstraints",
    "ChunkCallback",
    "MediaTrack",
    "MediaStream",
    "MediaRecorder",
    "MediaCaptureDevice",
    "release_stream",
]


logger = logging.getLogger(__name__)


ChunkCallback = Callable[[bytes], None]


@dataclass(frozen=True)
class CaptureConstraints:
    """Requested audio+video stream shape."""

    width: int = 1280
    height: int = 720
    facing_mode: str = "user"
    audio: bool = True
    mime_type: str = "video/webm;codecs=vp9"

    @property
    def container_type(self) -> str:
        """Container MIME type without codec parameters."""
        return self.mime_type.split(";", 1)[0].strip()


class MediaTrack(Protocol):
    """One audio or video track of a live stream."""

    kind: str

    @property
    def ready_state(self) -> str:
        """Either "live" or "ended"."""

    def stop(self) -> None:
        """Stop the track. Stopping an ended track is a no-op."""


class MediaStream(Protocol):
    """A combined audio+video capture stream."""

    def get_tracks(self) -> Sequence[MediaTrack]:
        """Return every track of the stream."""


class MediaRecorder(Protocol):
    """Encodes a live stream into binary chunks."""

    @property
    def state(self) -> str:
        """Either "inactive" or "recording"."""

    def start(self) -> None:
        """Begin encoding."""

    def stop(self) -> None:
        """
        Stop encoding.

        Buffered data must be delivered through the chunk callback before
        this returns.
        """


class MediaCaptureDevice(Protocol):
    """Platform audio/video capture primitive."""

    async def open_stream(self, constraints: CaptureConstraints) -> MediaStream:
        """
        Open a stream matching the constraints.

        Raises:
            PermissionDeniedError: Access denied or no suitable device.
        """

    def create_recorder(
        self,
        stream: MediaStream,
        mime_type: str,
        on_chunk: ChunkCallback,
    ) -> MediaRecorder:
        """Create an inactive recorder bound to the stream."""


def release_stream(stream: MediaStream) -> int:
    """
    Stop every live track of a stream.

    Returns:
        Number of tracks that were live and have been stopped.
    """
    stopped = 0
    for track in stream.get_tracks():
        if track.ready_state != "ended":
            track.stop()
            stopped += 1
    logger.debug("Released media stream (%d tracks stopped)", stopped)
    return stopped
