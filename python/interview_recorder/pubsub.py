"""
Session Event Pub/Sub.

Streams interview session progress (stage changes, countdown ticks,
recording state, upload progress, errors) to any number of UI consumers.

The publisher is owned by whoever builds the session and is passed in
explicitly; there is no module-level instance.

Example usage:
    publisher = SessionEventPublisher()
    queue = publisher.subscribe()
    session = InterviewSession(token, api, device, publisher=publisher)
    event = await queue.get()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


class SessionEventType(str, Enum):
    """
    Types of events published by an interview session.

    Attributes:
        STAGE: The session moved to a new stage.
        TICK: The answer countdown ticked.
        RECORDING: Recording started or stopped.
        UPLOAD: Upload started, progressed or finished.
        SYSTEM: Informational messages.
        ERROR: Fatal or non-fatal failures.
    """

    STAGE = "stage"
    TICK = "tick"
    RECORDING = "recording"
    UPLOAD = "upload"
    SYSTEM = "system"
    ERROR = "error"


def _get_utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class SessionEvent:
    """
    A single update from an interview session.

    Attributes:
        event_type: Category of the event.
        content: Human-readable description.
        timestamp: UTC timestamp when the event was created.
        stage: Session stage at publish time.
        question_index: Zero-based index of the current question.
        question_id: Id of the current question.
        time_remaining: Countdown value in seconds.
        progress: Upload progress percentage (0-100).
        ok: Outcome flag for upload/completion events.
    """

    event_type: SessionEventType
    content: str
    timestamp: str = field(default_factory=_get_utc_timestamp)
    stage: str | None = None
    question_index: int | None = None
    question_id: int | None = None
    time_remaining: int | None = None
    progress: int | None = None
    ok: bool | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "event_type": self.event_type.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "stage": self.stage,
            "question_index": self.question_index,
            "question_id": self.question_id,
            "time_remaining": self.time_remaining,
            "progress": self.progress,
            "ok": self.ok,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class SessionEventPublisher:
    """
    Broadcasts session events to subscriber queues.

    Subscriber queues are unbounded, so publishing never suspends. That lets
    synchronous callbacks (countdown ticks, recorder stops) publish directly.
    All calls must come from the event loop running the session.

    Attributes:
        max_history: Maximum number of events retained for late subscribers.
    """

    def __init__(self, max_history: int = 200) -> None:
        self._subscribers: list[asyncio.Queue[SessionEvent]] = []
        self._history: list[SessionEvent] = []
        self._max_history = max_history
        logger.debug("SessionEventPublisher initialized with max_history=%d", max_history)

    def subscribe(self, replay_history: bool = True) -> asyncio.Queue[SessionEvent]:
        """
        Subscribe to session events.

        Args:
            replay_history: Queue already-published events first.

        Returns:
            Queue receiving every subsequently published event.
        """
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        if replay_history:
            for event in self._history:
                queue.put_nowait(event)
        self._subscribers.append(queue)
        logger.debug("New subscriber added. Total: %d", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
        logger.debug("Subscriber removed. Total: %d", len(self._subscribers))

    def publish(self, event: SessionEvent) -> None:
        """Store the event in history and broadcast it."""
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history :]

        for queue in self._subscribers:
            queue.put_nowait(event)

        logger.debug("Published %s event: %s", event.event_type.value, event.content)

    @property
    def history(self) -> list[SessionEvent]:
        """Copy of the retained history."""
        return list(self._history)

    def events_of_type(self, event_type: SessionEventType) -> list[SessionEvent]:
        return [event for event in self._history if event.event_type == event_type]

    def clear_history(self) -> None:
        self._history.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
