"""
Tests for the synthetic capture device, the scripted session runner and
the simulator CLI.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, AsyncIterator

import httpx
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager

import simulate_interview
from interview_recorder.errors import InvalidTokenError, PermissionDeniedError
from interview_recorder.media import CaptureConstraints, release_stream
from interview_recorder.models import SessionStage
from interview_recorder.pubsub import SessionEventPublisher, SessionEventType
from mock_interview_api import DEMO_TOKEN, InterviewStore, app
from recorder_platform import DEFAULT_CONFIG_PATH, RecorderConfig
from recorder_platform.factory import build_api_client, build_session
from simulation_engine import (
    WEBM_MAGIC,
    SyntheticCaptureDevice,
    answer_question,
    run_scripted_session,
)
from tests.mock_data import VALID_TOKEN, FakeInterviewApi, ManualClock, RecordingReporter


BYTES_PER_SECOND = 10


async def drive(clock: ManualClock, work: Awaitable[Any], max_seconds: int = 5000) -> Any:
    """Run `work` while advancing the clock one second at a time."""
    task = asyncio.ensure_future(work)
    for _ in range(max_seconds):
        if task.done():
            break
        await clock.advance(1)
    return await task


def make_config() -> RecorderConfig:
    return RecorderConfig.model_validate(
        {
            "api": {"base_url": "http://test/api"},
            "failure_routes": [{"id": "log", "type": "log"}],
        }
    )


@pytest_asyncio.fixture
async def transport() -> AsyncIterator[httpx.ASGITransport]:
    async with LifespanManager(app) as manager:
        yield httpx.ASGITransport(app=manager.app)


@pytest.fixture
def store(transport: httpx.ASGITransport) -> InterviewStore:
    return app.state.store


# =============================================================================
# Synthetic Device
# =============================================================================


class TestSyntheticCaptureDevice:
    """Tests for the synthetic camera."""

    @pytest.mark.asyncio
    async def test_stream_has_video_and_audio(self) -> None:
        device = SyntheticCaptureDevice()

        stream = await device.open_stream(CaptureConstraints())

        assert sorted(track.kind for track in stream.get_tracks()) == ["audio", "video"]
        assert device.live_track_count == 2

    @pytest.mark.asyncio
    async def test_video_only_stream(self) -> None:
        device = SyntheticCaptureDevice()

        stream = await device.open_stream(CaptureConstraints(audio=False))

        assert [track.kind for track in stream.get_tracks()] == ["video"]

    @pytest.mark.asyncio
    async def test_denied_permission(self) -> None:
        device = SyntheticCaptureDevice(deny_permission=True)

        with pytest.raises(PermissionDeniedError):
            await device.open_stream(CaptureConstraints())

        assert device.streams_opened == []

    @pytest.mark.asyncio
    async def test_release_stream_stops_live_tracks_once(self) -> None:
        device = SyntheticCaptureDevice()
        stream = await device.open_stream(CaptureConstraints())

        assert release_stream(stream) == 2
        assert release_stream(stream) == 0
        assert device.live_track_count == 0

    @pytest.mark.asyncio
    async def test_recorder_chunk_sized_by_elapsed_time(self) -> None:
        now = [100.0]
        chunks: list[bytes] = []
        device = SyntheticCaptureDevice(bytes_per_second=BYTES_PER_SECOND, clock=lambda: now[0])
        stream = await device.open_stream(CaptureConstraints())
        recorder = device.create_recorder(stream, "video/webm;codecs=vp9", chunks.append)

        recorder.start()
        assert device.active_recorder_count == 1
        now[0] += 12
        recorder.stop()
        recorder.stop()

        assert len(chunks) == 1
        assert chunks[0].startswith(WEBM_MAGIC)
        assert len(chunks[0]) == len(WEBM_MAGIC) + 12 * BYTES_PER_SECOND
        assert recorder.state == "inactive"

    @pytest.mark.asyncio
    async def test_recorder_refuses_ended_stream(self) -> None:
        device = SyntheticCaptureDevice()
        stream = await device.open_stream(CaptureConstraints())
        release_stream(stream)
        recorder = device.create_recorder(stream, "video/webm", lambda chunk: None)

        with pytest.raises(RuntimeError, match="ended"):
            recorder.start()


# =============================================================================
# Scripted Session
# =============================================================================


class TestScriptedSession:
    """End-to-end sessions against the mock interview API."""

    @pytest.mark.asyncio
    async def test_full_session_against_mock_api(
        self, transport: httpx.ASGITransport, store: InterviewStore
    ) -> None:
        clock = ManualClock()
        config = make_config()
        device = SyntheticCaptureDevice(bytes_per_second=BYTES_PER_SECOND, clock=lambda: clock.now)
        publisher = SessionEventPublisher(max_history=1000)

        async with build_api_client(config, transport=transport) as api:
            async with build_session(
                DEMO_TOKEN, config, api, device, publisher=publisher, sleep=clock.sleep
            ) as session:
                summary = await drive(
                    clock,
                    run_scripted_session(session, [10, 200, 5], sleep=clock.sleep),
                )

        assert summary.stage == SessionStage.COMPLETE
        assert summary.questions_total == 3
        assert summary.questions_answered == 3
        assert summary.completion_acknowledged is True
        assert summary.failed_uploads == []
        assert session.auto_stop_count == 1

        stored = store.get(DEMO_TOKEN)
        assert stored.completed is True
        assert sorted(stored.clips) == [101, 102, 103]
        assert len(stored.clips[101].data) == len(WEBM_MAGIC) + 10 * BYTES_PER_SECOND
        assert len(stored.clips[102].data) == len(WEBM_MAGIC) + 180 * BYTES_PER_SECOND
        assert stored.clips[103].filename == "question_103.webm"
        assert store.stats["completions"] == 1
        assert device.live_track_count == 0

        ticks = publisher.events_of_type(SessionEventType.TICK)
        assert min(event.time_remaining for event in ticks) == 0

    @pytest.mark.asyncio
    async def test_storage_failure_is_reported_and_skipped(
        self, transport: httpx.ASGITransport, store: InterviewStore
    ) -> None:
        store.get(DEMO_TOKEN).fail_uploads.add(102)
        clock = ManualClock()
        config = make_config()
        reporter = RecordingReporter()
        device = SyntheticCaptureDevice(clock=lambda: clock.now)

        async with build_api_client(config, transport=transport) as api:
            async with build_session(
                DEMO_TOKEN, config, api, device, failure_routes=reporter, sleep=clock.sleep
            ) as session:
                summary = await drive(
                    clock,
                    run_scripted_session(session, [2], sleep=clock.sleep),
                )

        assert summary.stage == SessionStage.COMPLETE
        assert summary.failed_uploads == [102]
        assert sorted(store.get(DEMO_TOKEN).clips) == [101, 103]
        assert reporter.of_type("upload_failed")[0]["status_code"] == 503

    @pytest.mark.asyncio
    async def test_unknown_token(self, transport: httpx.ASGITransport) -> None:
        config = make_config()
        device = SyntheticCaptureDevice()

        async with build_api_client(config, transport=transport) as api:
            async with build_session("missing", config, api, device) as session:
                with pytest.raises(InvalidTokenError):
                    await run_scripted_session(session, [1])

        assert session.stage == SessionStage.ERROR
        assert device.streams_opened == []

    @pytest.mark.asyncio
    async def test_answer_question_reports_manual_stop(self) -> None:
        clock = ManualClock()
        config = make_config()
        device = SyntheticCaptureDevice(clock=lambda: clock.now)

        session = build_session(VALID_TOKEN, config, FakeInterviewApi(), device, sleep=clock.sleep)
        await session.load_interview()
        await session.begin()
        session.start_interview()

        auto_stopped = await drive(clock, answer_question(session, 4, sleep=clock.sleep))

        assert auto_stopped is False
        assert session.is_recording is False
        assert session.countdown_running is False
        assert len(session.captured_chunks) == 1
        session.close()

    @pytest.mark.asyncio
    async def test_requires_answer_durations(self) -> None:
        session = build_session(VALID_TOKEN, make_config(), FakeInterviewApi(), SyntheticCaptureDevice())

        with pytest.raises(ValueError):
            await run_scripted_session(session, [])


# =============================================================================
# CLI
# =============================================================================


class TestSimulatorCli:
    """Tests for simulate_interview.main exit codes."""

    @pytest.fixture(autouse=True)
    def in_process_api(self, monkeypatch: pytest.MonkeyPatch) -> InterviewStore:
        """Route the CLI's API client to the mock app without a server."""
        store = InterviewStore()
        store.reset()
        monkeypatch.setattr(app.state, "store", store, raising=False)

        def build_in_process(config):
            return build_api_client(config, transport=httpx.ASGITransport(app=app))

        monkeypatch.setattr(simulate_interview, "build_api_client", build_in_process)
        return store

    def run_cli(self, *args: str) -> int:
        return simulate_interview.main(
            [
                "--config",
                str(DEFAULT_CONFIG_PATH),
                "--api-url",
                "http://test/api",
                "--tick-interval",
                "0.001",
                *args,
            ]
        )

    def test_demo_interview_succeeds(self, in_process_api: InterviewStore) -> None:
        exit_code = self.run_cli("--token", DEMO_TOKEN, "--answer-seconds", "1")

        assert exit_code == simulate_interview.EXIT_SUCCESS
        assert in_process_api.get(DEMO_TOKEN).completed is True

    def test_invalid_token_exit_code(self) -> None:
        assert self.run_cli("--token", "missing") == simulate_interview.EXIT_INVALID_TOKEN

    def test_denied_camera_exit_code(self, in_process_api: InterviewStore) -> None:
        exit_code = self.run_cli("--token", DEMO_TOKEN, "--deny-camera")

        assert exit_code == simulate_interview.EXIT_PERMISSION_DENIED
        assert in_process_api.get(DEMO_TOKEN).clips == {}
