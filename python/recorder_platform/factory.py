"""Build recorder components from a validated config."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx

from interview_recorder import (
    CaptureConstraints,
    InterviewApiClient,
    InterviewSession,
    MediaCaptureDevice,
    SessionEventPublisher,
)
from recorder_platform.config_models import RecorderConfig
from recorder_platform.routes import RouteOrchestrator, build_route_orchestrator


def build_capture_constraints(config: RecorderConfig) -> CaptureConstraints:
    capture = config.capture
    return CaptureConstraints(
        width=capture.width,
        height=capture.height,
        facing_mode=capture.facing_mode,
        audio=capture.audio,
        mime_type=capture.mime_type,
    )


def build_api_client(
    config: RecorderConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> InterviewApiClient:
    return InterviewApiClient(
        config.api.base_url,
        timeout_seconds=config.api.timeout_seconds,
        upload_timeout_seconds=config.api.upload_timeout_seconds,
        transport=transport,
    )


def build_session(
    token: str,
    config: RecorderConfig,
    api: InterviewApiClient,
    device: MediaCaptureDevice,
    *,
    publisher: SessionEventPublisher | None = None,
    failure_routes: RouteOrchestrator | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> InterviewSession:
    """Create an InterviewSession wired with the config's policies and routes."""
    return InterviewSession(
        token,
        api,
        device,
        publisher=publisher,
        failure_reporter=failure_routes or build_route_orchestrator(config),
        constraints=build_capture_constraints(config),
        tick_interval=config.countdown.tick_interval_seconds,
        sleep=sleep,
        max_upload_attempts=config.uploads.max_attempts,
        upload_backoff_seconds=config.uploads.backoff_seconds,
    )
