#!/usr/bin/env python3
"""
Async Interview Session Simulator.

Runs a complete candidate session against an interview API using a
synthetic camera: loads the interview, records each question, uploads the
clips and sends the completion signal, logging every session event.

Usage:
    # Start the mock API first:
    uv run python mock_interview_api.py

    # In another terminal, run the simulator:
    uv run python simulate_interview.py --token demo-interview

    # Faster than real time, with the second answer running past its limit:
    uv run python simulate_interview.py --token demo-interview --tick-interval 0.05 --answer-seconds 10 200 5
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Final, Sequence

from dotenv import load_dotenv

from interview_recorder import (
    InterviewApiError,
    InvalidTokenError,
    PermissionDeniedError,
    SessionEventPublisher,
    SessionEventType,
)
from recorder_platform import load_recorder_config
from recorder_platform.factory import build_api_client, build_session
from simulation_engine import SyntheticCaptureDevice, run_scripted_session

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger: logging.Logger = logging.getLogger(__name__)


# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS: Final[int] = 0
EXIT_CONNECTION_ERROR: Final[int] = 1
EXIT_INVALID_TOKEN: Final[int] = 2
EXIT_PERMISSION_DENIED: Final[int] = 3
EXIT_INTERRUPTED: Final[int] = 130  # Standard SIGINT exit code


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_TOKEN: Final[str] = "demo-interview"
DEFAULT_ANSWER_SECONDS: Final[tuple[int, ...]] = (10, 200, 5)


async def _log_events(queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        if event.event_type == SessionEventType.TICK:
            continue
        logger.info("[event] %s: %s", event.event_type.value, event.content)


async def run_simulation(
    token: str,
    answer_seconds: Sequence[int],
    *,
    api_url: str | None,
    config_path: str | None,
    tick_interval: float | None,
    deny_camera: bool,
) -> int:
    """
    Run one scripted session.

    Returns:
        Exit code indicating success or failure.
    """
    config, resolved_path = load_recorder_config(config_path)
    if api_url:
        config = config.model_copy(
            update={"api": config.api.model_copy(update={"base_url": api_url})}
        )
    if tick_interval is not None:
        config = config.model_copy(
            update={
                "countdown": config.countdown.model_copy(
                    update={"tick_interval_seconds": tick_interval}
                )
            }
        )
    interval = config.countdown.tick_interval_seconds

    logger.info("Config: %s", resolved_path)
    logger.info("API: %s", config.api.base_url)
    logger.info("Seconds per tick: %s", interval)

    publisher = SessionEventPublisher()
    event_task = asyncio.create_task(_log_events(publisher.subscribe()))
    device = SyntheticCaptureDevice(deny_permission=deny_camera)

    try:
        async with build_api_client(config) as api:
            async with build_session(token, config, api, device, publisher=publisher) as session:
                try:
                    summary = await run_scripted_session(
                        session,
                        answer_seconds,
                        tick_interval=interval,
                    )
                except InvalidTokenError:
                    logger.error("%s", session.error_message)
                    return EXIT_INVALID_TOKEN
                except InterviewApiError as exc:
                    logger.error("%s: %s", session.error_message, exc)
                    return EXIT_CONNECTION_ERROR
                except PermissionDeniedError:
                    logger.error("%s", session.error_message)
                    return EXIT_PERMISSION_DENIED
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass

    logger.info("\n%s", "=" * 60)
    logger.info("Interview complete for %s", summary.candidate_name)
    logger.info("%s", "=" * 60)
    logger.info("Questions answered: %d/%d", summary.questions_answered, summary.questions_total)
    logger.info("Upload attempts: %d", len(summary.uploads))
    if summary.failed_uploads:
        logger.warning("Failed uploads for questions: %s", summary.failed_uploads)
    logger.info("Completion acknowledged: %s", summary.completion_acknowledged)
    logger.info("Live tracks after teardown: %d", device.live_track_count)

    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run the simulation."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Simulate a candidate answering an async video interview.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run the demo interview against the local mock API
    uv run python simulate_interview.py

    # Custom API and token
    uv run python simulate_interview.py --api-url http://localhost:9000/api --token abc123

Environment Variables:
    RECORDER_CONFIG_PATH   Recorder config JSON (default: bundled local.json)
    INTERVIEW_TOKEN        Interview token (default: demo-interview)
        """,
    )
    parser.add_argument("--token", type=str, default=None, help="Interview token")
    parser.add_argument("--api-url", type=str, default=None, help="Interview API base URL")
    parser.add_argument("--config", type=str, default=None, help="Recorder config JSON path")
    parser.add_argument(
        "--answer-seconds",
        type=int,
        nargs="+",
        default=list(DEFAULT_ANSWER_SECONDS),
        help="Seconds to answer each question (last value repeats)",
    )
    parser.add_argument(
        "--tick-interval",
        type=float,
        default=None,
        help="Real seconds per countdown tick (default from config)",
    )
    parser.add_argument(
        "--deny-camera",
        action="store_true",
        help="Simulate the candidate refusing camera access",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    load_dotenv()
    token = args.token or os.environ.get("INTERVIEW_TOKEN", DEFAULT_TOKEN)

    try:
        return asyncio.run(
            run_simulation(
                token,
                args.answer_seconds,
                api_url=args.api_url,
                config_path=args.config,
                tick_interval=args.tick_interval,
                deny_camera=args.deny_camera,
            )
        )
    except KeyboardInterrupt:
        logger.info("\nSimulation interrupted")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
