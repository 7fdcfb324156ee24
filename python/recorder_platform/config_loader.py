"""Load and validate recorder configuration."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from recorder_platform.config_models import RecorderConfig


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RECORDER_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "configs" / "local.json"


def resolve_config_path(config_path: str | None = None) -> Path:
    """Resolve explicit path, then RECORDER_CONFIG_PATH, then the bundled local config."""
    raw_path = (config_path or os.environ.get(CONFIG_ENV_VAR) or "").strip()
    if not raw_path:
        logger.debug("No recorder config given, using %s", DEFAULT_CONFIG_PATH)
        return DEFAULT_CONFIG_PATH
    return Path(raw_path).expanduser()


def load_recorder_config(config_path: str | None = None) -> tuple[RecorderConfig, Path]:
    """Load recorder config JSON from disk with strict validation."""
    resolved_path = resolve_config_path(config_path).resolve()
    if not resolved_path.exists():
        raise RuntimeError(
            f"Recorder config file not found at '{resolved_path}'. "
            f"Set {CONFIG_ENV_VAR} or provide a valid --config path."
        )

    try:
        with open(resolved_path, "r", encoding="utf-8") as config_file:
            raw_config = json.load(config_file)
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read recorder config '{resolved_path}': {exc}"
        ) from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(
            f"Recorder config at '{resolved_path}' is not valid JSON: {exc}"
        ) from exc

    try:
        return RecorderConfig.model_validate(raw_config), resolved_path
    except ValidationError as exc:
        raise RuntimeError(
            f"Recorder config validation failed for '{resolved_path}': {exc}"
        ) from exc
