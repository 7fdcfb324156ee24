"""Recorder platform package: configuration and failure-report routes."""

from recorder_platform.config_loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    load_recorder_config,
)
from recorder_platform.config_models import (
    ApiConfig,
    CaptureConfig,
    CountdownConfig,
    FailureRouteConfig,
    FailureRouteType,
    RecorderConfig,
    UploadPolicyConfig,
)

__all__ = [
    "load_recorder_config",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "ApiConfig",
    "CaptureConfig",
    "CountdownConfig",
    "FailureRouteConfig",
    "FailureRouteType",
    "RecorderConfig",
    "UploadPolicyConfig",
]
