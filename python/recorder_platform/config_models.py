"""Recorder configuration models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class FailureRouteType(str, Enum):
    """Supported failure-report route types."""

    LOG = "log"
    WEBHOOK = "webhook"


class ApiConfig(BaseModel):
    """Interview API endpoint and per-call timeouts."""

    base_url: str = Field(default="http://127.0.0.1:8000/api", min_length=1)
    timeout_seconds: float = Field(default=10.0, gt=0)
    upload_timeout_seconds: float = Field(default=120.0, gt=0)

    model_config = {"extra": "forbid"}


class CaptureConfig(BaseModel):
    """Requested camera/microphone stream."""

    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)
    facing_mode: str = Field(default="user", min_length=1)
    audio: bool = True
    mime_type: str = Field(default="video/webm;codecs=vp9", min_length=1)

    model_config = {"extra": "forbid"}


class UploadPolicyConfig(BaseModel):
    """Clip upload retry policy. One attempt means at-most-once delivery."""

    max_attempts: int = Field(default=1, ge=1, le=5)
    backoff_seconds: float = Field(default=2.0, ge=0)

    model_config = {"extra": "forbid"}


class CountdownConfig(BaseModel):
    """Answer countdown settings."""

    tick_interval_seconds: float = Field(default=1.0, gt=0)

    model_config = {"extra": "forbid"}


class FailureRouteConfig(BaseModel):
    """Single failure-report route declaration."""

    id: str = Field(..., min_length=1)
    type: FailureRouteType
    enabled: bool = True
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: float = 5.0

    @model_validator(mode="after")
    def validate_route(self) -> "FailureRouteConfig":
        if self.type == FailureRouteType.WEBHOOK and self.enabled and not self.url:
            raise ValueError("failure_routes[].url is required for enabled webhook routes")
        return self

    model_config = {"extra": "forbid"}


class RecorderConfig(BaseModel):
    """Complete configuration for one recorder deployment."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    uploads: UploadPolicyConfig = Field(default_factory=UploadPolicyConfig)
    countdown: CountdownConfig = Field(default_factory=CountdownConfig)
    failure_routes: tuple[FailureRouteConfig, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_route_ids(self) -> "RecorderConfig":
        ids = [route.id for route in self.failure_routes]
        if len(ids) != len(set(ids)):
            raise ValueError("failure_routes must have unique ids")
        return self

    model_config = {"extra": "forbid"}
