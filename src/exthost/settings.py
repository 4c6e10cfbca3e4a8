"""Host settings — environment-driven configuration with CLI overrides."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

ENV_PREFIX = "EXTHOST_"

_ENV_FIELDS = {
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
    "TELEMETRY": "telemetry_enabled",
    "OTLP_ENDPOINT": "otlp_endpoint",
    "REQUEST_TIMEOUT": "request_timeout",
}


class SettingsError(Exception):
    """Raised when the environment holds an invalid setting."""


class HostSettings(BaseModel):
    """Runtime configuration for the host process and its client."""

    log_level: str = Field(default="WARNING", description="Level for the exthost logger.")
    log_format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        description="stdlib logging format string.",
    )
    telemetry_enabled: bool = Field(default=False, description="Enable OpenTelemetry export.")
    otlp_endpoint: str | None = Field(default=None, description="OTLP/gRPC collector endpoint.")
    request_timeout: float = Field(
        default=10.0, gt=0, description="Client-side seconds to wait for each response."
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            msg = f"unknown log level '{value}'"
            raise ValueError(msg)
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> HostSettings:
        """Build settings from ``EXTHOST_*`` variables, then apply *overrides*.

        ``None`` overrides are ignored so unset CLI options fall through to
        the environment.

        Raises:
            SettingsError: A variable or override fails validation.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            value = env.get(ENV_PREFIX + suffix)
            if value not in (None, ""):
                data[field_name] = value
        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(str(exc)) from exc
