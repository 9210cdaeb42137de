"""
Runtime configuration for pioagent.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BINARIES = ("pio", "platformio")
DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseModel):
    """Process-wide settings for invoking PlatformIO."""

    model_config = ConfigDict(frozen=True)

    # Tried in order; the first one the OS can spawn wins
    binary_names: tuple[str, ...] = DEFAULT_BINARIES
    json_output_flag: str = "--json-output"
    default_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_output_bytes: int = Field(default=DEFAULT_MAX_OUTPUT_BYTES, gt=0)
    log_level: str = "INFO"

    @field_validator("binary_names")
    @classmethod
    def _non_empty_binaries(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        names = tuple(name.strip() for name in value if name.strip())
        if not names:
            raise ValueError("at least one binary name is required")
        return names

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return level


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        Settings with defaults for every variable that is not set.

    Raises:
        ValueError: If a variable is set to an unusable value.
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}

    binaries = env.get("PIOAGENT_BINARIES")
    if binaries is not None:
        names = tuple(name.strip() for name in binaries.split(",") if name.strip())
        if not names:
            raise ValueError("Invalid config value: 'PIOAGENT_BINARIES' must name a binary.")
        values["binary_names"] = names

    timeout = env.get("PIOAGENT_DEFAULT_TIMEOUT")
    if timeout is not None:
        try:
            values["default_timeout_seconds"] = float(timeout)
        except ValueError:
            raise ValueError(
                "Invalid config value: 'PIOAGENT_DEFAULT_TIMEOUT' must be numeric."
            ) from None
        if values["default_timeout_seconds"] <= 0:
            raise ValueError("Invalid config value: 'PIOAGENT_DEFAULT_TIMEOUT' must be positive.")

    max_output = env.get("PIOAGENT_MAX_OUTPUT_BYTES")
    if max_output is not None:
        if not max_output.strip().isdigit() or int(max_output) <= 0:
            raise ValueError(
                "Invalid config value: 'PIOAGENT_MAX_OUTPUT_BYTES' must be a positive integer."
            )
        values["max_output_bytes"] = int(max_output)

    log_level = env.get("PIOAGENT_LOG_LEVEL", env.get("LOG_LEVEL"))
    if log_level is not None:
        if log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid config value: log level must be one of {', '.join(LOG_LEVELS)}."
            )
        values["log_level"] = log_level.upper()

    return Settings(**values)
