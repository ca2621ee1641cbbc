"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No capture logic
- No format constants
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    CAPTURE_SAMPLE_RATE_HZ,
    HOST_SAMPLE_RATE_HZ_DEFAULT,
    SAMPLE_BUFFER_CAPACITY_DEFAULT,
)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) == "1"


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the capture session.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    capture_sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ
    host_sample_rate_hz: int = HOST_SAMPLE_RATE_HZ_DEFAULT
    sample_buffer_capacity: int = SAMPLE_BUFFER_CAPACITY_DEFAULT
    flush_partial_on_stop: bool = False

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is malformed or not positive.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            enable_json_logs=_env_flag("ENABLE_JSON_LOGS", "1"),

            capture_sample_rate_hz=_env_int("CAPTURE_SAMPLE_RATE_HZ", CAPTURE_SAMPLE_RATE_HZ),
            host_sample_rate_hz=_env_int("HOST_SAMPLE_RATE_HZ", HOST_SAMPLE_RATE_HZ_DEFAULT),
            sample_buffer_capacity=_env_int(
                "SAMPLE_BUFFER_CAPACITY", SAMPLE_BUFFER_CAPACITY_DEFAULT
            ),
            flush_partial_on_stop=_env_flag("FLUSH_PARTIAL_ON_STOP", "0"),
        )
