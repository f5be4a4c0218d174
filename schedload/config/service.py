"""
Settings loading for schedload.

Reads DriverSettings from SCHEDLOAD_* environment variables.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from .schemas import DriverSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "SCHEDLOAD_"
_TRUE_VALUES = ("1", "true", "yes", "on")


def _env(name: str) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def load_settings() -> DriverSettings:
    """
    Build settings from the environment.

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    settings = DriverSettings(
        verbose=_env_flag("VERBOSE"),
        reporter_period_ms=_env("REPORTER_PERIOD_MS") or 1000,
        report_name_filter=_env("REPORT_NAME_FILTER"),
        resolution_policy=_env("RESOLUTION_POLICY") or "short_by_implementation",
    )
    logger.debug(f"[config] Loaded settings: {settings.model_dump()}")
    return settings


@lru_cache()
def get_settings() -> DriverSettings:
    """
    Get process-wide settings from the environment.

    Uses lru_cache for singleton pattern.
    """
    return load_settings()
