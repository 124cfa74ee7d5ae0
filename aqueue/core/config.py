"""
AQUEUE — Configuration Management
==================================
Centralized, validated configuration with environment-based overrides.
All settings are loaded from environment variables with sensible defaults.

Usage:
    from aqueue.core.config import get_settings
    settings = get_settings()
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClearMode(StrEnum):
    """
    What ``AsyncQueue.clear()`` does with the result handles it discards.

    CANCEL:  cancel every discarded handle (awaiters see ``CancelledError``).
    ABANDON: leave the handles unsettled forever.
    """
    CANCEL = "cancel"
    ABANDON = "abandon"


class Settings(BaseSettings):
    """
    Root configuration object.

    All values can be overridden via environment variables prefixed with ``AQUEUE_``.
    Example: ``AQUEUE_DEFAULT_CONCURRENCY=4``
    """

    model_config = SettingsConfigDict(
        env_prefix="AQUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────────
    app_name: str = "aqueue"

    # ── Queue defaults ───────────────────────────────────────────────────
    default_concurrency: int = Field(
        default=1,
        ge=1,
        description="Concurrency used when AsyncQueue() is built without one.",
    )
    auto_start: bool = Field(
        default=True,
        description="Start admitting work as soon as it is submitted.",
    )
    clear_mode: ClearMode = ClearMode.CANCEL

    # ── Logging & Observability ──────────────────────────────────────────
    log_level: str = Field(
        default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field(default="json", pattern=r"^(json|console)$")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the singleton Settings instance.

    Cached so environment is read exactly once per process lifetime.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return Settings()
