"""
AQUEUE — Test Fixtures
======================
Shared pytest fixtures.

Every test gets a fresh Settings instance, so environment overrides made
with ``monkeypatch.setenv`` in one test never leak into another.
"""

from __future__ import annotations

import asyncio

import pytest


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Ensure a fresh Settings instance for each test."""
    from aqueue.core.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(monkeypatch):
    """Return a settings instance with test defaults."""
    monkeypatch.setenv("AQUEUE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("AQUEUE_LOG_FORMAT", "console")
    from aqueue.core.config import get_settings
    return get_settings()


# ── Helpers ──────────────────────────────────────────────────────────────


class ConcurrencyTracker:
    """Task factory that records how many of its tasks overlap."""

    def __init__(self, hold_seconds: float = 0.01) -> None:
        self.hold_seconds = hold_seconds
        self.current = 0
        self.peak = 0
        self.completed = 0

    async def __call__(self) -> None:
        self.current += 1
        self.peak = max(self.peak, self.current)
        try:
            await asyncio.sleep(self.hold_seconds)
        finally:
            self.current -= 1
            self.completed += 1


@pytest.fixture
def tracker() -> ConcurrencyTracker:
    return ConcurrencyTracker()
