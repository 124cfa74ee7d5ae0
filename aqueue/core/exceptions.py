"""
AQUEUE — Centralized Exception Taxonomy
=======================================
Category-based exception hierarchy with a severity property.

Design decisions:
- Category-based exceptions (QueueError, ConfigurationError)
- Severity property on each exception for error classification
- Technical details only: error code plus queue / entry identifiers
- Misuse errors also subclass the matching builtin (TypeError, ValueError)
  so callers can catch them without importing this module

Task failures are NOT represented here: the exception raised by a task is
delivered, unchanged, through that task's result handle.

Usage:
    from aqueue.core.exceptions import AQueueError, InvalidTaskError

    raise InvalidTaskError(
        "fn must be callable",
        queue="reports",
    )
"""

from __future__ import annotations

from enum import StrEnum


class ErrorSeverity(StrEnum):
    """
    Error severity levels for exception classification.

    LOW < MEDIUM < HIGH < CRITICAL
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AQueueError(Exception):
    """
    Base exception for all aqueue-specific errors.

    Provides:
    - severity: Classification for error handling/routing
    - error_code: Unique identifier for programmatic handling
    - Tracing identifiers: queue name, entry_id
    """

    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    error_code: str = "AQUEUE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        queue: str | None = None,
        entry_id: str | None = None,
    ) -> None:
        self.queue = queue
        self.entry_id = entry_id
        super().__init__(message)

    def __repr__(self) -> str:
        parts = [
            f"{self.__class__.__name__}(",
            f"error_code={self.error_code!r}, ",
            f"severity={self.severity.value!r}",
        ]
        if self.queue:
            parts.append(f", queue={self.queue!r}")
        if self.entry_id:
            parts.append(f", entry_id={self.entry_id!r}")
        parts.append(")")
        return "".join(parts)


# ── Queue Exceptions ──────────────────────────────────────────────────────


class QueueError(AQueueError):
    """Errors raised by the queue itself (never by submitted work)."""

    error_code = "QUEUE_ERROR"


class InvalidTaskError(QueueError, TypeError):
    """Raised synchronously by ``submit()`` when given unusable work."""

    severity = ErrorSeverity.LOW
    error_code = "INVALID_TASK_ERROR"


class QueueStateError(QueueError):
    """Queue bookkeeping reached a state it must never reach."""

    severity = ErrorSeverity.CRITICAL
    error_code = "QUEUE_STATE_ERROR"


class InvalidTransitionError(QueueStateError):
    """Raised when a task entry is moved along an undefined lifecycle edge."""

    error_code = "INVALID_TRANSITION_ERROR"


# ── Configuration Exceptions ──────────────────────────────────────────────


class ConfigurationError(AQueueError):
    """Errors in configuration (missing settings, invalid values)."""

    severity = ErrorSeverity.HIGH
    error_code = "CONFIGURATION_ERROR"


class InvalidConfigurationError(ConfigurationError, ValueError):
    """Raised when a configuration value is invalid."""

    error_code = "INVALID_CONFIGURATION_ERROR"
