"""
AQUEUE — Correlation & Timing
===============================
Correlation ID propagation and span timing for queued work.

Every ``TaskEntry`` captures the submitter's ``contextvars`` context, so a
correlation ID bound around ``submit()`` is visible to the task body and to
every log line emitted while it runs.

Usage:
    from aqueue.core.tracing import bind_correlation_id, create_span

    with bind_correlation_id("req-42"):
        queue.submit(fetch_report)

    with create_span("report.render", rows=10) as span:
        ...
    print(span.duration_ms)
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Generator

# ── Context Variable ────────────────────────────────────────────────────
# Read by the logging processors; follows work through AsyncQueue.submit().
correlation_id_ctx: ContextVar[str | None] = ContextVar(
    "correlation_id", default=None
)


@contextmanager
def bind_correlation_id(cid: str | None = None) -> Generator[str, None, None]:
    """
    Bind a correlation ID for the duration of the block.

    A fresh UUID v4 is generated when ``cid`` is not given.
    """
    value = cid if cid else str(uuid.uuid4())
    token = correlation_id_ctx.set(value)
    try:
        yield value
    finally:
        correlation_id_ctx.reset(token)


@dataclass
class Span:
    """A single timed span."""

    name: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    start_time: float = field(default_factory=time.monotonic)
    end_time: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float | None:
        """Duration in milliseconds, or None if still open."""
        if self.end_time is None:
            return None
        return round((self.end_time - self.start_time) * 1000, 2)

    def close(self) -> None:
        """Close the span, recording end time."""
        if self.end_time is None:
            self.end_time = time.monotonic()


@contextmanager
def create_span(name: str, **metadata: Any) -> Generator[Span, None, None]:
    """
    Context manager that creates and auto-closes a timed span.

    Usage:
        with create_span("queue.task", entry_id="abc") as span:
            ...
        print(span.duration_ms)
    """
    span = Span(name=name, metadata=metadata)
    try:
        yield span
    finally:
        span.close()
