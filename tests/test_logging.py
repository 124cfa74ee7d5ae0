"""
AQUEUE — Logging & Correlation ID Tests
========================================
Validates:
- configure_logging() renders JSON with app context and correlation ID
- stdlib records share the processors and bound context
- Reconfiguring replaces only the handler it installed
- Queue lifecycle events are emitted with the queue name
"""

from __future__ import annotations

import io
import json
import logging

import structlog
from structlog.testing import capture_logs

from aqueue.core.tracing import bind_correlation_id, correlation_id_ctx
from aqueue.queue import AsyncQueue


def test_structured_json_output(monkeypatch):
    """JSON lines include app and correlation_id."""
    monkeypatch.setenv("AQUEUE_LOG_FORMAT", "json")
    monkeypatch.setenv("AQUEUE_LOG_LEVEL", "INFO")
    from aqueue.core.logging import configure_logging, get_logger

    stream = io.StringIO()
    handler = configure_logging(stream=stream)
    try:
        logger = get_logger("test")
        with bind_correlation_id("log-test-cid"):
            logger.info("test.event", entry_id="abc")

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "test.event"
        assert record["entry_id"] == "abc"
        assert record["app"] == "aqueue"
        assert record["correlation_id"] == "log-test-cid"
    finally:
        structlog.reset_defaults()
        logging.getLogger().removeHandler(handler)


def test_console_format(settings):
    from aqueue.core.logging import configure_logging, get_logger

    stream = io.StringIO()
    handler = configure_logging(stream=stream)
    try:
        get_logger("test").warning("console.event", queue="q")
        assert "console.event" in stream.getvalue()
    finally:
        structlog.reset_defaults()
        logging.getLogger().removeHandler(handler)


def test_stdlib_records_rendered_with_bound_context():
    from aqueue.core.logging import configure_logging

    stream = io.StringIO()
    handler = configure_logging(level="INFO", log_format="json", stream=stream)
    try:
        with structlog.contextvars.bound_contextvars(queue="reports"):
            logging.getLogger("app.worker").info("plain stdlib line")

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "plain stdlib line"
        assert record["queue"] == "reports"
        assert record["logger"] == "app.worker"
    finally:
        structlog.reset_defaults()
        logging.getLogger().removeHandler(handler)


def test_reconfigure_replaces_own_handler_only():
    from aqueue.core.logging import configure_logging

    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    first = configure_logging(stream=io.StringIO())
    second = configure_logging(stream=io.StringIO())
    try:
        assert first not in root.handlers
        assert second in root.handlers
        assert foreign in root.handlers
    finally:
        structlog.reset_defaults()
        root.removeHandler(second)
        root.removeHandler(foreign)


def test_correlation_id_context_isolation():
    """Context variable is properly scoped and reset."""
    assert correlation_id_ctx.get(None) is None

    with bind_correlation_id("isolated-id") as cid:
        assert cid == "isolated-id"
        assert correlation_id_ctx.get() == "isolated-id"

    assert correlation_id_ctx.get(None) is None


def test_generated_correlation_id():
    with bind_correlation_id() as cid:
        assert len(cid) == 36
        assert correlation_id_ctx.get() == cid


class TestQueueEvents:
    async def test_lifecycle_events(self):
        with capture_logs() as logs:
            queue = AsyncQueue(name="events", auto_start=False)
            handle = queue.submit(lambda: "ok")
            queue.start()
            await handle
            queue.pause()

        events = [e["event"] for e in logs]
        for expected in (
            "queue.created",
            "queue.task_submitted",
            "queue.started",
            "queue.task_started",
            "queue.task_fulfilled",
            "queue.idle",
            "queue.paused",
        ):
            assert expected in events
        assert all(e.get("queue") == "events" for e in logs)

    async def test_rejection_logged_as_warning(self):
        def failing():
            raise RuntimeError("kaput")

        with capture_logs() as logs:
            queue = AsyncQueue(name="failing")
            handle = queue.submit(failing)
            try:
                await handle
            except RuntimeError:
                pass

        rejected = [e for e in logs if e["event"] == "queue.task_rejected"]
        assert len(rejected) == 1
        assert rejected[0]["log_level"] == "warning"
        assert rejected[0]["error_type"] == "RuntimeError"
        assert rejected[0]["error"] == "kaput"
        assert rejected[0]["duration_ms"] is not None

    async def test_clear_logged(self):
        with capture_logs() as logs:
            queue = AsyncQueue(auto_start=False)
            queue.submit(lambda: None)
            queue.clear()

        cleared = [e for e in logs if e["event"] == "queue.cleared"]
        assert cleared[0]["cleared"] == 1
        assert cleared[0]["mode"] == "cancel"
