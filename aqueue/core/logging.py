"""
AQUEUE — Structured Logging
============================
structlog loggers for the queue, plus an opt-in stdlib wiring helper.

The queue only ever asks for loggers.  While a task body runs, its queue
name, entry ID and task name are bound through ``structlog.contextvars``,
so anything the task itself logs is attributable to the entry that ran it.
Applications that want rendered output call ``configure_logging()`` once.

Usage:
    from aqueue.core.logging import get_logger
    logger = get_logger(__name__)
    logger.info("queue.task_submitted", queue="reports", priority=5)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from aqueue.core.config import get_settings
from aqueue.core.tracing import correlation_id_ctx

if TYPE_CHECKING:
    from aqueue.queue.entry import TaskEntry

# Marks the handler installed by configure_logging() so a second call
# replaces it instead of stacking another one.
_HANDLER_NAME = "aqueue"


def _add_app_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("app", get_settings().app_name)
    return event_dict


def _add_correlation_id(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Inject correlation_id from context variable if not already present.

    Tasks run inside the context captured at submission, so this picks up
    the submitter's ID even when the log line comes from the task body.
    """
    cid = correlation_id_ctx.get(None)
    if cid is not None:
        event_dict.setdefault("correlation_id", cid)
    return event_dict


def shared_processors() -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_app_name,
        _add_correlation_id,
    ]


def _renderers(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer()]


def configure_logging(
    *,
    level: str | None = None,
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> logging.Handler:
    """
    Route structlog through stdlib logging and install one root handler.

    ``level`` and ``log_format`` default to ``Settings.log_level`` and
    ``Settings.log_format``.  Handlers installed by the application are
    left alone; only a handler from an earlier call is replaced.
    """
    settings = get_settings()
    level = level or settings.log_level
    log_format = log_format or settings.log_format
    processors = shared_processors()

    structlog.configure(
        processors=[
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return handler


@contextmanager
def bind_entry_context(queue_name: str, entry: TaskEntry) -> Iterator[None]:
    """Bind ``queue``, ``entry_id`` and ``task`` for the duration of a task body."""
    with structlog.contextvars.bound_contextvars(
        queue=queue_name,
        entry_id=str(entry.entry_id),
        task=entry.name,
    ):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to the given module name."""
    return structlog.get_logger(name)

