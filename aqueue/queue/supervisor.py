"""
AQUEUE — Execution Supervisor
===============================
Runs admitted task entries and settles each result handle exactly once.

Every admitted entry gets its own ``asyncio.Task`` running inside the
``contextvars`` context captured at submission.  A failure raised by user
code, including a bare ``BaseException`` subclass, is delivered through
that entry's handle only.  ``KeyboardInterrupt`` and ``SystemExit`` are
delivered and then re-raised so they still reach the event loop.  The
completion hook runs exactly once whatever the outcome.

Usage:
    supervisor = ExecutionSupervisor("reports", on_settled=queue_hook)
    supervisor.launch(entry)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable

from aqueue.core.logging import bind_entry_context, get_logger
from aqueue.core.tracing import Span, create_span
from aqueue.queue.entry import TaskEntry
from aqueue.queue.state_machine import EntryState

logger = get_logger(__name__)


class ExecutionSupervisor:
    """
    Launches entries and reports back through ``on_settled``.

    ``on_settled(entry)`` is called once per launched entry, after its
    handle has been settled (or its outcome dropped), from the entry's own
    task on the event loop.
    """

    def __init__(
        self,
        queue_name: str,
        on_settled: Callable[[TaskEntry], None],
    ) -> None:
        self._queue_name = queue_name
        self._on_settled = on_settled
        # Strong references: the loop only keeps weak ones to running tasks.
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def active_count(self) -> int:
        """Number of supervisor tasks that have not finished yet."""
        return len(self._tasks)

    def launch(self, entry: TaskEntry) -> asyncio.Task[None]:
        """Mark ``entry`` running and schedule it on the current loop."""
        entry.mark_running()
        task = asyncio.get_running_loop().create_task(
            self._run(entry),
            name=f"aqueue:{self._queue_name}:{entry.sequence}",
            context=entry.context,
        )
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, entry))
        return task

    def _on_task_done(self, entry: TaskEntry, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if entry.state is EntryState.RUNNING:
            # Cancelled before its first step, so _run never got to settle it.
            entry.cancel()
        self._release(entry)

    def _release(self, entry: TaskEntry) -> None:
        if entry.released:
            return
        entry.released = True
        self._on_settled(entry)

    async def _run(self, entry: TaskEntry) -> None:
        with bind_entry_context(self._queue_name, entry):
            await self._supervise(entry)

    async def _supervise(self, entry: TaskEntry) -> None:
        logger.debug(
            "queue.task_started",
            queue=self._queue_name,
            entry_id=str(entry.entry_id),
            task=entry.name,
            priority=entry.priority,
        )
        result: Any = None
        error: BaseException | None = None
        try:
            with create_span(
                "queue.task", entry_id=str(entry.entry_id), task=entry.name
            ) as span:
                try:
                    result = await self._invoke(entry)
                except asyncio.CancelledError:
                    raise
                except BaseException as exc:
                    error = exc
            self._settle(entry, result, error, span)
        except asyncio.CancelledError:
            entry.cancel()
            logger.info(
                "queue.task_cancelled",
                queue=self._queue_name,
                entry_id=str(entry.entry_id),
                task=entry.name,
            )
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        finally:
            self._release(entry)

        if isinstance(error, (KeyboardInterrupt, SystemExit)):
            raise error

    @staticmethod
    async def _invoke(entry: TaskEntry) -> Any:
        result = entry.fn()
        if inspect.isawaitable(result):
            result = await result
        return result

    def _settle(
        self,
        entry: TaskEntry,
        result: Any,
        error: BaseException | None,
        span: Span,
    ) -> None:
        if error is None:
            delivered = entry.resolve(result)
            event = "queue.task_fulfilled"
        else:
            delivered = entry.reject(error)
            event = "queue.task_rejected"

        if not delivered:
            logger.debug(
                "queue.task_outcome_dropped",
                queue=self._queue_name,
                entry_id=str(entry.entry_id),
                outcome=entry.state.value,
            )
        elif error is None:
            logger.debug(
                event,
                queue=self._queue_name,
                entry_id=str(entry.entry_id),
                task=entry.name,
                duration_ms=span.duration_ms,
            )
        else:
            logger.warning(
                event,
                queue=self._queue_name,
                entry_id=str(entry.entry_id),
                task=entry.name,
                duration_ms=span.duration_ms,
                error_type=type(error).__name__,
                error=str(error),
            )
