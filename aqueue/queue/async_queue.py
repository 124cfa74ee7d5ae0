"""
AQUEUE — Asynchronous Task Queue
==================================
Priority-ordered, concurrency-limited queue of asynchronous work.

The queue owns all of its state (pending store, running count, paused flag,
idle observers).  Every bookkeeping method is synchronous and runs to
completion on the event loop thread, so admission can check-then-act
without a lock.  Task bodies run in their own ``asyncio.Task`` outside
that bookkeeping.

Thread safety: NOT thread-safe.  Call into the queue from its event loop;
other threads must use ``loop.call_soon_threadsafe``.

A continuous stream of high-priority work can starve low-priority work.
Ordering is strictly priority, then submission order.

Usage:
    queue = AsyncQueue(concurrency=2)
    queue.on_idle(lambda: print("drained"))
    report = await queue.submit(build_report, priority=10)
"""

from __future__ import annotations

import asyncio
import contextvars
import itertools
from typing import Any, Callable

from aqueue.core.config import ClearMode, get_settings
from aqueue.core.exceptions import InvalidConfigurationError, InvalidTaskError
from aqueue.core.logging import get_logger
from aqueue.queue.entry import TaskCallable, TaskEntry
from aqueue.queue.idle import IdleCallback, IdleNotifier
from aqueue.queue.state_machine import EntryState
from aqueue.queue.store import PendingTaskStore
from aqueue.queue.supervisor import ExecutionSupervisor

logger = get_logger(__name__)

_queue_ids = itertools.count(1)


class AsyncQueue:
    """
    Runs submitted callables with at most ``concurrency`` in flight.

    Parameters
    ----------
    concurrency
        Maximum simultaneous executions (>= 1).  Defaults to
        ``Settings.default_concurrency``.
    auto_start
        When ``False`` the queue starts paused and admits nothing until
        ``start()``.  Defaults to ``Settings.auto_start``.
    clear_mode
        What ``clear()`` does with discarded result handles.  Defaults to
        ``Settings.clear_mode``.
    name
        Label used in log lines.  Auto-generated when omitted.
    """

    def __init__(
        self,
        concurrency: int | None = None,
        *,
        auto_start: bool | None = None,
        clear_mode: ClearMode | str | None = None,
        name: str | None = None,
    ) -> None:
        settings = get_settings()
        self._name = name or f"queue-{next(_queue_ids)}"

        if concurrency is None:
            concurrency = settings.default_concurrency
        if (
            not isinstance(concurrency, int)
            or isinstance(concurrency, bool)
            or concurrency < 1
        ):
            raise InvalidConfigurationError(
                f"concurrency must be an integer >= 1, got {concurrency!r}.",
                queue=self._name,
            )

        try:
            self._clear_mode = ClearMode(
                settings.clear_mode if clear_mode is None else clear_mode
            )
        except ValueError:
            raise InvalidConfigurationError(
                f"clear_mode must be one of {[m.value for m in ClearMode]}, "
                f"got {clear_mode!r}.",
                queue=self._name,
            ) from None

        self._concurrency = concurrency
        self._paused = not (settings.auto_start if auto_start is None else auto_start)
        self._running = 0
        self._sequence = itertools.count()
        self._pending = PendingTaskStore()
        self._idle = IdleNotifier(self._name)
        self._supervisor = ExecutionSupervisor(self._name, on_settled=self._on_settled)

        logger.debug(
            "queue.created",
            queue=self._name,
            concurrency=self._concurrency,
            paused=self._paused,
            clear_mode=self._clear_mode.value,
        )

    def __repr__(self) -> str:
        return (
            f"<AsyncQueue {self._name!r} concurrency={self._concurrency} "
            f"pending={self.pending_count} running={self._running} "
            f"paused={self._paused}>"
        )

    # ── Read-only state ─────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def clear_mode(self) -> ClearMode:
        return self._clear_mode

    @property
    def pending_count(self) -> int:
        """Entries waiting for admission."""
        return self._pending.pending_count()

    @property
    def running_count(self) -> int:
        """Entries currently executing."""
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    # Aliases following the p-queue naming convention: `size` counts waiting
    # entries and `pending` counts entries in flight.  `pending` is NOT
    # `pending_count`.
    size = pending_count
    pending = running_count

    # ── Control ─────────────────────────────────────────────────────────

    def submit(self, fn: TaskCallable, priority: int = 0) -> asyncio.Future[Any]:
        """
        Queue ``fn`` and return its result handle.

        ``fn`` is called with no arguments; it may return a value or an
        awaitable.  Higher ``priority`` runs sooner; equal priorities run in
        submission order.  Must be called while the event loop is running.

        Raises ``InvalidTaskError`` if ``fn`` is not callable or
        ``priority`` is not an integer.
        """
        if not callable(fn):
            raise InvalidTaskError(
                f"Task must be a zero-argument callable, got {type(fn).__name__}.",
                queue=self._name,
            )
        if not isinstance(priority, int) or isinstance(priority, bool):
            raise InvalidTaskError(
                f"Task priority must be an int, got {type(priority).__name__}.",
                queue=self._name,
            )

        loop = asyncio.get_running_loop()
        entry = TaskEntry(
            fn=fn,
            priority=priority,
            sequence=next(self._sequence),
            future=loop.create_future(),
            context=contextvars.copy_context(),
        )
        entry.future.add_done_callback(
            lambda _fut, e=entry: self._on_handle_done(e)
        )

        self._pending.schedule(entry)
        self._idle.mark_busy()
        logger.debug(
            "queue.task_submitted",
            queue=self._name,
            entry_id=str(entry.entry_id),
            task=entry.name,
            priority=priority,
            pending=self._pending.pending_count(),
        )

        self._process()
        return entry.future

    def start(self) -> None:
        """Leave Paused mode and admit whatever fits."""
        was_paused = self._paused
        self._paused = False
        if was_paused:
            logger.info(
                "queue.started",
                queue=self._name,
                pending=self._pending.pending_count(),
            )
        self._process()

    def pause(self) -> None:
        """Stop admitting new work.  Running entries are not interrupted."""
        if not self._paused:
            logger.info(
                "queue.paused",
                queue=self._name,
                pending=self._pending.pending_count(),
                running=self._running,
            )
        self._paused = True

    def clear(self) -> int:
        """
        Discard every pending entry; returns how many were discarded.

        Entries that are already running are unaffected.  Discarded result
        handles are cancelled, or left unsettled under ``ClearMode.ABANDON``.
        """
        cleared = self._pending.clear()
        for entry in cleared:
            if self._clear_mode is ClearMode.CANCEL:
                entry.cancel(f"Cleared from queue {self._name!r}.")
            else:
                entry.discard()

        logger.info(
            "queue.cleared",
            queue=self._name,
            cleared=len(cleared),
            mode=self._clear_mode.value,
            running=self._running,
        )
        self._process()
        return len(cleared)

    def on_idle(self, callback: IdleCallback) -> Callable[[], None]:
        """
        Register ``callback`` to run each time the queue drains.

        Returns a function that unregisters it.
        """
        return self._idle.register(callback)

    async def wait_idle(self) -> None:
        """Return once nothing is pending or running."""
        if not self._pending.pending_count() and not self._running:
            return
        await self._idle.wait()

    # ── Admission ───────────────────────────────────────────────────────

    def _process(self) -> None:
        """Admit as much work as fits, then check for an idle transition."""
        self._admit()
        self._idle.check(self._pending.pending_count(), self._running)

    def _admit(self) -> None:
        while not self._paused and self._running < self._concurrency:
            entry = self._pending.next()
            if entry is None:
                return
            if entry.future.done():
                # Cancelled by the caller; its done-callback has not run yet.
                entry.transition(EntryState.CANCELLED)
                continue
            self._running += 1
            self._supervisor.launch(entry)

    # ── Callbacks ───────────────────────────────────────────────────────

    def _on_settled(self, entry: TaskEntry) -> None:
        self._running -= 1
        self._process()

    def _on_handle_done(self, entry: TaskEntry) -> None:
        # Only a caller cancelling a still-pending handle needs work here;
        # every other settlement goes through the store or the supervisor.
        if entry.state is not EntryState.PENDING:
            return
        self._pending.remove(entry.entry_id)
        entry.transition(EntryState.CANCELLED)
        logger.debug(
            "queue.task_cancelled",
            queue=self._name,
            entry_id=str(entry.entry_id),
            task=entry.name,
        )
        self._process()
