"""
AQUEUE — Task Entry
=====================
One submitted unit of work, its ordering metadata and its result handle.

The result handle is a plain ``asyncio.Future``.  Settlement goes through
``resolve`` / ``reject`` / ``cancel`` only, each of which is a no-op on a
handle that is already done, so a handle is settled at most once even when
the caller cancels it concurrently.
"""

from __future__ import annotations

import asyncio
import contextvars
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

from aqueue.queue.state_machine import EntryState, EntryStateMachine

TaskCallable = Callable[[], Any]


@dataclass(slots=True, eq=False)
class TaskEntry:
    """
    A unit of work held by ``AsyncQueue``.

    ``sequence`` is assigned by the queue at submission and only breaks
    ties between equal priorities.
    """

    fn: TaskCallable
    priority: int
    sequence: int
    future: asyncio.Future[Any]
    entry_id: uuid.UUID = field(default_factory=uuid.uuid4)
    state: EntryState = EntryState.PENDING
    context: contextvars.Context = field(default_factory=contextvars.copy_context)
    submitted_at: float = field(default_factory=time.monotonic)
    # Set once the owning queue has been told this entry left its running slot.
    released: bool = False

    @property
    def name(self) -> str:
        """Best-effort human-readable name of the callable, for logs."""
        return getattr(self.fn, "__qualname__", None) or repr(self.fn)

    def transition(self, to_state: EntryState) -> None:
        EntryStateMachine.validate_transition(
            self.state, to_state, entry_id=str(self.entry_id)
        )
        self.state = to_state

    def mark_running(self) -> None:
        self.transition(EntryState.RUNNING)

    def resolve(self, value: Any) -> bool:
        """
        Record a successful outcome.

        Returns ``False`` when the handle was already done (the caller
        cancelled it), in which case the value is dropped.
        """
        self.transition(EntryState.FULFILLED)
        if self.future.done():
            return False
        self.future.set_result(value)
        return True

    def reject(self, exc: BaseException) -> bool:
        """Record a failed outcome.  Same return contract as ``resolve``."""
        self.transition(EntryState.REJECTED)
        if self.future.done():
            return False
        self.future.set_exception(exc)
        return True

    def cancel(self, msg: str | None = None) -> bool:
        """Cancel the handle.  Valid from PENDING or RUNNING."""
        self.transition(EntryState.CANCELLED)
        return self.future.cancel(msg)

    def discard(self) -> None:
        """Drop a pending entry without ever settling its handle."""
        self.transition(EntryState.DISCARDED)
