"""
AQUEUE — Asynchronous Task Queue
==================================
Priority-ordered, concurrency-limited execution of asynchronous work.

Public API:
    AsyncQueue - submit / start / pause / clear / on_idle
    PendingTaskStore - priority + FIFO ordered pending work
    ExecutionSupervisor - runs entries, settles result handles
    IdleNotifier - idle transition observers
    TaskEntry, EntryState - one unit of work and its lifecycle
"""

from aqueue.core.config import ClearMode
from aqueue.queue.state_machine import (
    EntryState,
    EntryStateMachine,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
)
from aqueue.queue.entry import TaskEntry
from aqueue.queue.store import PendingTaskStore
from aqueue.queue.idle import IdleNotifier
from aqueue.queue.supervisor import ExecutionSupervisor
from aqueue.queue.async_queue import AsyncQueue

__all__ = [
    "AsyncQueue",
    "ClearMode",
    "EntryState",
    "EntryStateMachine",
    "ExecutionSupervisor",
    "IdleNotifier",
    "PendingTaskStore",
    "TaskEntry",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
]
