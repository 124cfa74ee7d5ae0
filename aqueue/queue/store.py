"""
AQUEUE — Pending Task Store
=============================
In-memory priority queue holding work that has not started yet.

Usage:
    store = PendingTaskStore()
    store.schedule(entry)
    head = store.next()
"""

from __future__ import annotations

import heapq
import uuid
from dataclasses import dataclass, field

from aqueue.queue.entry import TaskEntry


@dataclass(order=True, slots=True)
class _HeapSlot:
    """
    Heap slot.  Higher numeric priority = execute first,
    so we negate the priority for min-heap ordering.
    """

    neg_priority: int
    sequence: int = field(compare=True)
    entry: TaskEntry = field(compare=False)
    removed: bool = field(default=False, compare=False)


class PendingTaskStore:
    """
    Priority-ordered store of pending ``TaskEntry`` objects, backed by a min-heap.

    Higher ``priority`` values are dequeued first (most urgent).
    Ties are broken by the entry's ``sequence`` (FIFO).  Sequences are
    unique, so the heap order is total and dequeue order is deterministic.

    Thread safety: NOT thread-safe.  Owned by a single ``AsyncQueue`` and
    only touched from its event loop.
    """

    def __init__(self) -> None:
        self._heap: list[_HeapSlot] = []
        self._slots: dict[uuid.UUID, _HeapSlot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def schedule(self, entry: TaskEntry) -> None:
        """Insert ``entry`` in ``(priority desc, sequence asc)`` order."""
        if entry.entry_id in self._slots:
            raise ValueError(f"Entry '{entry.entry_id}' is already scheduled.")

        slot = _HeapSlot(
            neg_priority=-entry.priority,
            sequence=entry.sequence,
            entry=entry,
        )
        self._slots[entry.entry_id] = slot
        heapq.heappush(self._heap, slot)

    def next(self) -> TaskEntry | None:
        """
        Dequeue and return the highest-priority entry.

        Returns ``None`` if the store is empty.
        Skips lazily-removed slots.
        """
        while self._heap:
            slot = heapq.heappop(self._heap)
            if not slot.removed:
                del self._slots[slot.entry.entry_id]
                return slot.entry
        return None

    def remove(self, entry_id: uuid.UUID) -> bool:
        """
        Remove an entry from the store.

        Returns ``True`` if the entry was pending.
        """
        slot = self._slots.pop(entry_id, None)
        if slot is None:
            return False
        slot.removed = True
        return True

    def pending_count(self) -> int:
        """Return the number of entries currently pending."""
        return len(self._slots)

    def clear(self) -> list[TaskEntry]:
        """
        Remove every pending entry.

        Returns the removed entries in the order they would have been
        dequeued, so the owner can settle (or abandon) their handles.
        """
        live = sorted(s for s in self._heap if not s.removed)
        self._heap.clear()
        self._slots.clear()
        return [s.entry for s in live]
