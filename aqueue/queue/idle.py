"""
AQUEUE — Idle Notifier
========================
Detects the "nothing pending, nothing running" condition and tells observers.

An idle *transition* happens at most once per burst of work: the notifier
arms itself on every submission and disarms when it fires, so calling
``check()`` redundantly never notifies twice for the same transition.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from aqueue.core.logging import get_logger

logger = get_logger(__name__)

IdleCallback = Callable[[], object]


class IdleNotifier:
    """Registry of idle observers plus the armed/disarmed flag."""

    def __init__(self, queue_name: str) -> None:
        self._queue_name = queue_name
        self._callbacks: list[IdleCallback] = []
        self._waiters: list[asyncio.Future[None]] = []
        self._armed = False

    @property
    def callback_count(self) -> int:
        return len(self._callbacks)

    def register(self, callback: IdleCallback) -> Callable[[], None]:
        """
        Append ``callback`` and return a token that unregisters it.

        Callbacks persist across idle transitions until unregistered.
        """
        if not callable(callback):
            raise TypeError(f"Idle callback must be callable, got {callback!r}.")
        self._callbacks.append(callback)

        def unregister() -> None:
            # Identity match: the same function may be registered twice.
            for i, cb in enumerate(self._callbacks):
                if cb is callback:
                    del self._callbacks[i]
                    return

        return unregister

    def mark_busy(self) -> None:
        """Record that work arrived since the last idle transition."""
        self._armed = True

    def wait(self) -> asyncio.Future[None]:
        """Return a future resolved at the next idle transition."""
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        return waiter

    def check(self, pending: int, running: int) -> bool:
        """
        Fire callbacks if the queue just went idle.

        Returns ``True`` when an idle transition was signalled.
        """
        if pending or running or not self._armed:
            return False
        self._armed = False

        logger.info(
            "queue.idle",
            queue=self._queue_name,
            callbacks=len(self._callbacks),
        )

        # Snapshot: a callback may register or unregister others.
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:
                logger.exception(
                    "queue.idle_callback_failed",
                    queue=self._queue_name,
                    callback=getattr(callback, "__qualname__", repr(callback)),
                )

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
        return True
