"""
AQUEUE — Task Entry State Machine
===================================
Lifecycle of a single submitted unit of work.

Invariants enforced:
- An entry is in exactly one of pending / running / finished at any time
- Undefined transitions are bugs in the queue (raises InvalidTransitionError)

    PENDING ──► RUNNING ──► FULFILLED | REJECTED | CANCELLED
       │
       └──────► CANCELLED | DISCARDED
"""

from __future__ import annotations

from enum import StrEnum

from aqueue.core.exceptions import InvalidTransitionError


class EntryState(StrEnum):
    """Task entry states."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    FULFILLED = "FULFILLED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    DISCARDED = "DISCARDED"  # cleared with ClearMode.ABANDON, handle never settled


# ── Terminal states (no outgoing transitions) ───────────────────────────

TERMINAL_STATES: frozenset[EntryState] = frozenset(
    {
        EntryState.FULFILLED,
        EntryState.REJECTED,
        EntryState.CANCELLED,
        EntryState.DISCARDED,
    }
)


# ── Transition Map ──────────────────────────────────────────────────────
# Exhaustive whitelist.  Anything not listed here is INVALID.

VALID_TRANSITIONS: dict[EntryState, frozenset[EntryState]] = {
    EntryState.PENDING: frozenset(
        {EntryState.RUNNING, EntryState.CANCELLED, EntryState.DISCARDED}
    ),
    EntryState.RUNNING: frozenset(
        {EntryState.FULFILLED, EntryState.REJECTED, EntryState.CANCELLED}
    ),
    EntryState.FULFILLED: frozenset(),
    EntryState.REJECTED: frozenset(),
    EntryState.CANCELLED: frozenset(),
    EntryState.DISCARDED: frozenset(),
}


class EntryStateMachine:
    """Validation helpers for ``EntryState`` transitions."""

    @staticmethod
    def validate_transition(
        from_state: EntryState,
        to_state: EntryState,
        *,
        entry_id: str | None = None,
    ) -> bool:
        """
        Return ``True`` if the transition is valid.

        Raises ``InvalidTransitionError`` if the transition is undefined.
        """
        allowed = VALID_TRANSITIONS[from_state]
        if to_state not in allowed:
            raise InvalidTransitionError(
                f"Invalid transition {from_state.value} → {to_state.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}.",
                entry_id=entry_id,
            )
        return True

    @staticmethod
    def is_terminal(state: EntryState) -> bool:
        """Return ``True`` if the state is terminal (no outgoing transitions)."""
        return state in TERMINAL_STATES
