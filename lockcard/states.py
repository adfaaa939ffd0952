"""State normalization for the lock card engine."""

from __future__ import annotations

from typing import Any

from lockcard.const import (
    CYCLE,
    EXCEPTIONAL_STATES,
    REQUESTED_STATES,
    STABLE_STATES,
    STATE_LABELS,
    LockState,
)

_BY_VALUE: dict[str, LockState] = {state.value: state for state in LockState}


def normalize(raw: Any) -> LockState:
    """Map a raw backend status to a canonical lock state.

    Matching is case insensitive. Anything outside the canonical
    vocabulary, including non-string input, maps to ``unknown``.
    """
    if not isinstance(raw, str):
        return LockState.UNKNOWN
    return _BY_VALUE.get(raw.lower(), LockState.UNKNOWN)


def is_stable(state: LockState) -> bool:
    """Return True for the locked and unlocked endpoints."""
    return state in STABLE_STATES


def is_requested(state: LockState) -> bool:
    """Return True for the optimistic requested stages."""
    return state in REQUESTED_STATES


def is_exceptional(state: LockState) -> bool:
    """Return True for states that are never part of the cycle."""
    return state in EXCEPTIONAL_STATES


def in_cycle(state: LockState) -> bool:
    """Return True if the state is a member of the cycle."""
    return state in CYCLE


def state_label(state: LockState) -> str:
    """Return a human readable label for the state."""
    return STATE_LABELS[state]
