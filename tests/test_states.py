"""Tests for state normalization."""

import pytest

from lockcard.const import LockState
from lockcard.states import (
    in_cycle,
    is_exceptional,
    is_requested,
    is_stable,
    normalize,
    state_label,
)


@pytest.mark.parametrize("state", list(LockState))
def test_normalize_canonical_states(state: LockState) -> None:
    """Test every canonical state maps to itself regardless of case."""
    assert normalize(state.value) is state
    assert normalize(state.value.upper()) is state
    assert normalize(state.value.title()) is state


@pytest.mark.parametrize(
    "raw",
    ["", "open", "closed", "lockd", " locked", "locked ", "lock_requested", "on"],
)
def test_normalize_unrecognized(raw: str) -> None:
    """Test anything outside the vocabulary is unknown."""
    assert normalize(raw) is LockState.UNKNOWN


@pytest.mark.parametrize("raw", [None, 1, 0.5, True, ["locked"]])
def test_normalize_non_string(raw: object) -> None:
    """Test normalization never fails on odd input."""
    assert normalize(raw) is LockState.UNKNOWN


def test_state_membership() -> None:
    """Test the membership helpers."""
    assert {state for state in LockState if is_stable(state)} == {
        LockState.LOCKED,
        LockState.UNLOCKED,
    }
    assert {state for state in LockState if is_requested(state)} == {
        LockState.LOCK_REQUESTED,
        LockState.UNLOCK_REQUESTED,
    }
    assert {state for state in LockState if is_exceptional(state)} == {
        LockState.JAMMED,
        LockState.UNKNOWN,
        LockState.UNAVAILABLE,
    }
    for state in LockState:
        assert in_cycle(state) is not is_exceptional(state)


def test_state_labels() -> None:
    """Test every state has a label."""
    assert state_label(LockState.LOCKING) == "Locking..."
    assert state_label(LockState.UNAVAILABLE) == "Unavailable"
    assert all(state_label(state) for state in LockState)
