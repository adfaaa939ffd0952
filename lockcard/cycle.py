"""Shortest path planning over the lock state cycle."""

from __future__ import annotations

import logging

from lockcard.const import CYCLE, LockState
from lockcard.states import in_cycle, is_exceptional, is_requested, is_stable

_LOGGER = logging.getLogger(__name__)

TransitionPath = tuple[LockState, ...]

_INDEX: dict[LockState, int] = {state: index for index, state in enumerate(CYCLE)}


def forward_distance(from_state: LockState, to_state: LockState) -> int:
    """Return the number of steps advancing in cycle order."""
    return (_INDEX[to_state] - _INDEX[from_state]) % len(CYCLE)


def backward_distance(from_state: LockState, to_state: LockState) -> int:
    """Return the number of steps retreating in cycle order."""
    return (_INDEX[from_state] - _INDEX[to_state]) % len(CYCLE)


def plan(
    from_state: LockState,
    to_state: LockState,
    *,
    allow_requested_stage: bool,
) -> TransitionPath:
    """Plan the states to visit when moving from one state to another.

    The returned path never contains ``from_state`` and, unless empty,
    always ends with ``to_state``. Exceptional states and mixed
    exceptional/cycle transitions are a single direct hop. Inside the cycle
    the shorter direction wins and equal distances go forward.

    Without a user action in flight the requested stage is never shown
    unless it is the target itself: a path leaving a stable endpoint
    through its requested stage collapses to a direct hop, and requested
    stages are dropped from any other path.
    """
    if is_exceptional(to_state):
        return (to_state,)

    if not (in_cycle(from_state) and in_cycle(to_state)):
        return (to_state,)

    if from_state == to_state:
        return ()

    forward = forward_distance(from_state, to_state)
    backward = backward_distance(from_state, to_state)
    step = 1 if forward <= backward else -1
    hops = min(forward, backward)

    start = _INDEX[from_state]
    path = tuple(
        CYCLE[(start + step * hop) % len(CYCLE)] for hop in range(1, hops + 1)
    )

    if not allow_requested_stage:
        if is_stable(from_state) and is_requested(path[0]):
            _LOGGER.debug(
                "Collapsing %s -> %s to a direct hop, no action in flight",
                from_state,
                to_state,
            )
            return (to_state,)
        path = (
            *(state for state in path[:-1] if not is_requested(state)),
            to_state,
        )

    return path
