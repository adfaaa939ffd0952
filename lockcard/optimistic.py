"""Optimistic action tracking and requested state rollback."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import dataclasses
import logging
import time
from typing import Any, NamedTuple

from lockcard.const import EXCEPTIONAL_STATES, ActionKind, LockState
from lockcard.decorators import callback

_LOGGER = logging.getLogger(__name__)

REQUESTED_STATE: dict[ActionKind, LockState] = {
    ActionKind.LOCK: LockState.LOCK_REQUESTED,
    ActionKind.UNLOCK: LockState.UNLOCK_REQUESTED,
}
CONFIRMING_STATES: dict[ActionKind, frozenset[LockState]] = {
    ActionKind.LOCK: frozenset({LockState.LOCKING, LockState.LOCKED}),
    ActionKind.UNLOCK: frozenset({LockState.UNLOCKING, LockState.UNLOCKED}),
}
PRE_ACTION_STATE: dict[ActionKind, LockState] = {
    ActionKind.LOCK: LockState.UNLOCKED,
    ActionKind.UNLOCK: LockState.LOCKED,
}
# Backend states that mean the pending action will never be confirmed:
# the lock moved the other way or dropped out of the cycle.
SUPERSEDING_STATES: dict[ActionKind, frozenset[LockState]] = {
    kind: CONFIRMING_STATES[other] | {REQUESTED_STATE[other]} | EXCEPTIONAL_STATES
    for kind, other in (
        (ActionKind.LOCK, ActionKind.UNLOCK),
        (ActionKind.UNLOCK, ActionKind.LOCK),
    )
}


def default_fallback(requested_state: LockState) -> LockState:
    """Return the rollback target when no stable state has been seen yet."""
    if requested_state is LockState.UNLOCK_REQUESTED:
        return LockState.LOCKED
    return LockState.UNLOCKED


@dataclasses.dataclass(frozen=True, slots=True)
class PendingAction:
    """A user initiated action awaiting backend confirmation."""

    kind: ActionKind
    armed_at: float
    pre_action_state: LockState

    @property
    def requested_state(self) -> LockState:
        """Return the optimistic state shown for this action."""
        return REQUESTED_STATE[self.kind]


class ReconcileResult(NamedTuple):
    """Outcome of reconciling a backend state with the pending action."""

    cleared: bool
    is_stale_echo: bool
    superseded: bool = False


class OptimisticActionTracker:
    """Track the single user action that is waiting for confirmation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the tracker."""
        self._clock = clock
        self._pending: PendingAction | None = None

    @property
    def pending(self) -> PendingAction | None:
        """Return the pending action, if any."""
        return self._pending

    def has_pending(self) -> bool:
        """Return True if an action is awaiting confirmation."""
        return self._pending is not None

    def begin(
        self, kind: ActionKind, pre_action_state: LockState | None = None
    ) -> LockState:
        """Record a pending action and return the state to show right away."""
        if self._pending is not None:
            _LOGGER.debug(
                "Replacing pending %s action with %s", self._pending.kind, kind
            )
        self._pending = PendingAction(
            kind=kind,
            armed_at=self._clock(),
            pre_action_state=pre_action_state or PRE_ACTION_STATE[kind],
        )
        return self._pending.requested_state

    def reconcile(self, confirmed_state: LockState) -> ReconcileResult:
        """Reconcile a backend state against the pending action."""
        pending = self._pending
        if pending is None:
            return ReconcileResult(cleared=False, is_stale_echo=False)

        if confirmed_state in CONFIRMING_STATES[pending.kind]:
            _LOGGER.debug("Pending %s confirmed by %s", pending.kind, confirmed_state)
            self._pending = None
            return ReconcileResult(cleared=True, is_stale_echo=False)

        if confirmed_state == pending.pre_action_state:
            return ReconcileResult(cleared=False, is_stale_echo=True)

        if confirmed_state in SUPERSEDING_STATES[pending.kind]:
            _LOGGER.debug(
                "Pending %s superseded by %s", pending.kind, confirmed_state
            )
            self._pending = None
            return ReconcileResult(
                cleared=False, is_stale_echo=False, superseded=True
            )

        return ReconcileResult(cleared=False, is_stale_echo=False)

    def clear(self) -> None:
        """Forget the pending action."""
        self._pending = None


class GuardHandle(NamedTuple):
    """Handle to an armed timeout guard."""

    generation: int
    requested_state: LockState
    fallback_state: LockState


class TimeoutGuard:
    """One-shot deadline that rolls an unconfirmed requested state back.

    ``state_getter`` returns the current visual state. When the deadline
    fires the rollback only happens if the visual state is still exactly the
    requested state, so any confirmed transition in between wins.
    """

    def __init__(
        self,
        state_getter: Callable[[], LockState],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize the guard."""
        self._state_getter = state_getter
        self._loop = loop or asyncio.get_running_loop()
        self._generation: int = 0
        self._timer: asyncio.TimerHandle | None = None
        self._handle: GuardHandle | None = None

    @property
    def armed(self) -> bool:
        """Return True while a deadline is outstanding."""
        return self._handle is not None

    def arm(
        self,
        requested_state: LockState,
        fallback_state: LockState,
        timeout_ms: float,
        on_expire: Callable[[LockState], Any],
        on_lapse: Callable[[], Any] | None = None,
    ) -> GuardHandle:
        """Start a deadline, replacing any outstanding one.

        ``on_expire`` receives the fallback state when the rollback happens.
        ``on_lapse`` is called when the deadline passes with the visual state
        already moved on, so the caller can still drop its pending action.
        """
        self.disarm()
        self._generation += 1
        handle = GuardHandle(self._generation, requested_state, fallback_state)
        self._handle = handle
        self._timer = self._loop.call_later(
            timeout_ms / 1000, self._expire, handle, on_expire, on_lapse
        )
        _LOGGER.debug(
            "Armed %sms timeout for %s (fallback %s)",
            timeout_ms,
            requested_state,
            fallback_state,
        )
        return handle

    def disarm(self) -> None:
        """Cancel the outstanding deadline."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._handle = None

    @callback
    def _expire(
        self,
        handle: GuardHandle,
        on_expire: Callable[[LockState], Any],
        on_lapse: Callable[[], Any] | None,
    ) -> None:
        if handle != self._handle:
            return
        self._timer = None
        self._handle = None

        current = self._state_getter()
        if current != handle.requested_state:
            _LOGGER.debug(
                "Timeout for %s lapsed, visual state moved on to %s",
                handle.requested_state,
                current,
            )
            if on_lapse is not None:
                on_lapse()
            return

        _LOGGER.debug(
            "No confirmation for %s, rolling back to %s",
            handle.requested_state,
            handle.fallback_state,
        )
        on_expire(handle.fallback_state)
