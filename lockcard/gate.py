"""Interaction gating and auxiliary sensor signals."""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import logging
import math
from typing import Any, NamedTuple

from lockcard.config import ActionConfig, LockCardConfig
from lockcard.const import (
    BATTERY_COLOR_CRITICAL,
    BATTERY_COLOR_LOW,
    BATTERY_CRITICAL_LEVEL,
    BATTERY_LEVEL_ATTRIBUTES,
    DOOR_CLOSED_STATES,
    ActionKind,
    BlockReason,
    LockState,
    TapActionType,
)
from lockcard.states import is_stable

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class DoorInfo:
    """Snapshot of the door contact sensor."""

    is_closed: bool


def derive_door_info(door_entity: str | None, door_state: Any) -> DoorInfo:
    """Derive the door snapshot from the contact sensor reading.

    Without a configured sensor the door is considered closed. With a
    sensor, only a recognised closed reading counts as closed; a missing
    or ambiguous reading counts as open.
    """
    if door_entity is None:
        return DoorInfo(is_closed=True)
    if isinstance(door_state, str) and door_state.lower() in DOOR_CLOSED_STATES:
        return DoorInfo(is_closed=True)
    return DoorInfo(is_closed=False)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def derive_battery_level(entity: Mapping[str, Any] | None) -> float | None:
    """Return the battery level of an entity snapshot, clamped to [0, 100].

    The entity state is tried first, then the usual battery attributes.
    """
    if not entity:
        return None
    candidates = [entity.get("state")]
    attributes = entity.get("attributes") or {}
    candidates.extend(attributes.get(name) for name in BATTERY_LEVEL_ATTRIBUTES)
    for candidate in candidates:
        level = _as_number(candidate)
        if level is not None:
            return min(max(level, 0.0), 100.0)
    return None


class BatteryWarning(NamedTuple):
    """Battery warning signal."""

    show: bool
    level_percent: float | None


def derive_battery_warning(level: Any, threshold: float) -> BatteryWarning:
    """Return whether the low battery warning is shown."""
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        return BatteryWarning(show=False, level_percent=None)
    return BatteryWarning(show=level <= threshold, level_percent=float(level))


def battery_color(warning: BatteryWarning) -> str | None:
    """Return the indicator color hint for a battery warning."""
    if not warning.show or warning.level_percent is None:
        return None
    if warning.level_percent <= BATTERY_CRITICAL_LEVEL:
        return BATTERY_COLOR_CRITICAL
    return BATTERY_COLOR_LOW


def resolve_action_kind(
    action: ActionConfig, state: LockState
) -> ActionKind | None:
    """Resolve a lock related gesture action against the current state.

    Returns None if the action does nothing in this state.
    """
    if action.action is TapActionType.TOGGLE:
        if state is LockState.LOCKED:
            return ActionKind.UNLOCK
        if state is LockState.UNLOCKED:
            return ActionKind.LOCK
    elif action.action is TapActionType.LOCK and state is not LockState.LOCKED:
        return ActionKind.LOCK
    elif action.action is TapActionType.UNLOCK and state is not LockState.UNLOCKED:
        return ActionKind.UNLOCK
    return None


class GateDecision(NamedTuple):
    """Outcome of evaluating a gesture."""

    allowed: bool
    reason: BlockReason | None = None
    action: ActionConfig | None = None
    kind: ActionKind | None = None


class InteractionGate:
    """Decide whether a gesture is honored."""

    def __init__(self) -> None:
        """Initialize the gate."""
        self._last_tap: float | None = None

    @property
    def last_tap(self) -> float | None:
        """Return the timestamp of the last gesture that passed the debounce."""
        return self._last_tap

    def evaluate(
        self,
        tap_timestamp: float,
        door_info: DoorInfo,
        current_visual_state: LockState,
        config: LockCardConfig,
        action: ActionConfig | None = None,
    ) -> GateDecision:
        """Evaluate a gesture at ``tap_timestamp`` (milliseconds).

        ``action`` defaults to the tap action configured for the current
        state. Informational actions only go through the debounce.
        """
        if (
            self._last_tap is not None
            and tap_timestamp - self._last_tap < config.debounce_window
        ):
            return self._reject(BlockReason.DEBOUNCE)
        self._last_tap = tap_timestamp

        if action is None:
            action = config.tap_action_for(current_visual_state)

        if action.action in (TapActionType.MORE_INFO, TapActionType.CALL_SERVICE):
            return GateDecision(allowed=True, action=action)

        if not door_info.is_closed:
            return self._reject(BlockReason.DOOR)

        if not is_stable(current_visual_state):
            return self._reject(BlockReason.UNSTABLE_STATE)

        kind = resolve_action_kind(action, current_visual_state)
        if kind is None:
            return self._reject(BlockReason.NO_OP_ACTION)

        return GateDecision(allowed=True, action=action, kind=kind)

    @staticmethod
    def _reject(reason: BlockReason) -> GateDecision:
        _LOGGER.debug("Gesture rejected: %s", reason)
        return GateDecision(allowed=False, reason=reason)
