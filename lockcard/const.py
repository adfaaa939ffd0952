"""Constants for the lock card engine."""

from enum import StrEnum
from typing import Final


class LockState(StrEnum):
    """Canonical lock states the engine reasons about."""

    UNLOCKED = "unlocked"
    LOCK_REQUESTED = "lock-requested"
    LOCKING = "locking"
    LOCKED = "locked"
    UNLOCK_REQUESTED = "unlock-requested"
    UNLOCKING = "unlocking"
    JAMMED = "jammed"
    UNKNOWN = "unknown"
    UNAVAILABLE = "unavailable"


class AnimationPhase(StrEnum):
    """Phase of the visual state animation."""

    IDLE = "idle"
    TRANSITIONING = "transitioning"
    COMPLETE = "complete"


class ActionKind(StrEnum):
    """Lock service a user action resolves to."""

    LOCK = "lock"
    UNLOCK = "unlock"


class TapActionType(StrEnum):
    """Configurable gesture actions."""

    TOGGLE = "toggle"
    LOCK = "lock"
    UNLOCK = "unlock"
    MORE_INFO = "more-info"
    CALL_SERVICE = "call-service"
    NONE = "none"


class BlockReason(StrEnum):
    """Reason a gesture was not honored."""

    DOOR = "blocked-by-door"
    DEBOUNCE = "blocked-by-debounce"
    UNSTABLE_STATE = "blocked-by-unstable-state"
    NO_OP_ACTION = "blocked-by-no-op-action"


class RotationDirection(StrEnum):
    """Direction the thumb turn rotates when unlocking."""

    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"


class Easing(StrEnum):
    """Easing curve hint for the rendering layer."""

    STANDARD = "standard"
    DIRECT = "direct"


# The order matters: this is the cycle the visual state walks through.
CYCLE: Final[tuple[LockState, ...]] = (
    LockState.UNLOCKED,
    LockState.LOCK_REQUESTED,
    LockState.LOCKING,
    LockState.LOCKED,
    LockState.UNLOCK_REQUESTED,
    LockState.UNLOCKING,
)
STABLE_STATES: Final[frozenset[LockState]] = frozenset(
    {LockState.LOCKED, LockState.UNLOCKED}
)
REQUESTED_STATES: Final[frozenset[LockState]] = frozenset(
    {LockState.LOCK_REQUESTED, LockState.UNLOCK_REQUESTED}
)
EXCEPTIONAL_STATES: Final[frozenset[LockState]] = frozenset(
    {LockState.JAMMED, LockState.UNKNOWN, LockState.UNAVAILABLE}
)

STATE_LABELS: Final[dict[LockState, str]] = {
    LockState.LOCKED: "Locked",
    LockState.UNLOCKED: "Unlocked",
    LockState.LOCK_REQUESTED: "Lock requested",
    LockState.UNLOCK_REQUESTED: "Unlock requested",
    LockState.LOCKING: "Locking...",
    LockState.UNLOCKING: "Unlocking...",
    LockState.JAMMED: "Jammed",
    LockState.UNKNOWN: "Unknown",
    LockState.UNAVAILABLE: "Unavailable",
}

LOCK_DOMAIN: Final[str] = "lock"
ATTR_ENTITY_ID: Final[str] = "entity_id"
ATTR_FRIENDLY_NAME: Final[str] = "friendly_name"

VISUAL_STATE_CHANGED: Final[str] = "visual_state_changed"
INTERACTION_BLOCKED: Final[str] = "interaction_blocked"
BATTERY_INDICATOR: Final[str] = "battery_indicator"
MORE_INFO_REQUESTED: Final[str] = "more_info_requested"
EVENT_TYPE_LOCK_CARD: Final[str] = "lock_card_event"

# Door contact readings that mean the door is shut. Anything else is open.
DOOR_CLOSED_STATES: Final[frozenset[str]] = frozenset({"off", "closed"})

# Attribute fallback chain for battery entities without a numeric state.
BATTERY_LEVEL_ATTRIBUTES: Final[tuple[str, ...]] = (
    "battery_level",
    "battery",
    "level",
    "percentage",
)
BATTERY_CRITICAL_LEVEL: Final[int] = 10
BATTERY_COLOR_CRITICAL: Final[str] = "var(--error-color, #f44336)"
BATTERY_COLOR_LOW: Final[str] = "var(--warning-color, #ff9800)"

CONF_ENTITY: Final[str] = "entity"
CONF_NAME: Final[str] = "name"
CONF_SHOW_NAME: Final[str] = "show_name"
CONF_SHOW_STATE: Final[str] = "show_state"
CONF_ANIMATION_DURATION: Final[str] = "animation_duration"
CONF_ROTATION_DURATION: Final[str] = "rotation_duration"
CONF_SLIDE_DURATION: Final[str] = "slide_duration"
CONF_UNLOCK_DIRECTION: Final[str] = "unlock_direction"
CONF_REQUESTED_TIMEOUT: Final[str] = "requested_timeout"
CONF_DEBOUNCE_WINDOW: Final[str] = "debounce_window"
CONF_TAP_ACTION: Final[str] = "tap_action"
CONF_LOCKED_TAP_ACTION: Final[str] = "locked_tap_action"
CONF_UNLOCKED_TAP_ACTION: Final[str] = "unlocked_tap_action"
CONF_HOLD_ACTION: Final[str] = "hold_action"
CONF_DOOR_ENTITY: Final[str] = "door_entity"
CONF_BATTERY_ENTITY: Final[str] = "battery_entity"
CONF_BATTERY_THRESHOLD: Final[str] = "battery_threshold"
CONF_ACTION: Final[str] = "action"
CONF_SERVICE: Final[str] = "service"
CONF_SERVICE_DATA: Final[str] = "service_data"

# All durations are in milliseconds.
DEFAULT_ANIMATION_DURATION: Final[int] = 400
MIN_ANIMATION_DURATION: Final[int] = 100
MAX_ANIMATION_DURATION: Final[int] = 1000
DEFAULT_ROTATION_DURATION: Final[int] = 600
DEFAULT_SLIDE_DURATION: Final[int] = 300
MIN_MOTION_DURATION: Final[int] = 100
MAX_MOTION_DURATION: Final[int] = 3000
DEFAULT_REQUESTED_TIMEOUT: Final[int] = 5000
MIN_REQUESTED_TIMEOUT: Final[int] = 1000
MAX_REQUESTED_TIMEOUT: Final[int] = 30000
DEFAULT_DEBOUNCE_WINDOW: Final[int] = 300
MAX_DEBOUNCE_WINDOW: Final[int] = 2000
DEFAULT_BATTERY_THRESHOLD: Final[int] = 20

# A direct locked <-> unlocked flip plays at a fraction of the rotation time.
DIRECT_ROTATION_DIVISOR: Final[int] = 4

CARD_SIZE: Final[int] = 3
DEFAULT_NAME: Final[str] = "Lock"
