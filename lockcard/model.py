"""Models shared with the rendering layer."""

from typing import Literal, Optional

from pydantic import BaseModel as PydanticBaseModel, ConfigDict

from lockcard.const import (
    BATTERY_INDICATOR,
    DEFAULT_SLIDE_DURATION,
    EVENT_TYPE_LOCK_CARD,
    INTERACTION_BLOCKED,
    MORE_INFO_REQUESTED,
    VISUAL_STATE_CHANGED,
    ActionKind,
    AnimationPhase,
    BlockReason,
    Easing,
    LockState,
    RotationDirection,
)


class BaseModel(PydanticBaseModel):
    """Base model for lock card models."""

    model_config = ConfigDict(frozen=True)


class BaseEvent(BaseModel):
    """Base model for lock card events."""

    message_type: Literal["event"] = "event"
    event_type: Literal["lock_card_event"] = EVENT_TYPE_LOCK_CARD
    event: str
    entity_id: str


class VisualStateChangedEvent(BaseEvent):
    """Event for when the displayed state or animation phase changes."""

    event: Literal["visual_state_changed"] = VISUAL_STATE_CHANGED
    state: LockState
    phase: AnimationPhase
    previous_state: LockState
    label: str
    duration_ms: float
    easing: Easing = Easing.STANDARD
    unlock_direction: RotationDirection = RotationDirection.COUNTERCLOCKWISE
    slide_duration_ms: float = DEFAULT_SLIDE_DURATION


class InteractionBlockedEvent(BaseEvent):
    """Event for a gesture the rendering layer should answer with a shake."""

    event: Literal["interaction_blocked"] = INTERACTION_BLOCKED
    reason: BlockReason


class BatteryIndicatorEvent(BaseEvent):
    """Event for when the battery indicator changes."""

    event: Literal["battery_indicator"] = BATTERY_INDICATOR
    show: bool
    level_percent: Optional[float] = None
    color: Optional[str] = None


class MoreInfoRequestedEvent(BaseEvent):
    """Event asking the host to open the entity dialog."""

    event: Literal["more_info_requested"] = MORE_INFO_REQUESTED


class LockCardState(BaseModel):
    """Snapshot of the state machine."""

    entity_id: str
    visual_state: LockState
    phase: AnimationPhase
    label: str
    backend_state: Optional[LockState] = None
    pending_action: Optional[ActionKind] = None
    last_stable_state: Optional[LockState] = None
    door_closed: bool = True
    battery_level: Optional[float] = None
    battery_low: bool = False
