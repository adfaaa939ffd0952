"""Configuration for the lock card engine."""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from dataclasses import dataclass
import logging
from typing import Any

import voluptuous as vol

from lockcard.const import (
    CONF_ACTION,
    CONF_ANIMATION_DURATION,
    CONF_BATTERY_ENTITY,
    CONF_BATTERY_THRESHOLD,
    CONF_DEBOUNCE_WINDOW,
    CONF_DOOR_ENTITY,
    CONF_ENTITY,
    CONF_HOLD_ACTION,
    CONF_LOCKED_TAP_ACTION,
    CONF_NAME,
    CONF_REQUESTED_TIMEOUT,
    CONF_ROTATION_DURATION,
    CONF_SERVICE,
    CONF_SERVICE_DATA,
    CONF_SHOW_NAME,
    CONF_SHOW_STATE,
    CONF_SLIDE_DURATION,
    CONF_TAP_ACTION,
    CONF_UNLOCK_DIRECTION,
    CONF_UNLOCKED_TAP_ACTION,
    DEFAULT_ANIMATION_DURATION,
    DEFAULT_BATTERY_THRESHOLD,
    DEFAULT_DEBOUNCE_WINDOW,
    DEFAULT_REQUESTED_TIMEOUT,
    DEFAULT_ROTATION_DURATION,
    DEFAULT_SLIDE_DURATION,
    MAX_ANIMATION_DURATION,
    MAX_DEBOUNCE_WINDOW,
    MAX_MOTION_DURATION,
    MAX_REQUESTED_TIMEOUT,
    MIN_ANIMATION_DURATION,
    MIN_MOTION_DURATION,
    MIN_REQUESTED_TIMEOUT,
    LockState,
    RotationDirection,
    TapActionType,
)
from lockcard.exceptions import ConfigurationError

_LOGGER = logging.getLogger(__name__)


def clamped(minimum: float, maximum: float) -> vol.All:
    """Coerce to a number and clamp it into the range, warning when clamping."""

    def _clamp(value: float) -> float:
        if value < minimum or value > maximum:
            clamped_value = min(max(value, minimum), maximum)
            _LOGGER.warning(
                "Value %s outside [%s, %s], using %s",
                value,
                minimum,
                maximum,
                clamped_value,
            )
            return clamped_value
        return value

    return vol.All(vol.Coerce(float), _clamp)


def service_name(value: Any) -> str:
    """Validate a ``domain.service`` string."""
    value = vol.Coerce(str)(value).strip()
    domain, _, service = value.partition(".")
    if not domain or not service:
        raise vol.Invalid(f"service must be in the form domain.service: {value}")
    return value


def entity_id(value: Any) -> str:
    """Validate a non blank entity id."""
    if not isinstance(value, str) or not value.strip():
        raise vol.Invalid("You need to define an entity")
    return value.strip()


def require_service(value: dict[str, Any]) -> dict[str, Any]:
    """Validate that call-service actions name their service."""
    if value[CONF_ACTION] is TapActionType.CALL_SERVICE and CONF_SERVICE not in value:
        raise vol.Invalid("call-service action requires a service")
    return value


ACTION_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Required(CONF_ACTION): vol.Coerce(TapActionType),
            vol.Optional(CONF_SERVICE): service_name,
            vol.Optional(CONF_SERVICE_DATA, default=dict): dict,
        },
        extra=vol.ALLOW_EXTRA,
    ),
    require_service,
)

CARD_CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_ENTITY, msg="You need to define an entity"): entity_id,
        vol.Optional(CONF_NAME, default=None): vol.Any(None, str),
        vol.Optional(CONF_SHOW_NAME, default=True): vol.Boolean(),
        vol.Optional(CONF_SHOW_STATE, default=True): vol.Boolean(),
        vol.Optional(
            CONF_ANIMATION_DURATION, default=DEFAULT_ANIMATION_DURATION
        ): clamped(MIN_ANIMATION_DURATION, MAX_ANIMATION_DURATION),
        vol.Optional(
            CONF_ROTATION_DURATION, default=DEFAULT_ROTATION_DURATION
        ): clamped(MIN_MOTION_DURATION, MAX_MOTION_DURATION),
        vol.Optional(CONF_SLIDE_DURATION, default=DEFAULT_SLIDE_DURATION): clamped(
            MIN_MOTION_DURATION, MAX_MOTION_DURATION
        ),
        vol.Optional(
            CONF_UNLOCK_DIRECTION, default=RotationDirection.COUNTERCLOCKWISE
        ): vol.Coerce(RotationDirection),
        vol.Optional(
            CONF_REQUESTED_TIMEOUT, default=DEFAULT_REQUESTED_TIMEOUT
        ): clamped(MIN_REQUESTED_TIMEOUT, MAX_REQUESTED_TIMEOUT),
        vol.Optional(CONF_DEBOUNCE_WINDOW, default=DEFAULT_DEBOUNCE_WINDOW): clamped(
            0, MAX_DEBOUNCE_WINDOW
        ),
        vol.Optional(CONF_TAP_ACTION): ACTION_SCHEMA,
        vol.Optional(CONF_LOCKED_TAP_ACTION): ACTION_SCHEMA,
        vol.Optional(CONF_UNLOCKED_TAP_ACTION): ACTION_SCHEMA,
        vol.Optional(CONF_HOLD_ACTION): ACTION_SCHEMA,
        vol.Optional(CONF_DOOR_ENTITY, default=None): vol.Any(None, entity_id),
        vol.Optional(CONF_BATTERY_ENTITY, default=None): vol.Any(None, entity_id),
        vol.Optional(
            CONF_BATTERY_THRESHOLD, default=DEFAULT_BATTERY_THRESHOLD
        ): vol.All(vol.Coerce(float), vol.Range(min=0, max=100)),
    },
    extra=vol.ALLOW_EXTRA,
)


@dataclass(frozen=True, kw_only=True, slots=True)
class ActionConfig:
    """A configured gesture action."""

    action: TapActionType
    service: str | None = dataclasses.field(default=None)
    service_data: dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ActionConfig:
        """Create an action from validated data."""
        return cls(
            action=data[CONF_ACTION],
            service=data.get(CONF_SERVICE),
            service_data=dict(data.get(CONF_SERVICE_DATA, {})),
        )


DEFAULT_TAP_ACTION = ActionConfig(action=TapActionType.TOGGLE)
DEFAULT_HOLD_ACTION = ActionConfig(action=TapActionType.MORE_INFO)


@dataclass(frozen=True, kw_only=True, slots=True)
class LockCardConfig:
    """Validated lock card configuration. Durations are in milliseconds."""

    entity: str
    name: str | None = dataclasses.field(default=None)
    show_name: bool = dataclasses.field(default=True)
    show_state: bool = dataclasses.field(default=True)
    animation_duration: float = dataclasses.field(default=DEFAULT_ANIMATION_DURATION)
    rotation_duration: float = dataclasses.field(default=DEFAULT_ROTATION_DURATION)
    slide_duration: float = dataclasses.field(default=DEFAULT_SLIDE_DURATION)
    unlock_direction: RotationDirection = dataclasses.field(
        default=RotationDirection.COUNTERCLOCKWISE
    )
    requested_timeout: float = dataclasses.field(default=DEFAULT_REQUESTED_TIMEOUT)
    debounce_window: float = dataclasses.field(default=DEFAULT_DEBOUNCE_WINDOW)
    tap_action: ActionConfig = dataclasses.field(default=DEFAULT_TAP_ACTION)
    locked_tap_action: ActionConfig | None = dataclasses.field(default=None)
    unlocked_tap_action: ActionConfig | None = dataclasses.field(default=None)
    hold_action: ActionConfig = dataclasses.field(default=DEFAULT_HOLD_ACTION)
    door_entity: str | None = dataclasses.field(default=None)
    battery_entity: str | None = dataclasses.field(default=None)
    battery_threshold: float = dataclasses.field(default=DEFAULT_BATTERY_THRESHOLD)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any] | None) -> LockCardConfig:
        """Validate a raw configuration mapping.

        Raises ConfigurationError if the configuration is unusable.
        """
        if not isinstance(config, Mapping):
            raise ConfigurationError("Invalid configuration")
        try:
            data = CARD_CONFIG_SCHEMA(dict(config))
        except vol.Invalid as exc:
            raise ConfigurationError(str(exc)) from exc

        actions: dict[str, ActionConfig | None] = {
            key: ActionConfig.from_dict(data[key]) if key in data else None
            for key in (
                CONF_TAP_ACTION,
                CONF_LOCKED_TAP_ACTION,
                CONF_UNLOCKED_TAP_ACTION,
                CONF_HOLD_ACTION,
            )
        }
        return cls(
            entity=data[CONF_ENTITY],
            name=data[CONF_NAME],
            show_name=data[CONF_SHOW_NAME],
            show_state=data[CONF_SHOW_STATE],
            animation_duration=data[CONF_ANIMATION_DURATION],
            rotation_duration=data[CONF_ROTATION_DURATION],
            slide_duration=data[CONF_SLIDE_DURATION],
            unlock_direction=data[CONF_UNLOCK_DIRECTION],
            requested_timeout=data[CONF_REQUESTED_TIMEOUT],
            debounce_window=data[CONF_DEBOUNCE_WINDOW],
            tap_action=actions[CONF_TAP_ACTION] or DEFAULT_TAP_ACTION,
            locked_tap_action=actions[CONF_LOCKED_TAP_ACTION],
            unlocked_tap_action=actions[CONF_UNLOCKED_TAP_ACTION],
            hold_action=actions[CONF_HOLD_ACTION] or DEFAULT_HOLD_ACTION,
            door_entity=data[CONF_DOOR_ENTITY],
            battery_entity=data[CONF_BATTERY_ENTITY],
            battery_threshold=data[CONF_BATTERY_THRESHOLD],
        )

    @staticmethod
    def stub() -> dict[str, Any]:
        """Return the configuration offered by the card picker."""
        return {
            CONF_ENTITY: "lock.example",
            CONF_SHOW_NAME: True,
            CONF_SHOW_STATE: True,
            CONF_ANIMATION_DURATION: DEFAULT_ANIMATION_DURATION,
        }

    def tap_action_for(self, state: LockState) -> ActionConfig:
        """Return the tap action configured for a stable endpoint."""
        if state is LockState.LOCKED and self.locked_tap_action is not None:
            return self.locked_tap_action
        if state is LockState.UNLOCKED and self.unlocked_tap_action is not None:
            return self.unlocked_tap_action
        return self.tap_action
