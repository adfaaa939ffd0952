"""Host adapter for the animated lock card."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any
import uuid

from lockcard.config import LockCardConfig
from lockcard.const import (
    ATTR_FRIENDLY_NAME,
    CARD_SIZE,
    DEFAULT_NAME,
    LockState,
)
from lockcard.gate import GateDecision, derive_battery_level, derive_door_info
from lockcard.machine import LockStateMachine, ServiceCaller
from lockcard.mixins import LogMixin
from lockcard.states import normalize, state_label

_LOGGER = logging.getLogger(__name__)

EntitySnapshot = Mapping[str, Any]


class LockCard(LogMixin):
    """Feed dashboard state snapshots and gestures into a lock state machine.

    ``states`` snapshots map entity ids to ``{"state": ..., "attributes": ...}``
    dictionaries, the same shape the dashboard hands to custom cards. The
    configuration is validated on construction and a ConfigurationError is
    raised if it is unusable; nothing raises after that.
    """

    _logger = _LOGGER

    def __init__(
        self,
        config: Mapping[str, Any],
        service_caller: ServiceCaller | None = None,
        *,
        instance_id: str | None = None,
    ) -> None:
        """Initialize the card."""
        self._config = LockCardConfig.from_dict(config)
        self._instance_id: str = instance_id or uuid.uuid4().hex[:8]
        self._machine = LockStateMachine(
            self._config, service_caller, instance_id=self._instance_id
        )
        self._entity: EntitySnapshot | None = None

    @staticmethod
    def stub_config() -> dict[str, Any]:
        """Return the configuration offered by the card picker."""
        return LockCardConfig.stub()

    @property
    def log_id(self) -> str:
        """Return the identifier used to prefix log records."""
        return f"card {self._config.entity}#{self._instance_id}"

    @property
    def config(self) -> LockCardConfig:
        """Return the validated configuration."""
        return self._config

    @property
    def machine(self) -> LockStateMachine:
        """Return the state machine."""
        return self._machine

    @property
    def card_size(self) -> int:
        """Return the card height in dashboard rows."""
        return CARD_SIZE

    @property
    def name(self) -> str | None:
        """Return the name shown under the icon, None when hidden."""
        if not self._config.show_name:
            return None
        if self._config.name:
            return self._config.name
        if self._entity is not None:
            attributes = self._entity.get("attributes") or {}
            if friendly_name := attributes.get(ATTR_FRIENDLY_NAME):
                return str(friendly_name)
        return DEFAULT_NAME

    @property
    def state_text(self) -> str | None:
        """Return the label of the backend state, None when hidden.

        Unrecognized backend states are shown as reported.
        """
        if not self._config.show_state:
            return None
        if self._entity is None:
            return state_label(LockState.UNAVAILABLE)
        raw = self._entity.get("state")
        state = normalize(raw)
        if state is LockState.UNKNOWN and isinstance(raw, str) and raw.lower() != state:
            return raw
        return state_label(state)

    def on_event(self, event_name: str, callback: Callable) -> Callable[[], None]:
        """Subscribe the rendering layer to a machine event."""
        return self._machine.on_event(event_name, callback)

    def set_states(self, states: Mapping[str, EntitySnapshot]) -> None:
        """Handle a new dashboard state snapshot."""
        door_entity = self._config.door_entity
        door_state = None
        if door_entity is not None and (door := states.get(door_entity)) is not None:
            door_state = door.get("state")

        battery_level = None
        if self._config.battery_entity is not None:
            battery_level = derive_battery_level(
                states.get(self._config.battery_entity)
            )

        self._machine.update_auxiliary(
            derive_door_info(door_entity, door_state), battery_level
        )

        entity = states.get(self._config.entity)
        self._entity = entity
        if entity is None:
            self.error("Entity %s not found", self._config.entity)
            self._machine.on_backend_update(LockState.UNAVAILABLE.value)
            return
        self._machine.on_backend_update(entity.get("state"))

    def tap(self, timestamp: float | None = None) -> GateDecision:
        """Handle a tap on the card."""
        return self._machine.on_tap(timestamp)

    def hold(self, timestamp: float | None = None) -> GateDecision:
        """Handle a long press on the card."""
        return self._machine.on_hold(timestamp)

    async def async_remove(self) -> None:
        """Tear the card down."""
        await self._machine.on_remove()
