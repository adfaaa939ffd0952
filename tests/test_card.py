"""Tests for the lock card host adapter."""

import logging
from unittest.mock import MagicMock, call

import pytest

from lockcard.card import LockCard
from lockcard.const import (
    BATTERY_INDICATOR,
    CARD_SIZE,
    INTERACTION_BLOCKED,
    VISUAL_STATE_CHANGED,
    BlockReason,
    LockState,
)
from lockcard.exceptions import ConfigurationError
from tests.common import EventRecorder, entity
from tests.conftest import BATTERY_ENTITY, DOOR_ENTITY, LOCK_ENTITY


async def test_invalid_config_raises() -> None:
    """Test the card refuses a configuration without an entity."""
    with pytest.raises(ConfigurationError, match="You need to define an entity"):
        LockCard({"name": "Front door"})


async def test_stub_config() -> None:
    """Test the card picker stub is itself a valid configuration."""
    stub = LockCard.stub_config()
    assert stub["entity"] == "lock.example"

    card = LockCard(stub)
    try:
        assert card.config.entity == "lock.example"
    finally:
        await card.async_remove()


async def test_card_size(card: LockCard) -> None:
    """Test the reported card height."""
    assert card.card_size == CARD_SIZE == 3


async def test_name_fallbacks(card: LockCard) -> None:
    """Test the name falls back to the friendly name and then a default."""
    assert card.name == "Lock"

    card.set_states(
        {LOCK_ENTITY: entity("locked", friendly_name="Front door")}
    )
    assert card.name == "Front door"

    named = LockCard({"entity": LOCK_ENTITY, "name": "Back door"})
    try:
        named.set_states({LOCK_ENTITY: entity("locked", friendly_name="Front")})
        assert named.name == "Back door"
    finally:
        await named.async_remove()


async def test_state_text(card: LockCard) -> None:
    """Test the state text shown under the name."""
    assert card.state_text == "Unavailable"

    card.set_states({LOCK_ENTITY: entity("unlocking")})
    assert card.state_text == "Unlocking..."

    card.set_states({LOCK_ENTITY: entity("Half-Open")})
    assert card.state_text == "Half-Open"
    assert card.machine.visual_state is LockState.UNKNOWN

    card.set_states({LOCK_ENTITY: entity("unknown")})
    assert card.state_text == "Unknown"


async def test_missing_lock_entity(
    card: LockCard, caplog: pytest.LogCaptureFixture
) -> None:
    """Test a missing lock entity shows as unavailable."""
    card.set_states({DOOR_ENTITY: entity("off")})

    assert card.machine.visual_state is LockState.UNAVAILABLE
    assert f"Entity {LOCK_ENTITY} not found" in caplog.text
    assert any(record.levelno == logging.ERROR for record in caplog.records)


async def test_tap_through_card(card: LockCard, service_caller: MagicMock) -> None:
    """Test a tap with the door closed locks the door."""
    card.set_states(
        {
            LOCK_ENTITY: entity("unlocked"),
            DOOR_ENTITY: entity("off"),
        }
    )

    decision = card.tap(1000)

    assert decision.allowed
    assert card.machine.visual_state is LockState.LOCK_REQUESTED
    assert service_caller.call_args_list == [
        call("lock", "lock", {"entity_id": LOCK_ENTITY})
    ]


@pytest.mark.parametrize("door_state", ["on", "open", "unavailable", None])
async def test_door_not_closed_blocks_tap(
    card: LockCard, service_caller: MagicMock, door_state: str | None
) -> None:
    """Test only a recognised closed reading lets a tap through."""
    states = {LOCK_ENTITY: entity("unlocked")}
    if door_state is not None:
        states[DOOR_ENTITY] = entity(door_state)
    card.set_states(states)
    recorder = EventRecorder(card.machine)

    decision = card.tap(1000)

    assert decision.reason is BlockReason.DOOR
    assert len(recorder.of(INTERACTION_BLOCKED)) == 1
    assert service_caller.call_count == 0
    assert card.machine.door_info.is_closed is False


async def test_door_closed_reading_is_case_insensitive(card: LockCard) -> None:
    """Test closed readings are matched case insensitively."""
    card.set_states(
        {LOCK_ENTITY: entity("locked"), DOOR_ENTITY: entity("Closed")}
    )
    assert card.machine.door_info.is_closed is True


async def test_no_door_sensor_configured(service_caller: MagicMock) -> None:
    """Test a card without a door sensor never blocks on the door."""
    card = LockCard({"entity": LOCK_ENTITY}, service_caller)
    try:
        card.set_states({LOCK_ENTITY: entity("locked")})
        assert card.machine.door_info.is_closed is True
        assert card.tap(1000).allowed
    finally:
        await card.async_remove()


async def test_battery_indicator(card: LockCard) -> None:
    """Test the battery level is read from the state or its attributes."""
    recorder = EventRecorder(card.machine)

    card.set_states(
        {LOCK_ENTITY: entity("locked"), BATTERY_ENTITY: entity("15 %")}
    )
    card.set_states(
        {
            LOCK_ENTITY: entity("locked"),
            BATTERY_ENTITY: entity("unknown", battery_level=64),
        }
    )
    card.set_states(
        {LOCK_ENTITY: entity("locked"), BATTERY_ENTITY: entity("-5")}
    )

    events = recorder.of(BATTERY_INDICATOR)
    assert [(event.show, event.level_percent) for event in events] == [
        (True, 15.0),
        (False, 64.0),
        (True, 0.0),
    ]
    assert card.machine.state.battery_level == 0.0


async def test_on_event_unsubscribe(card: LockCard) -> None:
    """Test render subscriptions can be dropped."""
    seen = []
    unsubscribe = card.on_event(VISUAL_STATE_CHANGED, seen.append)

    card.set_states({LOCK_ENTITY: entity("locked")})
    unsubscribe()
    card.set_states({LOCK_ENTITY: entity("jammed")})

    assert [event.state for event in seen] == [LockState.LOCKED]


async def test_remove(card: LockCard, service_caller: MagicMock) -> None:
    """Test a removed card ignores further input."""
    card.set_states({LOCK_ENTITY: entity("unlocked")})
    await card.async_remove()

    card.set_states({LOCK_ENTITY: entity("locked")})
    assert card.machine.visual_state is LockState.UNLOCKED
    assert not card.tap(1000).allowed
    assert service_caller.call_count == 0


async def test_hidden_name_and_state(service_caller: MagicMock) -> None:
    """Test the show flags hide the name and state text."""
    card = LockCard(
        {"entity": LOCK_ENTITY, "show_name": False, "show_state": False},
        service_caller,
    )
    try:
        card.set_states({LOCK_ENTITY: entity("locked", friendly_name="Front")})
        assert card.name is None
        assert card.state_text is None
        assert card.machine.visual_state is LockState.LOCKED
    finally:
        await card.async_remove()
