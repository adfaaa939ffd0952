"""Test configuration for the lock card engine."""

from collections.abc import AsyncGenerator
import logging
from typing import Any
from unittest.mock import MagicMock

import pytest

from lockcard.card import LockCard
from lockcard.config import LockCardConfig
from lockcard.machine import LockStateMachine

_LOGGER = logging.getLogger(__name__)

LOCK_ENTITY = "lock.front_door"
DOOR_ENTITY = "binary_sensor.front_door_contact"
BATTERY_ENTITY = "sensor.front_door_battery"


@pytest.fixture(name="caplog")
def caplog_fixture(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Set log level to debug for tests using the caplog fixture."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def raw_config() -> dict[str, Any]:
    """Raw card configuration fixture."""
    return {
        "entity": LOCK_ENTITY,
        "animation_duration": 400,
        "rotation_duration": 600,
        "requested_timeout": 2000,
    }


@pytest.fixture
def lock_config(raw_config: dict[str, Any]) -> LockCardConfig:
    """Validated configuration fixture."""
    return LockCardConfig.from_dict(raw_config)


@pytest.fixture
def service_caller() -> MagicMock:
    """Service call sink fixture."""
    return MagicMock(return_value=None)


@pytest.fixture
async def machine(
    lock_config: LockCardConfig, service_caller: MagicMock
) -> AsyncGenerator[LockStateMachine, None]:
    """Lock state machine fixture."""
    lock_machine = LockStateMachine(lock_config, service_caller, instance_id="test")
    yield lock_machine
    await lock_machine.on_remove()


@pytest.fixture
async def card(
    raw_config: dict[str, Any], service_caller: MagicMock
) -> AsyncGenerator[LockCard, None]:
    """Lock card fixture with door and battery sensors."""
    lock_card = LockCard(
        {
            **raw_config,
            "door_entity": DOOR_ENTITY,
            "battery_entity": BATTERY_ENTITY,
        },
        service_caller,
        instance_id="test",
    )
    yield lock_card
    await lock_card.async_remove()
