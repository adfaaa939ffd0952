"""Common test helpers for the lock card tests."""

from __future__ import annotations

from typing import Any

from lockcard.const import VISUAL_STATE_CHANGED, AnimationPhase, LockState
from lockcard.event import EventBase


class EventRecorder:
    """Record every event an emitter sends."""

    def __init__(self, emitter: EventBase) -> None:
        """Start recording."""
        self.events: list[tuple[str, Any]] = []
        self.unsubscribe = emitter.on_all_events(self._record, with_context=True)

    def _record(self, event_name: str, data: Any) -> None:
        self.events.append((event_name, data))

    def of(self, event_name: str) -> list[Any]:
        """Return the data of every recorded event with this name."""
        return [data for name, data in self.events if name == event_name]

    @property
    def visual(self) -> list[tuple[LockState, AnimationPhase]]:
        """Return the recorded visual state changes."""
        return [(data.state, data.phase) for data in self.of(VISUAL_STATE_CHANGED)]

    def clear(self) -> None:
        """Forget recorded events."""
        self.events.clear()


def entity(state: Any, **attributes: Any) -> dict[str, Any]:
    """Build an entity snapshot."""
    return {"state": state, "attributes": attributes}
