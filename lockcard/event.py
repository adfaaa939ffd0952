"""Event emitter base class for the lock card engine."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import dataclasses
import inspect
import logging
from typing import Any

_LOGGER = logging.getLogger(__package__)


@dataclasses.dataclass(frozen=True, slots=True)
class EventListener:
    """Listener for an event."""

    callback: Callable
    with_context: bool


class EventBase:
    """Base class for objects that emit events to the rendering layer."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize event base."""
        super().__init__(*args, **kwargs)
        self._listeners: dict[str, list[EventListener]] = {}
        self._event_tasks: list[asyncio.Task] = []
        self._global_listeners: list[EventListener] = []

    def on_event(  # pylint: disable=invalid-name
        self, event_name: str, callback: Callable, with_context: bool = False
    ) -> Callable[[], None]:
        """Register an event callback and return its unsubscribe function."""
        listener = EventListener(callback=callback, with_context=with_context)
        listeners = self._listeners.setdefault(event_name, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def on_all_events(  # pylint: disable=invalid-name
        self, callback: Callable, with_context: bool = False
    ) -> Callable[[], None]:
        """Register a callback for all events."""
        listener = EventListener(callback=callback, with_context=with_context)
        self._global_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._global_listeners:
                self._global_listeners.remove(listener)

        return unsubscribe

    def emit(self, event_name: str, data: Any = None) -> None:
        """Run all callbacks for an event.

        Coroutine callbacks are wrapped in tasks that are tracked until done.
        """
        listeners = [*self._listeners.get(event_name, []), *self._global_listeners]
        _LOGGER.debug(
            "Emitting event %s with data %r (%d listeners)",
            event_name,
            data,
            len(listeners),
        )

        for listener in listeners:
            if listener.with_context:
                call = listener.callback(event_name, data)
            else:
                call = listener.callback(data)

            if inspect.iscoroutine(call):
                task = asyncio.create_task(call)
                self._event_tasks.append(task)
                task.add_done_callback(self._event_tasks.remove)

    def clear_listeners(self) -> None:
        """Drop every registered listener."""
        self._listeners.clear()
        self._global_listeners.clear()

    async def async_remove_listeners(self) -> None:
        """Drop every listener and cancel the tasks coroutine listeners started."""
        self.clear_listeners()
        tasks = [task for task in self._event_tasks if not task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
