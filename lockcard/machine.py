"""Lock state machine driving the animated lock card."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import functools
import logging
from typing import Any
import uuid

from lockcard.async_ import AsyncUtilMixin, LockJob
from lockcard.config import ActionConfig, LockCardConfig
from lockcard.const import (
    ATTR_ENTITY_ID,
    BATTERY_INDICATOR,
    DIRECT_ROTATION_DIVISOR,
    INTERACTION_BLOCKED,
    LOCK_DOMAIN,
    MORE_INFO_REQUESTED,
    VISUAL_STATE_CHANGED,
    ActionKind,
    AnimationPhase,
    BlockReason,
    Easing,
    LockState,
    TapActionType,
)
from lockcard.cycle import plan
from lockcard.decorators import callback
from lockcard.event import EventBase
from lockcard.gate import (
    BatteryWarning,
    DoorInfo,
    GateDecision,
    InteractionGate,
    battery_color,
    derive_battery_warning,
)
from lockcard.mixins import LogMixin
from lockcard.model import (
    BatteryIndicatorEvent,
    InteractionBlockedEvent,
    LockCardState,
    MoreInfoRequestedEvent,
    VisualStateChangedEvent,
)
from lockcard.optimistic import (
    OptimisticActionTracker,
    PendingAction,
    TimeoutGuard,
    default_fallback,
)
from lockcard.scheduler import AnimationScheduler
from lockcard.states import is_stable, normalize, state_label

_LOGGER = logging.getLogger(__name__)

ServiceCaller = Callable[[str, str, dict[str, Any]], Any]


class LockStateMachine(LogMixin, AsyncUtilMixin, EventBase):
    """Reconcile backend state, user actions and the animated visual state.

    The machine consumes two kinds of input: backend state updates and user
    gestures. Everything it shows is emitted as events for the rendering
    layer. All mutation happens on the event loop thread, either directly in
    those handlers or in timers the machine owns; ``on_remove`` cancels
    every one of them.
    """

    _logger = _LOGGER

    def __init__(
        self,
        config: LockCardConfig,
        service_caller: ServiceCaller | None = None,
        *,
        instance_id: str | None = None,
    ) -> None:
        """Initialize the state machine."""
        super().__init__()
        self._config = config
        self._instance_id: str = instance_id or uuid.uuid4().hex[:8]
        self._service_job: LockJob | None = (
            LockJob(service_caller, name=f"lock_service_{self._instance_id}")
            if service_caller is not None
            else None
        )

        self._visual_state: LockState = LockState.UNKNOWN
        self._phase: AnimationPhase = AnimationPhase.IDLE
        self._backend_state: LockState | None = None
        self._last_stable_state: LockState | None = None
        self._door_info = DoorInfo(is_closed=True)
        self._battery_level: float | None = None
        self._battery_warning = BatteryWarning(show=False, level_percent=None)
        self._battery_event: BatteryIndicatorEvent | None = None
        self._removed: bool = False

        self._scheduler = AnimationScheduler(self.loop)
        self._tracker = OptimisticActionTracker(clock=self._now_ms)
        self._guard = TimeoutGuard(lambda: self._visual_state, self.loop)
        self._gate = InteractionGate()

    @property
    def log_id(self) -> str:
        """Return the identifier used to prefix log records."""
        return f"{self._config.entity}#{self._instance_id}"

    @property
    def instance_id(self) -> str:
        """Return the per instance identifier."""
        return self._instance_id

    @property
    def config(self) -> LockCardConfig:
        """Return the card configuration."""
        return self._config

    @property
    def visual_state(self) -> LockState:
        """Return the displayed state."""
        return self._visual_state

    @property
    def phase(self) -> AnimationPhase:
        """Return the animation phase."""
        return self._phase

    @property
    def backend_state(self) -> LockState | None:
        """Return the last normalized backend state."""
        return self._backend_state

    @property
    def last_stable_state(self) -> LockState | None:
        """Return the last backend state that was locked or unlocked."""
        return self._last_stable_state

    @property
    def pending_action(self) -> PendingAction | None:
        """Return the user action awaiting confirmation."""
        return self._tracker.pending

    @property
    def door_info(self) -> DoorInfo:
        """Return the latest door snapshot."""
        return self._door_info

    @property
    def animating(self) -> bool:
        """Return True while a transition path is playing."""
        return self._scheduler.running

    @property
    def state(self) -> LockCardState:
        """Return a snapshot of the machine."""
        pending = self._tracker.pending
        return LockCardState(
            entity_id=self._config.entity,
            visual_state=self._visual_state,
            phase=self._phase,
            label=state_label(self._visual_state),
            backend_state=self._backend_state,
            pending_action=pending.kind if pending is not None else None,
            last_stable_state=self._last_stable_state,
            door_closed=self._door_info.is_closed,
            battery_level=self._battery_level,
            battery_low=self._battery_warning.show,
        )

    @callback
    def on_backend_update(self, raw_state: Any) -> None:
        """Handle a state reported by the backend."""
        if self._removed:
            return

        state = normalize(raw_state)
        previous = self._backend_state

        if previous is None:
            self.debug("First backend state %s", state)
            self._backend_state = state
            self._remember_stable(state)
            self._scheduler.cancel()
            self._set_visual(state, AnimationPhase.IDLE, force=True)
            return

        if state == previous:
            return

        self._backend_state = state
        self._remember_stable(state)

        result = self._tracker.reconcile(state)
        if result.is_stale_echo:
            self.debug("Ignoring stale echo of %s while an action is pending", state)
            return
        if result.cleared or result.superseded:
            self._guard.disarm()

        pending = self._tracker.has_pending()
        direct = (
            not pending
            and is_stable(previous)
            and is_stable(state)
            and self._visual_state == previous
        )
        path = plan(self._visual_state, state, allow_requested_stage=pending)
        self.debug(
            "Backend %s -> %s, visual %s, path %s",
            previous,
            state,
            self._visual_state,
            [str(step) for step in path],
        )

        if direct:
            total_ms = self._config.rotation_duration / DIRECT_ROTATION_DIVISOR
            easing = Easing.DIRECT
        else:
            total_ms = self._config.animation_duration
            easing = Easing.STANDARD

        handle = self._scheduler.play(
            path,
            total_ms,
            functools.partial(
                self._apply_step,
                duration_ms=total_ms / len(path) if path else 0,
                easing=easing,
            ),
            self._animation_done,
        )
        if handle is None:
            self._set_visual(state, AnimationPhase.IDLE)

    @callback
    def update_auxiliary(
        self, door_info: DoorInfo, battery_level: float | None = None
    ) -> None:
        """Update the door and battery signals."""
        if self._removed:
            return
        self._door_info = door_info
        self._battery_level = battery_level
        self._battery_warning = derive_battery_warning(
            battery_level, self._config.battery_threshold
        )
        event = BatteryIndicatorEvent(
            entity_id=self._config.entity,
            show=self._battery_warning.show,
            level_percent=self._battery_warning.level_percent,
            color=battery_color(self._battery_warning),
        )
        if event != self._battery_event:
            self._battery_event = event
            self.emit(BATTERY_INDICATOR, event)

    @callback
    def on_tap(self, timestamp: float | None = None) -> GateDecision:
        """Handle a tap gesture; ``timestamp`` is in milliseconds."""
        return self._handle_gesture(timestamp, None)

    @callback
    def on_hold(self, timestamp: float | None = None) -> GateDecision:
        """Handle a hold gesture; ``timestamp`` is in milliseconds."""
        return self._handle_gesture(timestamp, self._config.hold_action)

    async def on_remove(self) -> None:
        """Cancel the timers and tasks this machine owns and drop listeners."""
        self._removed = True
        self._scheduler.cancel()
        self._guard.disarm()
        self._tracker.clear()
        await self.async_remove_listeners()
        await self.shutdown()
        self.debug("Removed")

    def _handle_gesture(
        self, timestamp: float | None, action: ActionConfig | None
    ) -> GateDecision:
        if self._removed:
            return GateDecision(allowed=False)
        if timestamp is None:
            timestamp = self._now_ms()

        decision = self._gate.evaluate(
            timestamp, self._door_info, self._visual_state, self._config, action
        )
        if not decision.allowed:
            self.debug(
                "Gesture in state %s rejected: %s", self._visual_state, decision.reason
            )
            if decision.reason is BlockReason.DOOR:
                self.emit(
                    INTERACTION_BLOCKED,
                    InteractionBlockedEvent(
                        entity_id=self._config.entity, reason=decision.reason
                    ),
                )
            return decision

        assert decision.action is not None
        if decision.action.action is TapActionType.MORE_INFO:
            self.emit(
                MORE_INFO_REQUESTED,
                MoreInfoRequestedEvent(entity_id=self._config.entity),
            )
        elif decision.action.action is TapActionType.CALL_SERVICE:
            assert decision.action.service is not None
            domain, _, service = decision.action.service.partition(".")
            self._call_service(domain, service, dict(decision.action.service_data))
        elif decision.kind is not None:
            self._begin_action(decision.kind)
        return decision

    def _begin_action(self, kind: ActionKind) -> None:
        requested = self._tracker.begin(kind, self._visual_state)
        fallback = self._last_stable_state or default_fallback(requested)

        self._scheduler.cancel()
        self._set_visual(
            requested,
            AnimationPhase.TRANSITIONING,
            duration_ms=self._config.animation_duration,
        )
        self._guard.arm(
            requested,
            fallback,
            self._config.requested_timeout,
            self._handle_timeout,
            self._handle_lapse,
        )
        self._call_service(
            LOCK_DOMAIN, kind.value, {ATTR_ENTITY_ID: self._config.entity}
        )

    @callback
    def _handle_timeout(self, fallback: LockState) -> None:
        self.debug("Requested state timed out, rolling back to %s", fallback)
        self._scheduler.cancel()
        self._tracker.clear()
        self._set_visual(fallback, AnimationPhase.IDLE)

    @callback
    def _handle_lapse(self) -> None:
        self.debug("Requested state timed out after the visual state moved on")
        self._tracker.clear()

    @callback
    def _apply_step(
        self,
        state: LockState,
        phase: AnimationPhase,
        *,
        duration_ms: float,
        easing: Easing,
    ) -> None:
        self._set_visual(state, phase, duration_ms=duration_ms, easing=easing)

    @callback
    def _animation_done(self) -> None:
        self.debug("Animation to %s done", self._visual_state)

    def _remember_stable(self, state: LockState) -> None:
        if is_stable(state):
            self._last_stable_state = state

    def _set_visual(
        self,
        state: LockState,
        phase: AnimationPhase,
        *,
        duration_ms: float = 0,
        easing: Easing = Easing.STANDARD,
        force: bool = False,
    ) -> None:
        if not force and state == self._visual_state and phase == self._phase:
            return
        previous = self._visual_state
        self._visual_state = state
        self._phase = phase
        self.emit(
            VISUAL_STATE_CHANGED,
            VisualStateChangedEvent(
                entity_id=self._config.entity,
                state=state,
                phase=phase,
                previous_state=previous,
                label=state_label(state),
                duration_ms=duration_ms,
                easing=easing,
                unlock_direction=self._config.unlock_direction,
                slide_duration_ms=self._config.slide_duration,
            ),
        )

    def _call_service(self, domain: str, service: str, data: dict[str, Any]) -> None:
        if self._service_job is None:
            self.warning("No service sink configured, dropping %s.%s", domain, service)
            return
        self.debug("Calling service %s.%s with %s", domain, service, data)
        try:
            task = self.async_run_job(self._service_job, domain, service, data)
        except Exception as ex:  # pylint: disable=broad-except
            self.warning("Service call %s.%s failed", domain, service, exc_info=ex)
            return
        if task is not None:
            task.add_done_callback(
                functools.partial(self._service_call_done, domain, service)
            )

    def _service_call_done(
        self, domain: str, service: str, task: asyncio.Task[Any]
    ) -> None:
        if task.cancelled():
            return
        if (ex := task.exception()) is not None:
            self.warning("Service call %s.%s failed", domain, service, exc_info=ex)

    def _now_ms(self) -> float:
        return self.loop.time() * 1000
