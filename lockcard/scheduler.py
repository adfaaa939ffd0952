"""Timed playback of planned transition paths."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import Any

from lockcard.const import AnimationPhase, LockState
from lockcard.cycle import TransitionPath
from lockcard.decorators import callback

_LOGGER = logging.getLogger(__name__)

StepCallback = Callable[[LockState, AnimationPhase], Any]
DoneCallback = Callable[[], Any]


class CancelHandle:
    """Handle to a single scheduler run."""

    __slots__ = ("_scheduler", "generation")

    def __init__(self, scheduler: AnimationScheduler, generation: int) -> None:
        """Initialize the handle."""
        self._scheduler = scheduler
        self.generation = generation

    @property
    def active(self) -> bool:
        """Return True while the run may still fire callbacks."""
        return self._scheduler.is_current(self.generation)

    def cancel(self) -> None:
        """Prevent any further callbacks of this run from firing."""
        if self.active:
            self._scheduler.cancel()

    def __repr__(self) -> str:
        """Return the handle."""
        return f"<CancelHandle generation={self.generation} active={self.active}>"


class AnimationScheduler:
    """Play a transition path as a sequence of timed visual state updates.

    Every run carries a generation number. Starting or cancelling a run bumps
    the generation, so a timer belonging to a superseded run compares
    unequal and does nothing even if its handle could not be cancelled in
    time. Only one run is active at a time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Initialize the scheduler."""
        self._loop = loop or asyncio.get_running_loop()
        self._generation: int = 0
        self._running: bool = False
        self._handles: list[asyncio.TimerHandle] = []

    @property
    def running(self) -> bool:
        """Return True if a run is in flight."""
        return self._running

    def is_current(self, generation: int) -> bool:
        """Return True if the generation belongs to the in-flight run."""
        return self._running and generation == self._generation

    def play(
        self,
        path: TransitionPath,
        total_duration_ms: float,
        on_step: StepCallback,
        on_done: DoneCallback,
    ) -> CancelHandle | None:
        """Play a path, cancelling any run still in flight.

        The total duration is split evenly over the path. The first step is
        applied immediately, every following step after its cumulative
        delay, and one step duration after the last one the phase returns
        to idle and ``on_done`` is called.
        """
        self.cancel()
        if not path:
            return None

        self._generation += 1
        self._running = True
        generation = self._generation
        step_s = max(total_duration_ms, 0) / len(path) / 1000
        last = len(path) - 1

        _LOGGER.debug(
            "Playing path %s over %sms (generation %s)",
            [str(state) for state in path],
            total_duration_ms,
            generation,
        )

        for index, state in enumerate(path):
            phase = AnimationPhase.TRANSITIONING
            if index == last:
                phase = AnimationPhase.COMPLETE
            if index == 0:
                on_step(state, phase)
                if not self.is_current(generation):
                    # the step callback superseded this run
                    return CancelHandle(self, generation)
                continue
            self._handles.append(
                self._loop.call_later(
                    index * step_s, self._run_step, generation, on_step, state, phase
                )
            )

        self._handles.append(
            self._loop.call_later(
                len(path) * step_s,
                self._run_finish,
                generation,
                on_step,
                on_done,
                path[last],
            )
        )
        return CancelHandle(self, generation)

    def cancel(self) -> None:
        """Cancel the in-flight run, if any."""
        if self._running:
            _LOGGER.debug("Cancelling run generation %s", self._generation)
        self._generation += 1
        self._running = False
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

    @callback
    def _run_step(
        self,
        generation: int,
        on_step: StepCallback,
        state: LockState,
        phase: AnimationPhase,
    ) -> None:
        if not self.is_current(generation):
            return
        on_step(state, phase)

    @callback
    def _run_finish(
        self,
        generation: int,
        on_step: StepCallback,
        on_done: DoneCallback,
        state: LockState,
    ) -> None:
        if not self.is_current(generation):
            return
        self._running = False
        self._handles.clear()
        on_step(state, AnimationPhase.IDLE)
        on_done()
