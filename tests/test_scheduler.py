"""Tests for the animation scheduler."""

import asyncio
from unittest.mock import MagicMock, call

import pytest

from lockcard.const import AnimationPhase, LockState
from lockcard.scheduler import AnimationScheduler

LOCK_PATH = (LockState.LOCK_REQUESTED, LockState.LOCKING, LockState.LOCKED)


async def test_play_empty_path_is_noop() -> None:
    """Test an empty path schedules nothing."""
    scheduler = AnimationScheduler()
    on_step = MagicMock()
    on_done = MagicMock()

    assert scheduler.play((), 300, on_step, on_done) is None
    assert not scheduler.running
    await asyncio.sleep(0)
    assert on_step.call_count == 0
    assert on_done.call_count == 0


@pytest.mark.looptime
async def test_play_steps_in_order() -> None:
    """Test steps fire at their cumulative delays and end idle."""
    scheduler = AnimationScheduler()
    on_step = MagicMock()
    on_done = MagicMock()

    handle = scheduler.play(LOCK_PATH, 300, on_step, on_done)
    assert handle is not None
    assert handle.active
    assert scheduler.running

    # the first step is applied right away
    assert on_step.call_args_list == [
        call(LockState.LOCK_REQUESTED, AnimationPhase.TRANSITIONING)
    ]

    await asyncio.sleep(0.15)
    assert on_step.call_args_list[-1] == call(
        LockState.LOCKING, AnimationPhase.TRANSITIONING
    )

    await asyncio.sleep(0.1)
    assert on_step.call_args_list[-1] == call(
        LockState.LOCKED, AnimationPhase.COMPLETE
    )
    assert on_done.call_count == 0

    await asyncio.sleep(0.1)
    assert on_step.call_args_list == [
        call(LockState.LOCK_REQUESTED, AnimationPhase.TRANSITIONING),
        call(LockState.LOCKING, AnimationPhase.TRANSITIONING),
        call(LockState.LOCKED, AnimationPhase.COMPLETE),
        call(LockState.LOCKED, AnimationPhase.IDLE),
    ]
    assert on_done.call_count == 1
    assert not scheduler.running
    assert not handle.active


@pytest.mark.looptime
async def test_single_step_path() -> None:
    """Test a single hop completes at once and idles one step later."""
    scheduler = AnimationScheduler()
    on_step = MagicMock()
    on_done = MagicMock()

    scheduler.play((LockState.JAMMED,), 200, on_step, on_done)
    assert on_step.call_args_list == [call(LockState.JAMMED, AnimationPhase.COMPLETE)]

    await asyncio.sleep(0.25)
    assert on_step.call_args_list[-1] == call(LockState.JAMMED, AnimationPhase.IDLE)
    assert on_done.call_count == 1


@pytest.mark.looptime
async def test_cancel_prevents_pending_steps() -> None:
    """Test a cancelled run never fires again."""
    scheduler = AnimationScheduler()
    on_step = MagicMock()
    on_done = MagicMock()

    handle = scheduler.play(LOCK_PATH, 300, on_step, on_done)
    handle.cancel()
    assert not handle.active
    assert not scheduler.running

    await asyncio.sleep(1)
    assert on_step.call_count == 1
    assert on_done.call_count == 0


@pytest.mark.looptime
async def test_new_run_supersedes_old_one() -> None:
    """Test starting a run cancels the one in flight."""
    scheduler = AnimationScheduler()
    old_step = MagicMock()
    old_done = MagicMock()
    new_step = MagicMock()
    new_done = MagicMock()

    old = scheduler.play(LOCK_PATH, 300, old_step, old_done)
    await asyncio.sleep(0.15)
    assert old_step.call_count == 2

    new = scheduler.play((LockState.JAMMED,), 100, new_step, new_done)
    assert not old.active
    assert new.active
    assert new.generation > old.generation

    await asyncio.sleep(1)
    assert old_step.call_count == 2
    assert old_done.call_count == 0
    assert new_step.call_args_list == [
        call(LockState.JAMMED, AnimationPhase.COMPLETE),
        call(LockState.JAMMED, AnimationPhase.IDLE),
    ]
    assert new_done.call_count == 1

    # cancelling a stale handle leaves nothing to cancel
    old.cancel()
    assert not scheduler.running


@pytest.mark.looptime
async def test_stale_timer_is_noop() -> None:
    """Test a timer from a superseded generation does nothing."""
    scheduler = AnimationScheduler()
    on_step = MagicMock()

    handle = scheduler.play(LOCK_PATH, 300, on_step, MagicMock())
    scheduler.cancel()

    scheduler._run_step(handle.generation, on_step, LockState.LOCKED, "complete")
    assert on_step.call_count == 1


async def test_first_step_can_supersede_run() -> None:
    """Test a step callback that cancels the run stops the remaining steps."""
    scheduler = AnimationScheduler()
    on_done = MagicMock()

    def on_step(state: LockState, phase: AnimationPhase) -> None:
        scheduler.cancel()

    handle = scheduler.play(LOCK_PATH, 300, on_step, on_done)
    assert handle is not None
    assert not handle.active
    assert not scheduler.running
