"""Async utilities for the lock card engine."""

from __future__ import annotations

import asyncio
from asyncio import AbstractEventLoop, Task, get_running_loop
from collections.abc import Callable, Coroutine, Iterable
import contextlib
import enum
import functools
from functools import cached_property
import inspect
import logging
from typing import Any, Generic, ParamSpec, TypeVar

_T = TypeVar("_T")
_R_co = TypeVar("_R_co", covariant=True)
_P = ParamSpec("_P")

_LOGGER = logging.getLogger(__name__)


def create_eager_task(
    coro: Coroutine[Any, Any, _T],
    *,
    name: str | None = None,
    loop: AbstractEventLoop | None = None,
) -> Task[_T]:
    """Create a task from a coroutine and schedule it to run immediately."""
    return Task(
        coro,
        loop=loop or get_running_loop(),
        name=name,
        eager_start=True,
    )


@enum.unique
class LockJobType(enum.Enum):
    """Represent a job type."""

    Coroutinefunction = 1
    Callback = 2


def get_job_type(target: Callable[..., Any]) -> LockJobType:
    """Determine the job type from the callable."""
    # Check for partials to properly determine if coroutine function
    while isinstance(target, functools.partial):
        target = target.func

    if inspect.iscoroutinefunction(target):
        return LockJobType.Coroutinefunction
    return LockJobType.Callback


class LockJob(Generic[_P, _R_co]):
    """Represent a collaborator callable to be run from the event loop.

    The callable type is checked once so it does not need to be checked
    every time the job runs.
    """

    def __init__(self, target: Callable[_P, _R_co], name: str | None = None) -> None:
        """Create a job object."""
        self.target = target
        self.name = name

    @cached_property
    def job_type(self) -> LockJobType:
        """Return the job type."""
        return get_job_type(self.target)

    def __repr__(self) -> str:
        """Return the job."""
        return f"<Job {self.name} {self.job_type} {self.target}>"


class AsyncUtilMixin:
    """Mixin for tracking the tasks an object starts on the event loop."""

    def __init__(self, *args: Any, **kw_args: Any) -> None:
        """Initialize the async mixin."""
        self.loop = asyncio.get_running_loop()
        self._tracked_completable_tasks: set[asyncio.Task] = set()
        super().__init__(*args, **kw_args)

    async def shutdown(self) -> None:
        """Cancel every task that is still running."""
        tasks = [t for t in self.tracked_tasks() if not t.done()]
        for task in tasks:
            _LOGGER.debug("Cancelling task: %s", task)
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.gather(*tasks, return_exceptions=True)

    def async_create_task(
        self,
        target: Coroutine[Any, Any, _T],
        name: str | None = None,
        eager_start: bool = True,
    ) -> asyncio.Task[_T]:
        """Create a tracked task from within the event loop."""
        if eager_start:
            task = create_eager_task(target, name=name, loop=self.loop)
            if task.done():
                return task
        else:
            task = self.loop.create_task(target, name=name)
        self._tracked_completable_tasks.add(task)
        task.add_done_callback(self._tracked_completable_tasks.discard)
        return task

    def async_run_job(
        self, job: LockJob[..., Any], *args: Any
    ) -> asyncio.Task[Any] | None:
        """Run a job from within the event loop.

        Callbacks run immediately. Coroutine functions, and callbacks that
        hand back an awaitable, are wrapped in a tracked task.
        """
        if job.job_type is LockJobType.Coroutinefunction:
            return self.async_create_task(job.target(*args), name=job.name)

        result = job.target(*args)
        if inspect.iscoroutine(result):
            return self.async_create_task(result, name=job.name)
        return None

    def tracked_tasks(self) -> Iterable[asyncio.Task]:
        """Return the tasks still being tracked."""
        return tuple(self._tracked_completable_tasks)
