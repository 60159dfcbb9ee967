"""Task runner: named tasks with prerequisites, run in dependency order."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

TaskAction = Callable[[], Awaitable[Any] | Any]


class TaskError(Exception):
    """Base class for task runner errors."""


class UnknownTaskError(TaskError):
    """A task (or prerequisite) name is not registered."""

    def __init__(self, name: str, *, required_by: str | None = None) -> None:
        if required_by:
            message = f"Task {name!r} (required by {required_by!r}) is not registered."
        else:
            message = f"Task {name!r} is not registered."
        super().__init__(message)
        self.task_name = name


class TaskCycleError(TaskError):
    """Task prerequisites form a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Task dependency cycle: {' -> '.join(cycle)}")
        self.cycle = cycle


class TaskFailedError(TaskError):
    """A task action raised; the original error is chained as ``__cause__``."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Task {name!r} failed: {reason}")
        self.task_name = name


@dataclass(frozen=True, slots=True)
class RegisteredTask:
    """One registered task."""

    name: str
    deps: tuple[str, ...]
    action: TaskAction | None

    async def invoke(self) -> Any:
        if self.action is None:
            return None
        result = self.action()
        if inspect.isawaitable(result):
            return await result
        return result


class TaskRunner:
    """Registry of named tasks that runs them in prerequisite order.

    Each task runs at most once per ``run`` call.  Independent prerequisites
    run concurrently on the event loop.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, RegisteredTask] = {}

    def task(
        self,
        name: str,
        deps: Iterable[str] = (),
        action: TaskAction | None = None,
    ) -> RegisteredTask:
        """Register ``action`` under ``name``, replacing any earlier task."""
        if not name:
            raise ValueError("Task name must be a non-empty string.")
        if name in self._tasks:
            logger.warning("Task %r is being redefined", name)
        registered = RegisteredTask(name=name, deps=tuple(deps), action=action)
        self._tasks[name] = registered
        return registered

    def get(self, name: str) -> RegisteredTask:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError(name) from None

    @property
    def names(self) -> list[str]:
        return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def plan(self, *names: str) -> list[str]:
        """Return every task needed for ``names``, prerequisites first."""
        order: list[str] = []
        visiting: list[str] = []
        done: set[str] = set()

        def visit(name: str, required_by: str | None) -> None:
            if name in done:
                return
            if name in visiting:
                raise TaskCycleError([*visiting[visiting.index(name) :], name])
            if name not in self._tasks:
                raise UnknownTaskError(name, required_by=required_by)
            visiting.append(name)
            for dep in self._tasks[name].deps:
                visit(dep, name)
            visiting.pop()
            done.add(name)
            order.append(name)

        for name in names:
            visit(name, None)
        return order

    async def run(self, *names: str) -> dict[str, Any]:
        """Run ``names`` and their prerequisites; return results by task name."""
        self.plan(*names)
        scheduled: dict[str, asyncio.Task[Any]] = {}
        results: dict[str, Any] = {}

        def schedule(name: str) -> asyncio.Task[Any]:
            if name not in scheduled:
                scheduled[name] = asyncio.ensure_future(execute(self._tasks[name]))
            return scheduled[name]

        async def execute(registered: RegisteredTask) -> Any:
            if registered.deps:
                await asyncio.gather(*(schedule(dep) for dep in registered.deps))
            logger.info("Starting '%s'...", registered.name)
            started = time.monotonic()
            try:
                result = await registered.invoke()
            except Exception as error:
                logger.error(
                    "'%s' errored after %.2fs: %s",
                    registered.name,
                    time.monotonic() - started,
                    error,
                )
                raise TaskFailedError(registered.name, str(error)) from error
            logger.info("Finished '%s' after %.2fs", registered.name, time.monotonic() - started)
            results[registered.name] = result
            return result

        targets = [schedule(name) for name in names]
        try:
            await asyncio.gather(*targets)
        finally:
            while pending := [job for job in scheduled.values() if not job.done()]:
                await asyncio.gather(*pending, return_exceptions=True)
        return results

    def run_sync(self, *names: str) -> dict[str, Any]:
        """Run ``names`` on a fresh event loop."""
        return asyncio.run(self.run(*names))
