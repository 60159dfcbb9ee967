"""Task helpers: register spawn, clean and delay tasks with a ``TaskRunner``."""

from __future__ import annotations

import asyncio
import glob
import logging
import os
import shutil
import sys
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import Any

from build_tasks.config import ProcessSettings
from build_tasks.process import SpawnRequest, SpawnResult, spawn
from build_tasks.runner import RegisteredTask, TaskRunner
from build_tasks.sinks import LineSink, TaggedLogSink

logger = logging.getLogger(__name__)


async def clean(pattern: str | os.PathLike[str], *, root: Path | None = None) -> list[Path]:
    """Recursively delete everything matching the glob ``pattern``.

    Relative patterns resolve against ``root`` (default: the working
    directory).  Returns the removed paths; matching nothing is not an error.
    """
    return await asyncio.to_thread(_remove_matches, os.fspath(pattern), root)


def _remove_matches(pattern: str, root: Path | None) -> list[Path]:
    base = root or Path.cwd()
    full_pattern = pattern if os.path.isabs(pattern) else os.path.join(base, pattern)
    removed: list[Path] = []
    # Deepest first so a parent removal never hides a later match.
    for match in sorted(glob.glob(full_pattern, recursive=True), key=len, reverse=True):
        path = Path(match)
        if not os.path.lexists(path):
            continue
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        removed.append(path)
    logger.debug("Removed %d path(s) matching %s", len(removed), pattern)
    return removed


async def delay(duration_ms: float) -> None:
    """Complete after ``duration_ms`` milliseconds."""
    if duration_ms < 0:
        raise ValueError(f"Delay duration must be non-negative, got {duration_ms}.")
    await asyncio.sleep(duration_ms / 1000)


class TaskHelpers:
    """Register build-pipeline tasks on ``runner``.

    Spawned processes send un-redirected output to ``log_sink``, tagged with
    the request tag or the task name.
    """

    def __init__(
        self,
        runner: TaskRunner | None = None,
        *,
        log_sink: LineSink | None = None,
        settings: ProcessSettings | None = None,
    ) -> None:
        self.runner = runner or TaskRunner()
        self.log_sink = log_sink or TaggedLogSink()
        self.settings = settings or ProcessSettings()

    def spawn_task(
        self,
        name: str,
        request: SpawnRequest,
        *,
        deps: Iterable[str] = (),
    ) -> RegisteredTask:
        """Register a task that spawns ``request`` each time it runs."""
        tagged = request if request.tag else replace(request, tag=name)

        async def _run() -> SpawnResult:
            return await spawn(tagged, log_sink=self.log_sink, settings=self.settings)

        return self.runner.task(name, deps, _run)

    def clean_task(
        self,
        name: str,
        pattern: str | os.PathLike[str],
        *,
        deps: Iterable[str] = (),
        root: Path | None = None,
    ) -> RegisteredTask:
        """Register a task that removes everything matching ``pattern``."""
        return self.runner.task(name, deps, lambda: clean(pattern, root=root))

    def delay_task(
        self,
        name: str,
        duration_ms: float,
        *,
        deps: Iterable[str] = (),
    ) -> RegisteredTask:
        """Register a task that waits ``duration_ms`` milliseconds."""
        if duration_ms < 0:
            raise ValueError(f"Delay duration must be non-negative, got {duration_ms}.")
        return self.runner.task(name, deps, lambda: delay(duration_ms))

    def python_task(
        self,
        name: str,
        args: Iterable[str] = (),
        *,
        deps: Iterable[str] = (),
        command: str | None = None,
        **options: Any,
    ) -> RegisteredTask:
        """Spawn the current Python interpreter (or ``command``) with ``args``."""
        return self._preset(name, command or sys.executable, args, deps, options)

    def pytest_task(
        self,
        name: str,
        args: Iterable[str] = (),
        *,
        deps: Iterable[str] = (),
        command: str | None = None,
        **options: Any,
    ) -> RegisteredTask:
        """Spawn ``pytest`` (or ``command``) with ``args``."""
        return self._preset(name, command or "pytest", args, deps, options)

    def node_task(
        self,
        name: str,
        args: Iterable[str] = (),
        *,
        deps: Iterable[str] = (),
        command: str | None = None,
        **options: Any,
    ) -> RegisteredTask:
        """Spawn ``node`` (or ``command``) with ``args``."""
        return self._preset(name, command or "node", args, deps, options)

    def _preset(
        self,
        name: str,
        command: str,
        args: Iterable[str],
        deps: Iterable[str],
        options: dict[str, Any],
    ) -> RegisteredTask:
        request = SpawnRequest(command=command, args=args, **options)
        return self.spawn_task(name, request, deps=deps)
