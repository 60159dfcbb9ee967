"""Prefect-based execution of a registered task graph.

Every planned task becomes a Prefect task submitted with ``wait_for`` on its
prerequisites, so Prefect tracks state, timing and failure per build step.
Task actions keep their own semantics: each runs on a private event loop
inside the Prefect worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from prefect import flow, task
from prefect.cache_policies import NO_CACHE
from prefect.flows import Flow

from build_tasks.runner import RegisteredTask, TaskRunner

logger = logging.getLogger(__name__)


def _as_prefect_task(registered: RegisteredTask) -> Any:
    def _step() -> Any:
        return asyncio.run(registered.invoke())

    return task(name=registered.name, cache_policy=NO_CACHE, persist_result=False)(_step)


def build_flow(runner: TaskRunner, *targets: str, name: str = "build_tasks") -> Flow:
    """Build a Prefect flow that runs ``targets`` and their prerequisites.

    Unknown names and dependency cycles are rejected here, before any flow
    run is created.
    """
    order = runner.plan(*targets)

    @flow(name=name)
    def _build_flow() -> dict[str, Any]:
        futures: dict[str, Any] = {}
        for task_name in order:
            registered = runner.get(task_name)
            futures[task_name] = _as_prefect_task(registered).submit(
                wait_for=[futures[dep] for dep in registered.deps],
            )
        # Resolve in plan order so a failed prerequisite raises its own error
        # instead of leaving its dependents unfinished.
        results = {task_name: futures[task_name].result() for task_name in order}
        return {task_name: results[task_name] for task_name in targets}

    return _build_flow


def run_flow(runner: TaskRunner, *targets: str, name: str = "build_tasks") -> dict[str, Any]:
    """Run ``targets`` as a Prefect flow and return their results."""
    logger.info("Running %s as Prefect flow %r", ", ".join(targets), name)
    return build_flow(runner, *targets, name=name)()
