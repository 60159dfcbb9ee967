"""Controllers for build-tasks CLI commands."""

from __future__ import annotations

import importlib.util
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType

from build_tasks.config import Settings
from build_tasks.helpers import TaskHelpers
from build_tasks.runner import TaskFailedError, TaskRunner

logger = logging.getLogger(__name__)

DEFAULT_TASK = "default"
REGISTER_HOOK = "register"


class TasksFileError(RuntimeError):
    """The tasks file is missing or does not define a ``register`` hook."""


@dataclass(slots=True)
class ListTasksCommand:
    """CLI input for task listing."""

    tasks_file: Path | None


@dataclass(slots=True)
class RunTasksCommand:
    """CLI input for running tasks."""

    tasks_file: Path | None
    task_names: tuple[str, ...]
    use_prefect: bool | None = None


@dataclass(slots=True)
class RunTasksResult:
    """Outcome of a ``run`` command."""

    success: bool
    lines: list[str] = field(default_factory=list)


class BuildTasksCliController:
    """Loads a tasks file and lists or runs its tasks."""

    def list_tasks(self, command: ListTasksCommand) -> list[str]:
        settings = _settings(command.tasks_file)
        runner = load_tasks(settings.tasks_file, settings).runner
        if not runner.names:
            return [f"No tasks registered in {settings.tasks_file}"]
        lines = [f"Tasks in {settings.tasks_file}:"]
        for name in runner.names:
            deps = runner.get(name).deps
            lines.append(f"  {name}" + (f" <- {', '.join(deps)}" if deps else ""))
        return lines

    def run_tasks(self, command: RunTasksCommand) -> RunTasksResult:
        settings = _settings(command.tasks_file)
        runner = load_tasks(settings.tasks_file, settings).runner
        targets = command.task_names or (DEFAULT_TASK,)
        use_prefect = settings.use_prefect if command.use_prefect is None else command.use_prefect
        runner.plan(*targets)

        if use_prefect:
            return _run_with_prefect(runner, targets)
        try:
            runner.run_sync(*targets)
        except TaskFailedError as error:
            return RunTasksResult(success=False, lines=[str(error)])
        return RunTasksResult(success=True, lines=[f"Finished {', '.join(targets)}"])


def _run_with_prefect(runner: TaskRunner, targets: tuple[str, ...]) -> RunTasksResult:
    from build_tasks.prefect_flow import run_flow

    try:
        run_flow(runner, *targets)
    except Exception as error:  # noqa: BLE001
        logger.debug("Prefect flow failed", exc_info=True)
        return RunTasksResult(success=False, lines=[f"Build failed: {error}"])
    return RunTasksResult(success=True, lines=[f"Finished {', '.join(targets)}"])


def load_tasks(path: Path, settings: Settings | None = None) -> TaskHelpers:
    """Import ``path`` and let its ``register(tasks)`` hook add tasks."""
    module = _import_tasks_file(path)
    hook = getattr(module, REGISTER_HOOK, None)
    if not callable(hook):
        raise TasksFileError(f"{path} must define a `{REGISTER_HOOK}(tasks)` function.")
    settings = settings or Settings()
    helpers = TaskHelpers(TaskRunner(), settings=settings.process)
    hook(helpers)
    logger.debug("Loaded %d task(s) from %s", len(helpers.runner.names), path)
    return helpers


def _import_tasks_file(path: Path) -> ModuleType:
    if not path.is_file():
        raise TasksFileError(f"Tasks file not found: {path}")
    spec = importlib.util.spec_from_file_location(f"_build_tasks_file_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise TasksFileError(f"Cannot import tasks file: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _settings(tasks_file: Path | None) -> Settings:
    settings = Settings.from_env(tasks_file=tasks_file)
    settings.validate()
    return settings

