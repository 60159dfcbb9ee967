"""CLI entrypoint for build-tasks."""

from pathlib import Path

import rich_click as click

from build_tasks import __version__
from build_tasks.config import Settings
from build_tasks.controllers import (
    BuildTasksCliController,
    ListTasksCommand,
    RunTasksCommand,
    TasksFileError,
)
from build_tasks.runner import TaskError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = BuildTasksCliController()


@click.group()
@click.version_option(version=__version__, prog_name="build-tasks")
def build_tasks() -> None:
    """Build-pipeline task runner.

    Tasks are registered by a Python tasks file that defines `register(tasks)`.
    """

    try:
        settings = Settings.from_env()
        settings.validate()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    settings.configure_logging()


@build_tasks.command("list")
@click.option(
    "--file",
    "-f",
    "tasks_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Tasks file (defaults to BUILD_TASKS_FILE or ./buildtasks.py).",
)
def list_tasks(tasks_file: Path | None) -> None:
    """List the tasks registered by the tasks file."""

    try:
        lines = CONTROLLER.list_tasks(ListTasksCommand(tasks_file=tasks_file))
    except (TasksFileError, TaskError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@build_tasks.command("run")
@click.argument("task_names", nargs=-1)
@click.option(
    "--file",
    "-f",
    "tasks_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Tasks file (defaults to BUILD_TASKS_FILE or ./buildtasks.py).",
)
@click.option(
    "--prefect/--no-prefect",
    "use_prefect",
    default=None,
    help="Run the task graph as a Prefect flow (defaults to BUILD_TASKS_USE_PREFECT).",
)
def run_tasks(
    task_names: tuple[str, ...],
    tasks_file: Path | None,
    use_prefect: bool | None,
) -> None:
    """Run TASK_NAMES (default: `default`) and their prerequisites."""

    try:
        result = CONTROLLER.run_tasks(
            RunTasksCommand(
                tasks_file=tasks_file,
                task_names=task_names,
                use_prefect=use_prefect,
            ),
        )
    except (TasksFileError, TaskError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Build failed.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    build_tasks()
