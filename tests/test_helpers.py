from __future__ import annotations

import asyncio
import io
import sys
import time
from pathlib import Path

import allure
import pytest

from build_tasks.helpers import TaskHelpers, clean, delay
from build_tasks.process import NonZeroExit, SpawnRequest, SpawnResult
from build_tasks.runner import TaskFailedError, TaskRunner
from build_tasks.sinks import MemoryLineSink

pytestmark = [
    allure.epic("Task Runner"),
    allure.feature("Task Helpers"),
]


def _make_tree(root: Path) -> None:
    (root / "build" / "lib" / "pkg").mkdir(parents=True)
    (root / "build" / "lib" / "pkg" / "mod.py").write_text("x = 1\n", "utf-8")
    (root / "dist").mkdir()
    (root / "dist" / "pkg.whl").write_bytes(b"wheel")
    (root / "src").mkdir()
    (root / "src" / "keep.py").write_text("", "utf-8")


def test_spawn_task_output_feeds_dependent_task(fixture_file: Path) -> None:
    runner = TaskRunner()
    tasks = TaskHelpers(runner, log_sink=MemoryLineSink())
    output = io.BytesIO()
    seen: list[str] = []

    tasks.spawn_task(
        "cmd",
        SpawnRequest(command="cat", args=(str(fixture_file),), output_sink=output),
    )
    runner.task("output", ["cmd"], lambda: seen.append(output.getvalue().decode().strip()))

    results = runner.run_sync("output")

    assert seen == ["this is a test"]
    assert isinstance(results["cmd"], SpawnResult)


def test_spawn_task_tags_log_lines_with_task_name() -> None:
    sink = MemoryLineSink()
    tasks = TaskHelpers(log_sink=sink)
    tasks.python_task("hello", ["-c", "print('hi')"])

    tasks.runner.run_sync("hello")

    assert sink.lines == [("hello", "hi")]


def test_spawn_task_keeps_explicit_tag() -> None:
    sink = MemoryLineSink()
    tasks = TaskHelpers(log_sink=sink)
    tasks.python_task("hello", ["-c", "print('hi')"], tag="custom")

    tasks.runner.run_sync("hello")

    assert sink.lines == [("custom", "hi")]


def test_spawn_task_failure_fails_the_task() -> None:
    tasks = TaskHelpers(log_sink=MemoryLineSink())
    tasks.python_task("broken", ["-c", "raise SystemExit(4)"])

    with pytest.raises(TaskFailedError) as excinfo:
        tasks.runner.run_sync("broken")

    assert isinstance(excinfo.value.__cause__, NonZeroExit)
    assert excinfo.value.__cause__.exit_code == 4


def test_spawn_task_can_run_twice() -> None:
    sink = MemoryLineSink()
    tasks = TaskHelpers(log_sink=sink)
    tasks.python_task("echo", ["-c", "print('again')"])

    tasks.runner.run_sync("echo")
    tasks.runner.run_sync("echo")

    assert sink.lines == [("echo", "again"), ("echo", "again")]


def test_preset_tasks_use_default_commands() -> None:
    tasks = TaskHelpers()

    python = tasks.python_task("py", ["-V"])
    pytest_task = tasks.pytest_task("tests", ["-q"], deps=["py"])
    node = tasks.node_task("node", ["app.js"], command="/usr/local/bin/node")

    assert python.deps == ()
    assert pytest_task.deps == ("py",)
    assert tasks.runner.names == ["node", "py", "tests"]
    assert node.action is not None


def test_python_task_passes_spawn_options(tmp_path: Path) -> None:
    output = io.BytesIO()
    tasks = TaskHelpers(log_sink=MemoryLineSink())
    tasks.python_task(
        "where",
        ["-c", "import os; print(os.getcwd(), os.environ['STAGE'])"],
        cwd=tmp_path,
        env={"STAGE": "ci"},
        output_sink=output,
    )

    tasks.runner.run_sync("where")

    cwd, stage = output.getvalue().decode().split()
    assert Path(cwd).resolve() == tmp_path.resolve()
    assert stage == "ci"


def test_clean_removes_matching_trees_only(tmp_path: Path) -> None:
    _make_tree(tmp_path)

    removed = asyncio.run(clean("build", root=tmp_path))

    assert removed == [tmp_path / "build"]
    assert not (tmp_path / "build").exists()
    assert (tmp_path / "dist" / "pkg.whl").exists()
    assert (tmp_path / "src" / "keep.py").exists()


def test_clean_supports_recursive_and_absolute_patterns(tmp_path: Path) -> None:
    _make_tree(tmp_path)

    asyncio.run(clean(str(tmp_path / "**" / "*.py")))

    assert not (tmp_path / "src" / "keep.py").exists()
    assert not (tmp_path / "build" / "lib" / "pkg" / "mod.py").exists()
    assert (tmp_path / "build" / "lib" / "pkg").is_dir()
    assert (tmp_path / "dist" / "pkg.whl").exists()


def test_clean_without_matches_is_not_an_error(tmp_path: Path) -> None:
    assert asyncio.run(clean("nothing-here/*", root=tmp_path)) == []


def test_clean_task_runs_before_dependents(tmp_path: Path) -> None:
    _make_tree(tmp_path)
    tasks = TaskHelpers()
    observed: list[bool] = []
    tasks.clean_task("clean", "dist", root=tmp_path)
    tasks.runner.task("check", ["clean"], lambda: observed.append((tmp_path / "dist").exists()))

    tasks.runner.run_sync("check")

    assert observed == [False]


def test_delay_waits_for_duration() -> None:
    started = time.monotonic()

    asyncio.run(delay(50))

    assert time.monotonic() - started >= 0.045


def test_delay_rejects_negative_duration() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        asyncio.run(delay(-1))
    with pytest.raises(ValueError, match="non-negative"):
        TaskHelpers().delay_task("wait", -5)


def test_delay_task_orders_dependents() -> None:
    tasks = TaskHelpers()
    order: list[str] = []
    tasks.delay_task("wait", 20)
    tasks.runner.task("after", ["wait"], lambda: order.append("after"))

    results = tasks.runner.run_sync("after")

    assert order == ["after"]
    assert results["wait"] is None


def test_default_log_sink_uses_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO", logger="build_tasks.output")
    tasks = TaskHelpers()
    tasks.spawn_task(
        "say",
        SpawnRequest(command=sys.executable, args=("-c", "print('logged')")),
    )

    tasks.runner.run_sync("say")

    assert "[say] logged" in caplog.messages
