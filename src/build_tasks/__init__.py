"""Helpers that register build-pipeline tasks with a task runner."""

from build_tasks.helpers import TaskHelpers, clean, delay
from build_tasks.process import (
    LaunchError,
    NonZeroExit,
    SpawnError,
    SpawnRequest,
    SpawnResult,
    spawn,
)
from build_tasks.runner import TaskRunner
from build_tasks.sinks import LineSink, MemoryLineSink, TaggedLogSink

__version__ = "0.3.0"

__all__ = [
    "LaunchError",
    "LineSink",
    "MemoryLineSink",
    "NonZeroExit",
    "SpawnError",
    "SpawnRequest",
    "SpawnResult",
    "TaggedLogSink",
    "TaskHelpers",
    "TaskRunner",
    "__version__",
    "clean",
    "delay",
    "spawn",
]
