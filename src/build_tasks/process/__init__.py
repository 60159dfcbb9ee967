"""Process Task Adapter: spawn one external process and wire its streams."""

from build_tasks.process.errors import LaunchError, NonZeroExit, SpawnError
from build_tasks.process.request import SpawnRequest, SpawnResult
from build_tasks.process.spawner import spawn

__all__ = [
    "LaunchError",
    "NonZeroExit",
    "SpawnError",
    "SpawnRequest",
    "SpawnResult",
    "spawn",
]
