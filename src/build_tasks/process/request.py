"""Spawn request and result data model."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class SpawnRequest:
    """Everything needed to launch one external process.

    ``input_source`` is read with ``read(n)`` (plain or awaitable bytes) and fed
    to stdin.  ``output_sink`` and ``error_sink`` receive raw bytes through
    ``write``; they are never closed by the adapter.  Without an ``error_sink``
    stderr goes to the tagged log sink.  Without an ``output_sink`` stdout goes
    to the tagged log sink unless ``suppress_logging`` is set.
    """

    command: str
    args: tuple[str, ...] = ()
    cwd: Path | str | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    input_source: Any = None
    output_sink: Any = None
    error_sink: Any = None
    tag: str | None = None
    suppress_logging: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.command, str) or not self.command.strip():
            raise ValueError("Spawn request command must be a non-empty string.")
        if isinstance(self.args, str | bytes):
            raise TypeError("Spawn request args must be a sequence of tokens, not a single string.")
        object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))

    @property
    def default_tag(self) -> str:
        """Tag used for log lines when the caller did not supply one."""
        return self.tag or Path(self.command).name


@dataclass(frozen=True, slots=True)
class SpawnResult:
    """Successful completion of one spawned process."""

    command: str
    args: tuple[str, ...]
    pid: int
    exit_code: int = 0
