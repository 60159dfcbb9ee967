"""Runtime configuration for task helpers and the CLI."""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class ProcessSettings:
    """Settings applied to every spawned process."""

    encoding: str = "utf-8"
    chunk_size: int = 64 * 1024


@dataclass(slots=True)
class LoggingSettings:
    """Diagnostic output settings."""

    level: str = "INFO"
    format: str = "%(message)s"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    tasks_file: Path = Path("buildtasks.py")
    use_prefect: bool = False
    process: ProcessSettings = field(default_factory=ProcessSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls, tasks_file: Path | None = None) -> Settings:
        """Load settings from ``BUILD_TASKS_*`` environment variables."""

        return cls(
            tasks_file=tasks_file or Path(os.getenv("BUILD_TASKS_FILE", "buildtasks.py")),
            use_prefect=_env_bool("BUILD_TASKS_USE_PREFECT", default=False),
            process=ProcessSettings(
                encoding=os.getenv("BUILD_TASKS_ENCODING", "utf-8"),
                chunk_size=int(os.getenv("BUILD_TASKS_CHUNK_SIZE", str(64 * 1024))),
            ),
            logging=LoggingSettings(
                level=os.getenv("BUILD_TASKS_LOG_LEVEL", "INFO").upper(),
                format=os.getenv("BUILD_TASKS_LOG_FORMAT", "%(message)s"),
            ),
        )

    def validate(self) -> None:
        """Reject values that would only fail later, at spawn time."""

        if self.process.chunk_size <= 0:
            raise ValueError("BUILD_TASKS_CHUNK_SIZE must be a positive integer.")
        try:
            codecs.lookup(self.process.encoding)
        except LookupError as error:
            raise ValueError(f"Unknown BUILD_TASKS_ENCODING: {self.process.encoding}") from error
        if self.logging.level not in _LOG_LEVELS:
            raise ValueError(
                f"BUILD_TASKS_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, "
                f"got {self.logging.level!r}.",
            )

    def configure_logging(self) -> None:
        """Route diagnostic output (including tagged process lines) to stderr."""

        logging.basicConfig(
            level=getattr(logging, self.logging.level),
            format=self.logging.format,
        )


def _env_bool(name: str, *, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
