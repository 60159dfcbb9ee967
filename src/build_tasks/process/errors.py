"""Failure kinds surfaced by the process adapter."""

from __future__ import annotations


class SpawnError(Exception):
    """Base class for spawned-process failures."""

    def __init__(self, message: str, *, command: str) -> None:
        super().__init__(message)
        self.command = command


class LaunchError(SpawnError):
    """The process could not be started at all."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Failed to launch {command!r}: {reason}", command=command)
        self.reason = reason


class NonZeroExit(SpawnError):
    """The process ran but exited with a failure status."""

    def __init__(self, command: str, exit_code: int) -> None:
        if exit_code < 0:
            message = f"{command!r} was terminated by signal {-exit_code}"
        else:
            message = f"{command!r} exited with code {exit_code}"
        super().__init__(message, command=command)
        self.exit_code = exit_code
