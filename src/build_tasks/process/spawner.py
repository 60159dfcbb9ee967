"""Launch one external process and report its outcome."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
from typing import Any

from build_tasks.config import ProcessSettings
from build_tasks.process.errors import LaunchError, NonZeroExit
from build_tasks.process.request import SpawnRequest, SpawnResult
from build_tasks.process.streams import feed, pump
from build_tasks.sinks import LineSink, LineSinkWriter, TaggedLogSink

logger = logging.getLogger(__name__)


async def spawn(
    request: SpawnRequest,
    *,
    log_sink: LineSink | None = None,
    settings: ProcessSettings | None = None,
) -> SpawnResult:
    """Run ``request`` to completion.

    Returns once the process has exited and every wired stream reached EOF.
    Raises ``LaunchError`` when the process cannot start and ``NonZeroExit``
    when it exits with a failure status.
    """
    settings = settings or ProcessSettings()
    sink = log_sink or TaggedLogSink()
    tag = request.default_tag
    env = {**os.environ, **request.env}
    cwd = os.fspath(request.cwd) if request.cwd is not None else os.getcwd()
    log_stdout = request.output_sink is None and not request.suppress_logging

    logger.debug("Spawning %s %s in %s", request.command, list(request.args), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            request.command,
            *request.args,
            cwd=cwd,
            env=env,
            stdin=subprocess.PIPE if request.input_source is not None else subprocess.DEVNULL,
            stdout=(
                subprocess.PIPE
                if request.output_sink is not None or log_stdout
                else subprocess.DEVNULL
            ),
            stderr=subprocess.PIPE,
        )
    except OSError as error:
        raise LaunchError(request.command, error.strerror or str(error)) from error

    flows: list[Any] = []
    if request.input_source is not None and process.stdin is not None:
        flows.append(feed(request.input_source, process.stdin, chunk_size=settings.chunk_size))

    if request.error_sink is not None:
        flows.append(pump(process.stderr, request.error_sink, chunk_size=settings.chunk_size))
    else:
        flows.append(
            pump(
                process.stderr,
                LineSinkWriter(sink, tag, encoding=settings.encoding),
                owned=True,
                chunk_size=settings.chunk_size,
            ),
        )

    if request.output_sink is not None:
        flows.append(pump(process.stdout, request.output_sink, chunk_size=settings.chunk_size))
    elif log_stdout:
        flows.append(
            pump(
                process.stdout,
                LineSinkWriter(sink, tag, encoding=settings.encoding),
                owned=True,
                chunk_size=settings.chunk_size,
            ),
        )

    outcomes = await asyncio.gather(*flows, return_exceptions=True)
    exit_code = await process.wait()

    if exit_code != 0:
        logger.debug("%s (pid %d) exited with %d", request.command, process.pid, exit_code)
        raise NonZeroExit(request.command, exit_code)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return SpawnResult(
        command=request.command,
        args=request.args,
        pid=process.pid,
        exit_code=exit_code,
    )
