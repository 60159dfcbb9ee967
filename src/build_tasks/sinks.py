"""Line sinks: destinations for tagged diagnostic output."""

from __future__ import annotations

import logging
import re
from typing import Protocol

OUTPUT_LOGGER_NAME = "build_tasks.output"

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")


class LineSink(Protocol):
    """Anything that accepts tagged lines of text."""

    def write_line(self, tag: str, line: str) -> None:
        """Record one line of output under ``tag``."""


class TaggedLogSink:
    """Write each line through ``logging`` prefixed with its tag."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger(OUTPUT_LOGGER_NAME)
        self._level = level

    def write_line(self, tag: str, line: str) -> None:
        self._logger.log(self._level, "[%s] %s", tag, line)


class MemoryLineSink:
    """Collect tagged lines in memory."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def write_line(self, tag: str, line: str) -> None:
        self.lines.append((tag, line))

    def text(self, tag: str | None = None) -> str:
        """Return collected lines (optionally for one tag) joined by newlines."""
        return "\n".join(line for line_tag, line in self.lines if tag is None or line_tag == tag)


class LineSinkWriter:
    """Byte-stream front end for a ``LineSink``.

    Splits written bytes on ``\n``, ``\r\n`` or a bare ``\r`` (progress output)
    and forwards complete lines; ``close`` forwards whatever partial line
    remains.
    """

    def __init__(self, sink: LineSink, tag: str, *, encoding: str = "utf-8") -> None:
        self._sink = sink
        self._tag = tag
        self._encoding = encoding
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        pending = bytes(self._buffer)
        # A trailing \r may be the first half of \r\n split across chunks.
        held_cr = pending.endswith(b"\r")
        if held_cr:
            pending = pending[:-1]
        *complete, rest = _LINE_BREAK.split(pending)
        for raw in complete:
            self._emit(raw)
        self._buffer = bytearray(rest + b"\r" if held_cr else rest)
        return len(data)

    def close(self) -> None:
        remainder = bytes(self._buffer).removesuffix(b"\r")
        self._buffer = bytearray()
        if remainder:
            self._emit(remainder)

    def _emit(self, raw: bytes | bytearray) -> None:
        line = bytes(raw).decode(self._encoding, errors="replace").rstrip("\r")
        self._sink.write_line(self._tag, line)
