"""Connect a source stream to a sink stream and propagate completion."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

DEFAULT_CHUNK_SIZE = 64 * 1024


async def pump(
    reader: asyncio.StreamReader,
    sink: Any,
    *,
    owned: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Copy ``reader`` into ``sink`` until EOF and return the byte count.

    Caller sinks with a plain ``write`` and no ``drain`` coroutine are written
    from a worker thread; otherwise ``write`` runs on the loop and ``drain`` is
    awaited after each write.  ``sink`` is closed at EOF only when ``owned``.
    If the sink fails, the reader is still drained to EOF before the error is
    raised so the producing process never blocks on a full pipe.
    """
    total = 0
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        try:
            await _write(sink, chunk, owned=owned)
        except Exception:
            while await reader.read(chunk_size):
                pass
            raise
        total += len(chunk)
    if owned:
        close = getattr(sink, "close", None)
        if close is not None:
            await _maybe_await(close())
    return total


async def feed(
    source: Any,
    writer: asyncio.StreamWriter,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Copy ``source`` into a process stdin ``writer``, then close the writer.

    A ``source`` with a plain ``read`` is read from a worker thread.
    """
    total = 0
    try:
        while True:
            chunk = await _read(source, chunk_size)
            if not chunk:
                break
            writer.write(chunk)
            await writer.drain()
            total += len(chunk)
    finally:
        writer.close()
    await writer.wait_closed()
    return total


async def _read(source: Any, chunk_size: int) -> bytes:
    if inspect.iscoroutinefunction(source.read):
        return await source.read(chunk_size)
    # Plain files, pipes and sockets block; keep them off the event loop.
    return await asyncio.to_thread(source.read, chunk_size)


async def _write(sink: Any, chunk: bytes, *, owned: bool) -> None:
    drain = getattr(sink, "drain", None)
    if not inspect.iscoroutinefunction(drain):
        drain = None
    if owned or drain is not None or inspect.iscoroutinefunction(sink.write):
        await _maybe_await(sink.write(chunk))
    else:
        await asyncio.to_thread(sink.write, chunk)
    if drain is not None:
        await drain()


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
