"""
Line sources feeding the console reader.

The reader accepts any async iterable of lines; exhausting it signals end of
stream. These adapters cover the usual producers: a closable channel fed by
another task, an in-memory iterable, a log file, a subprocess stream and
stdin.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import IO, Any

import aiofiles

logger = logging.getLogger(__name__)

_CLOSED = object()

# Node payload lines can be far longer than the StreamReader default of 64 KiB
_PIPE_LINE_LIMIT = 16 * 1024 * 1024


class LineChannel:
    """Closable queue of lines.

    Producers ``put`` lines and ``close`` the channel when the node exits;
    consumers iterate until the channel is closed and drained.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, line: str) -> None:
        if self._closed:
            raise RuntimeError("cannot put a line on a closed channel")
        await self._queue.put(line)

    def put_nowait(self, line: str) -> None:
        if self._closed:
            raise RuntimeError("cannot put a line on a closed channel")
        self._queue.put_nowait(line)

    def close(self) -> None:
        """Signal end of stream. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[str]:
        return self

    async def __anext__(self) -> str:
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other consumer
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


def _strip_newline(line: str) -> str:
    return line.rstrip("\r\n")


async def iter_lines(lines: Iterable[str]) -> AsyncIterator[str]:
    """Adapt an in-memory iterable of lines.

    Iteration never yields to the event loop, so this is only meant for
    lines already in memory. Use ``lines_from_pipe`` for stdin or any
    other blocking producer.
    """
    for line in lines:
        yield _strip_newline(line)


async def lines_from_file(path: Path | str | int) -> AsyncIterator[str]:
    """Read lines from a file without blocking the event loop."""
    async with aiofiles.open(path, errors="replace") as f:
        async for line in f:
            yield _strip_newline(line)
    logger.debug(f"Finished reading lines from {path}")


async def lines_from_stream(stream: asyncio.StreamReader, encoding: str = "utf-8") -> AsyncIterator[str]:
    """Read lines from a stream such as a subprocess stdout pipe."""
    while True:
        raw = await stream.readline()
        if not raw:
            break
        yield _strip_newline(raw.decode(encoding, errors="replace"))


async def lines_from_pipe(pipe: IO[Any], encoding: str = "utf-8") -> AsyncIterator[str]:
    """Read lines from a pipe such as stdin without blocking the event loop.

    Regular files cannot be watched by the event loop; when ``pipe`` is one
    (stdin redirected from a file) it is read through aiofiles instead.
    """
    if stat.S_ISREG(os.fstat(pipe.fileno()).st_mode):
        async for line in lines_from_file(os.dup(pipe.fileno())):
            yield line
        return

    loop = asyncio.get_running_loop()
    stream = asyncio.StreamReader(limit=_PIPE_LINE_LIMIT)
    transport, _ = await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(stream), pipe)
    try:
        async for line in lines_from_stream(stream, encoding):
            yield line
    finally:
        transport.close()
