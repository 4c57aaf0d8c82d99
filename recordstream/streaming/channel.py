"""In-memory frame sinks.

:class:`ChannelSink` sits between the paced writer and an HTTP response:
the writer appends frames to a write buffer, each flush moves the buffered
bytes onto a bounded queue, and the response body iterates the queue. A
full queue makes the writer wait, so a slow consumer caps how much
unflushed output can pile up in memory.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import suppress
from typing import Protocol

from recordstream.exceptions import TransportError


class FrameSink(Protocol):
    """Output channel the paced writer writes frames into."""

    async def write(self, data: bytes) -> None: ...

    async def flush(self) -> None: ...

    def close(self) -> None: ...


class ChannelSink:
    """Buffered sink relaying flushed chunks through a bounded queue."""

    def __init__(self, max_pending: int = 8) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=max_pending)
        self._buffer = bytearray()
        self._closed = False
        self.bytes_flushed = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def buffered(self) -> int:
        """Bytes written but not yet flushed."""
        return len(self._buffer)

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise TransportError("write to closed channel: consumer gone")
        self._buffer += data

    async def flush(self) -> None:
        if self._closed:
            raise TransportError("flush of closed channel: consumer gone")
        if not self._buffer:
            return
        chunk = bytes(self._buffer)
        self._buffer.clear()
        await self._queue.put(chunk)
        self.bytes_flushed += len(chunk)

    def close(self) -> None:
        """Close the channel. Unflushed bytes are discarded."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        with suppress(asyncio.QueueFull):
            self._queue.put_nowait(None)  # sentinel

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while not (self._closed and self._queue.empty()):
            chunk = await self._queue.get()
            if chunk is None:
                break
            yield chunk
