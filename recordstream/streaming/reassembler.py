"""Chunk reassembler — rebuild records from arbitrarily split network chunks.

The transport hands over bytes in order but with no regard for frame
boundaries: a chunk may end mid-frame, mid-character or exactly on a
newline. The reassembler keeps the unterminated tail between calls and only
decodes lines whose terminator has arrived.

Usage::

    reassembler = ChunkReassembler()
    async for chunk in response.aiter_bytes():
        for record in reassembler.feed(chunk):
            handle(record)
    for record in reassembler.finish():
        handle(record)
"""

from __future__ import annotations

import codecs
import logging
from typing import TYPE_CHECKING

from recordstream.exceptions import FrameDecodeError
from recordstream.streaming.framing import decode_frame

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterator

    from recordstream.schema import Record

logger = logging.getLogger(__name__)


class ChunkReassembler:
    """Incremental NDJSON frame parser.

    After every :meth:`feed` the buffer holds zero or one partial frame,
    never a complete one.

    Attributes:
        frames_decoded: Records emitted so far.
        frames_skipped: Malformed lines skipped so far.
    """

    def __init__(self, *, on_error: Callable[[FrameDecodeError], None] | None = None) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._on_error = on_error
        self.frames_decoded = 0
        self.frames_skipped = 0

    @property
    def pending(self) -> str:
        """Unterminated text held back for the next chunk."""
        return self._buffer

    def feed(self, chunk: bytes) -> Iterator[Record]:
        """Append a chunk and return the records it completes.

        The buffer is updated before this returns; the returned iterator
        only decodes the complete lines lazily.
        """
        self._buffer += self._decoder.decode(chunk)
        *complete, self._buffer = self._buffer.split("\n")
        return self._decode_lines(complete)

    def finish(self) -> Iterator[Record]:
        """Drain the buffer when the transport closes.

        A non-empty trailing line is a final frame whose terminator was the
        end of the stream.
        """
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        self._decoder.reset()
        return self._decode_lines([tail] if tail.strip() else [])

    def _decode_lines(self, lines: list[str]) -> Iterator[Record]:
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                record = decode_frame(line)
            except FrameDecodeError as e:
                self.frames_skipped += 1
                logger.warning("Skipping malformed frame: %s (line: %r)", e, e.line)
                if self._on_error is not None:
                    self._on_error(e)
                continue
            self.frames_decoded += 1
            yield record


async def aiter_records(
    chunks: AsyncIterable[bytes],
    reassembler: ChunkReassembler | None = None,
) -> AsyncIterator[Record]:
    """Turn an async stream of byte chunks into an async stream of records."""
    reassembler = reassembler or ChunkReassembler()
    async for chunk in chunks:
        for record in reassembler.feed(chunk):
            yield record
    for record in reassembler.finish():
        yield record
