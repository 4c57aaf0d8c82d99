"""Stream consumer — session lifecycle and batched delivery on the client side.

Reads one stream on a dedicated task, counts and batches records, and
publishes status updates:

    connecting -> streaming (count after each batch) -> completed | error | cancelled

Firing the session's cancellation token cancels the read task at once,
which closes the HTTP response. A cancelled stream drops its partial batch
and ends silently; a failed stream still delivers the records it received.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from recordstream.client.stream_client import STREAM_PATH
from recordstream.exceptions import TransportError
from recordstream.streaming.batching import BatchAggregator
from recordstream.streaming.reassembler import ChunkReassembler
from recordstream.streaming.session import StreamSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from recordstream.client.stream_client import RecordStreamClient
    from recordstream.exceptions import FrameDecodeError
    from recordstream.streaming.batching import Batch
    from recordstream.streaming.session import StatusUpdate

logger = logging.getLogger(__name__)


class RecordStreamConsumer:
    """Consume a record stream into an externally owned batch sink.

    Args:
        client: HTTP client for the stream.
        sink: Receives each batch in order; owns the list after the call.
        batch_size: Records per delivered batch.
        on_status: Optional listener for status updates.
        on_decode_error: Optional callback for skipped malformed lines.
    """

    def __init__(
        self,
        client: RecordStreamClient,
        sink: Callable[[Batch], None],
        *,
        batch_size: int = 1_000,
        on_status: Callable[[StatusUpdate], None] | None = None,
        on_decode_error: Callable[[FrameDecodeError], None] | None = None,
    ) -> None:
        self._client = client
        self._sink = sink
        self.batch_size = batch_size
        self._on_status = on_status
        self._on_decode_error = on_decode_error

    async def run(
        self,
        *,
        path: str = STREAM_PATH,
        params: dict[str, Any] | None = None,
        session: StreamSession | None = None,
    ) -> StreamSession:
        """Consume the stream until it ends, fails, or is cancelled.

        Cancel by calling ``session.cancel()`` on the session passed in (or
        by cancelling the calling task, which is re-raised after the
        session is marked ``cancelled``).

        Returns:
            The session in its terminal state.
        """
        session = session or StreamSession(role="consumer")
        if self._on_status is not None:
            session.subscribe(self._on_status)
            self._on_status(session.snapshot())

        def deliver(batch: Batch) -> None:
            self._sink(batch)
            session.publish_progress()

        aggregator = BatchAggregator(deliver, batch_size=self.batch_size)
        reader = asyncio.create_task(self._read(session, aggregator, path, params))
        cancelled = asyncio.create_task(session.cancel_token.wait())

        try:
            await asyncio.wait({reader, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await self._abort(reader, aggregator)
            session.mark_cancelled()
            raise
        finally:
            cancelled.cancel()

        if not reader.done():
            await self._abort(reader, aggregator)
            session.mark_cancelled()
            logger.info("Stream cancelled after %d records", session.records_received)
            return session

        try:
            reader.result()
        except TransportError as e:
            aggregator.flush()
            session.mark_failed(str(e))
            logger.warning("Stream failed after %d records: %s", session.records_received, e)
        except Exception as e:
            aggregator.flush()
            session.mark_failed(str(e) or e.__class__.__name__)
            logger.exception("Stream consumer failed")
        else:
            aggregator.flush()
            session.mark_completed()
            logger.info(
                "Stream completed: %d records in %d batches (%.2fs)",
                session.records_received,
                aggregator.batches_delivered,
                session.elapsed,
            )
        return session

    async def _read(
        self,
        session: StreamSession,
        aggregator: BatchAggregator,
        path: str,
        params: dict[str, Any] | None,
    ) -> None:
        reassembler = ChunkReassembler(on_error=self._on_decode_error)
        records = self._client.stream_records(path, params=params, reassembler=reassembler)
        async for record in records:
            session.records_received += 1
            session.mark_streaming()
            aggregator.accept(record)

    async def _abort(self, reader: asyncio.Task[None], aggregator: BatchAggregator) -> None:
        reader.cancel()
        await asyncio.wait({reader})
        if not reader.cancelled() and reader.exception() is not None:
            logger.debug("Reader ended with %r during cancellation", reader.exception())
        dropped = aggregator.discard()
        if dropped:
            logger.debug("Dropped %d undelivered records on cancellation", dropped)
