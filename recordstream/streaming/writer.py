"""Paced stream writer — pull records, frame them, flush on a cadence.

The writer is a single sequential loop per session:

    pull record -> encode frame -> append to sink
    every ``chunk_size`` records: flush sink, pause ``delay`` seconds

Cancellation is cooperative. The token is checked before every pull, and
the three places the loop can suspend (async pull, flush, pace delay) all
wake as soon as the token fires. A cancelled loop does not flush its
partial chunk.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from recordstream.exceptions import StreamCancelledError, TransportError
from recordstream.streaming.framing import encode_frame

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from recordstream.schema import Record
    from recordstream.settings import Settings
    from recordstream.sources.base import RecordSource
    from recordstream.streaming.cancellation import CancellationToken
    from recordstream.streaming.channel import FrameSink
    from recordstream.streaming.session import StreamSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PacePolicy:
    """Flush cadence and pause for the writer.

    Attributes:
        chunk_size: Records written between explicit flushes.
        delay: Seconds to pause after each flushed chunk.
    """

    chunk_size: int = 1_000
    delay: float = 0.5

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    @classmethod
    def from_settings(cls, settings: Settings) -> PacePolicy:
        return cls(chunk_size=settings.stream_chunk_size, delay=settings.stream_delay_seconds)


async def _pull(records: AsyncIterator[Record]) -> Record:
    return await anext(records)


async def _close_records(records: AsyncIterator[Record]) -> None:
    aclose = getattr(records, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except RuntimeError:
        # A cancelled pull is still unwinding; it finalizes the generator itself
        logger.debug("Record iterator still running at close", exc_info=True)


class PacedStreamWriter:
    """Drives one record source into one sink under a pace policy."""

    def __init__(self, policy: PacePolicy | None = None) -> None:
        self.policy = policy or PacePolicy()

    async def run(
        self,
        source: RecordSource,
        sink: FrameSink,
        session: StreamSession,
    ) -> int:
        """Stream every record from ``source`` into ``sink``.

        Args:
            source: Record source to drain in order.
            sink: Output channel; closed when the loop ends for any reason.
            session: Session whose token cancels the loop and whose state
                and sent counter this loop updates.

        Returns:
            Number of records written.

        Raises:
            StreamCancelledError: The session was cancelled.
            TransportError: Writing to the sink failed (consumer gone).
        """
        cancel = session.cancel_token
        records = source.records(cancel)
        # Sources whose pulls never suspend skip the race; the token is checked before each pull
        race_pulls = getattr(source, "blocking_pull", True)
        pending = 0

        logger.info(
            "Stream %s started (chunk_size=%d, delay=%.3fs)",
            session.session_id,
            self.policy.chunk_size,
            self.policy.delay,
        )
        try:
            while True:
                cancel.raise_if_cancelled()
                try:
                    if race_pulls:
                        record = await cancel.race(_pull(records))
                    else:
                        record = await anext(records)
                except StopAsyncIteration:
                    break

                await self._write(sink, encode_frame(record))
                session.records_sent += 1
                session.mark_streaming()
                pending += 1

                if pending >= self.policy.chunk_size:
                    await self._flush(sink, cancel)
                    pending = 0
                    if await cancel.sleep(self.policy.delay):
                        cancel.raise_if_cancelled()

            if pending:
                await self._flush(sink, cancel)
            session.mark_completed()
        except StreamCancelledError:
            session.mark_cancelled()
            logger.info(
                "Stream %s cancelled after %d records: %s",
                session.session_id,
                session.records_sent,
                cancel.reason,
            )
            raise
        except asyncio.CancelledError:
            session.mark_cancelled()
            logger.info("Stream %s task cancelled after %d records", session.session_id, session.records_sent)
            raise
        except TransportError as e:
            if cancel.cancelled:
                session.mark_cancelled()
                raise StreamCancelledError(cancel.reason or "cancelled") from e
            session.mark_failed(str(e))
            logger.warning("Stream %s lost its consumer after %d records: %s", session.session_id, session.records_sent, e)
            raise
        except Exception as e:
            session.mark_failed(f"record source failed: {e}")
            logger.exception("Stream %s aborted by source failure", session.session_id)
            raise
        finally:
            try:
                await _close_records(records)
            finally:
                sink.close()

        logger.info(
            "Stream %s completed: %d records in %.2fs",
            session.session_id,
            session.records_sent,
            session.elapsed,
        )
        return session.records_sent

    async def _write(self, sink: FrameSink, frame: bytes) -> None:
        try:
            await sink.write(frame)
        except TransportError:
            raise
        except (ConnectionError, OSError) as e:
            raise TransportError(f"consumer gone: {e}") from e

    async def _flush(self, sink: FrameSink, cancel: CancellationToken) -> None:
        try:
            await cancel.race(sink.flush())
        except (StreamCancelledError, TransportError):
            raise
        except (ConnectionError, OSError) as e:
            raise TransportError(f"consumer gone: {e}") from e
