"""NDJSON record streaming endpoint.

``GET /api/records/stream`` answers with ``application/x-ndjson``: one JSON
record per line, no ``Content-Length``, delivered incrementally.

Architecture:
    RecordSource  -->  PacedStreamWriter (task)  -->  ChannelSink queue
                                                  -->  StreamingResponse body

The writer runs in its own task and flushes into a bounded channel; the
response body relays flushed chunks. When the client disconnects the body
iterator is closed, which cancels the session token and stops the writer.

Shutdown:
    Call signal_shutdown() during app shutdown to end every open stream
    so uvicorn can complete its graceful shutdown. Those streams end as
    ``error``: the connection is aborted instead of closed cleanly.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from recordstream.api.rate_limit import limiter, stream_rate_limit
from recordstream.exceptions import TransportError
from recordstream.settings import get_settings
from recordstream.sources import RecordSource, get_record_source
from recordstream.streaming import (
    MEDIA_TYPE,
    ChannelSink,
    PacedStreamWriter,
    PacePolicy,
    StreamSession,
    StreamStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["records"])

# ─── Open sessions ────────────────────────────────────────────────────────────

CLIENT_DISCONNECTED = "client disconnected"
SHUTDOWN_REASON = "server shutting down"

_active_sessions: set[StreamSession] = set()


def active_stream_count() -> int:
    return len(_active_sessions)


def signal_shutdown() -> None:
    """End every open stream session as failed.

    The sessions are marked ``error`` before their tokens fire, so each
    writer stops without recording ``cancelled`` and its relay aborts the
    response. Clients see a broken stream, never a short one that looks
    complete.
    """
    for session in list(_active_sessions):
        session.mark_failed(SHUTDOWN_REASON)
        session.cancel(SHUTDOWN_REASON)


def get_source() -> RecordSource:
    """Dependency returning the configured record source."""
    return get_record_source(get_settings())


def _retrieve_outcome(task: asyncio.Task[int]) -> None:
    # Mark the exception as retrieved; the writer has already logged it.
    if not task.cancelled():
        task.exception()


async def _relay(
    writer: PacedStreamWriter,
    source: RecordSource,
    sink: ChannelSink,
    session: StreamSession,
) -> AsyncGenerator[bytes, None]:
    """Run the writer and relay its flushed chunks as the response body.

    Raises:
        TransportError: The writer stopped before the source was exhausted
            while the client was still reading.
    """
    _active_sessions.add(session)
    task = asyncio.create_task(writer.run(source, sink, session), name=f"stream-{session.session_id}")
    task.add_done_callback(_retrieve_outcome)
    try:
        async for chunk in sink:
            yield chunk

        await asyncio.wait({task})
        if session.status is not StreamStatus.COMPLETED:
            error = None if task.cancelled() else task.exception()
            reason = session.error_message or session.cancel_token.reason or repr(error)
            # Abort the connection so the client sees a broken stream, not a short one
            raise TransportError(f"stream aborted: {reason}") from error
    finally:
        if not task.done():
            session.cancel(CLIENT_DISCONNECTED)
        _active_sessions.discard(session)


@router.get(
    "/stream",
    response_class=StreamingResponse,
    summary="Stream all records as NDJSON",
    responses={200: {"content": {MEDIA_TYPE: {}}}},
)
@limiter.limit(stream_rate_limit)
async def stream_records(
    request: Request,
    source: Annotated[RecordSource, Depends(get_source)],
    limit: Annotated[
        int | None,
        Query(ge=0, description="Stop after this many records"),
    ] = None,
) -> StreamingResponse:
    """Stream records in source order, one JSON object per line.

    Records are flushed every ``stream_chunk_size`` records with a
    ``stream_delay_ms`` pause in between. Aborting the request cancels the
    stream on the server.
    """
    settings = get_settings()
    source = source.limited(limit)
    session = StreamSession(role="producer")
    sink = ChannelSink(max_pending=settings.stream_channel_depth)
    writer = PacedStreamWriter(PacePolicy.from_settings(settings))

    logger.info(
        "Opening record stream %s (source=%s, limit=%s)",
        session.session_id,
        source.name,
        limit,
    )
    return StreamingResponse(
        _relay(writer, source, sink, session),
        media_type=MEDIA_TYPE,
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "X-Stream-Session": session.session_id,
        },
    )
