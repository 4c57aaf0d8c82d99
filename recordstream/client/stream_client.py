"""HTTP client for the NDJSON record stream.

Opens a streaming GET, hands every network chunk to a
:class:`ChunkReassembler` and yields records as soon as their frame is
complete. Transport failures surface as :class:`TransportError`; malformed
lines are skipped by the reassembler and never end the stream.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx

from recordstream.exceptions import TransportError
from recordstream.streaming.framing import MEDIA_TYPE
from recordstream.streaming.reassembler import ChunkReassembler

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from recordstream.schema import Record

logger = logging.getLogger(__name__)

STREAM_PATH = "/api/records/stream"
_CONNECT_TIMEOUT = 10.0


class RecordStreamClient:
    """Reads records from a recordstream server.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.
        timeout: Read timeout in seconds; must exceed the server's pace delay.
        transport: Optional httpx transport (tests use ``MockTransport`` or
            ``ASGITransport``).
    """

    _ALLOWED_SCHEMES = {"http", "https"}

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme not in self._ALLOWED_SCHEMES:
            msg = f"Invalid URL scheme '{parsed.scheme}'. Only {self._ALLOWED_SCHEMES} allowed."
            raise ValueError(msg)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def stream_records(
        self,
        path: str = STREAM_PATH,
        *,
        params: dict[str, Any] | None = None,
        reassembler: ChunkReassembler | None = None,
    ) -> AsyncGenerator[Record, None]:
        """Yield records from the stream at ``path`` in arrival order.

        Raises:
            TransportError: Non-2xx response, timeout, or broken connection.
        """
        reassembler = reassembler or ChunkReassembler()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=_CONNECT_TIMEOUT),
                transport=self._transport,
            ) as client:
                async with client.stream(
                    "GET",
                    path,
                    params=params,
                    headers={"Accept": MEDIA_TYPE},
                ) as response:
                    if response.is_error:
                        raise TransportError(
                            f"HTTP error! status: {response.status_code}",
                            status_code=response.status_code,
                        )
                    async for chunk in response.aiter_bytes():
                        for record in reassembler.feed(chunk):
                            yield record
                    for record in reassembler.finish():
                        yield record
        except httpx.TimeoutException as e:
            raise TransportError(f"Stream timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Stream transport failed: {e}") from e

        if reassembler.frames_skipped:
            logger.warning(
                "Stream finished with %d malformed frame(s) skipped",
                reassembler.frames_skipped,
            )
