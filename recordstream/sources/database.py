"""Database-backed record source.

Streams the ``record`` table in ``id`` order through a server-side cursor,
so the result set is fetched ``fetch_size`` rows at a time instead of
being loaded whole.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from recordstream.storage.models import RecordRow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from recordstream.schema import Record
    from recordstream.streaming.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class DatabaseRecordSource:
    """Reads records from the database, one session per iteration."""

    name = "database"
    blocking_pull = True

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        fetch_size: int = 1_000,
        limit: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.fetch_size = fetch_size
        self.limit = limit

    def limited(self, limit: int | None) -> DatabaseRecordSource:
        """Copy of this source producing at most ``limit`` records."""
        if limit is None:
            return self
        if self.limit is not None:
            limit = min(limit, self.limit)
        return DatabaseRecordSource(self._session_factory, fetch_size=self.fetch_size, limit=limit)

    async def records(self, cancel: CancellationToken) -> AsyncIterator[Record]:
        stmt = (
            select(RecordRow)
            .order_by(RecordRow.id)
            .execution_options(yield_per=self.fetch_size)
        )
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        async with self._session_factory() as session:
            result = await session.stream_scalars(stmt)
            try:
                async for row in result:
                    if cancel.cancelled:
                        logger.debug("Database source stopped by cancellation")
                        return
                    yield row.to_record()
            finally:
                await result.close()

    async def count(self) -> int:
        """Number of rows available to stream."""
        async with self._session_factory() as session:
            result = await session.execute(select(func.count()).select_from(RecordRow))
            return int(result.scalar_one())
