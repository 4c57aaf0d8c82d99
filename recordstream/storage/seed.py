"""Populate the record table with generated rows."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import insert

from recordstream.sources.generator import make_record
from recordstream.storage.models import RecordRow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


async def seed_records(
    session_factory: async_sessionmaker[AsyncSession],
    count: int,
    *,
    batch_size: int = 5_000,
) -> int:
    """Bulk-insert ``count`` generated records, committing per batch.

    Ids are assigned by the database, so names follow the generator's
    numbering only on an empty table.

    Returns:
        Number of rows inserted.
    """
    inserted = 0
    async with session_factory() as session:
        while inserted < count:
            size = min(batch_size, count - inserted)
            rows = [
                make_record(i).model_dump(exclude={"id"})
                for i in range(inserted + 1, inserted + size + 1)
            ]
            await session.execute(insert(RecordRow), rows)
            await session.commit()
            inserted += size
            logger.info("Seeded %d/%d records", inserted, count)
    return inserted
