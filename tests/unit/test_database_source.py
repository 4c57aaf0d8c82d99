"""Unit tests for the database record source and seeding.

Run against an in-memory SQLite database through aiosqlite.
"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recordstream.sources import DatabaseRecordSource, RecordSource
from recordstream.storage.models import Base, RecordRow
from recordstream.storage.seed import seed_records
from recordstream.streaming.cancellation import CancellationToken


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


async def _insert(factory, ids):
    created = datetime(2026, 1, 1, tzinfo=UTC)
    async with factory() as session:
        await session.execute(
            insert(RecordRow),
            [{"id": i, "name": f"Item {i}", "value": Decimal("1.50"), "created_at": created} for i in ids],
        )
        await session.commit()


async def _collect(source, token=None):
    token = token or CancellationToken()
    return [record async for record in source.records(token)]


class TestDatabaseRecordSource:
    @pytest.mark.asyncio
    async def test_streams_in_id_order(self, session_factory):
        await _insert(session_factory, [5, 1, 3, 2, 4])

        records = await _collect(DatabaseRecordSource(session_factory, fetch_size=2))

        assert [r.id for r in records] == [1, 2, 3, 4, 5]
        assert records[0].name == "Item 1"
        assert records[0].value == Decimal("1.50")

    @pytest.mark.asyncio
    async def test_limited(self, session_factory):
        await _insert(session_factory, range(1, 21))
        source = DatabaseRecordSource(session_factory)

        records = await _collect(source.limited(7))

        assert [r.id for r in records] == list(range(1, 8))
        assert source.limited(None) is source
        assert source.limited(10).limited(50).limit == 10

    @pytest.mark.asyncio
    async def test_stops_when_cancelled(self, session_factory):
        await _insert(session_factory, range(1, 51))
        token = CancellationToken()
        seen = []

        async for record in DatabaseRecordSource(session_factory, fetch_size=10).records(token):
            seen.append(record)
            if len(seen) == 4:
                token.cancel()

        assert len(seen) == 4

    @pytest.mark.asyncio
    async def test_empty_table(self, session_factory):
        source = DatabaseRecordSource(session_factory)

        assert await _collect(source) == []
        assert await source.count() == 0

    @pytest.mark.asyncio
    async def test_count(self, session_factory):
        await _insert(session_factory, range(1, 13))

        assert await DatabaseRecordSource(session_factory).count() == 12

    def test_satisfies_protocol(self):
        assert isinstance(DatabaseRecordSource(MagicMock()), RecordSource)


class TestSeedRecords:
    @pytest.mark.asyncio
    async def test_inserts_in_batches(self, session_factory):
        inserted = await seed_records(session_factory, 23, batch_size=10)

        source = DatabaseRecordSource(session_factory)
        records = await _collect(source)
        assert inserted == 23
        assert await source.count() == 23
        assert [r.name for r in records[:3]] == ["Item 1", "Item 2", "Item 3"]
        assert all(Decimal("0") <= r.value < Decimal("1000") for r in records)
