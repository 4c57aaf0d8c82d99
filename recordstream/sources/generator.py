"""Synthetic record source."""

from __future__ import annotations

import random
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from recordstream.schema import Record

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from recordstream.streaming.cancellation import CancellationToken


def make_record(record_id: int, rng: random.Random | None = None) -> Record:
    """Build record ``record_id`` with a random value in [0, 1000)."""
    rng = rng or random
    return Record(
        id=record_id,
        name=f"Item {record_id}",
        value=Decimal(str(round(rng.random() * 1000, 2))),
        created_at=datetime.now(UTC),
    )


class GeneratedRecordSource:
    """Yields ``total_records`` records numbered from 1.

    Args:
        total_records: How many records each iteration produces.
        seed: Optional RNG seed for reproducible values.
    """

    name = "generator"
    # Never awaits between records
    blocking_pull = False

    def __init__(self, total_records: int = 100_000, *, seed: int | None = None) -> None:
        if total_records < 0:
            raise ValueError("total_records must be >= 0")
        self.total_records = total_records
        self.seed = seed

    def limited(self, limit: int | None) -> GeneratedRecordSource:
        """Copy of this source producing at most ``limit`` records."""
        if limit is None or limit >= self.total_records:
            return self
        return GeneratedRecordSource(limit, seed=self.seed)

    async def records(self, cancel: CancellationToken) -> AsyncIterator[Record]:
        rng = random.Random(self.seed)
        for i in range(1, self.total_records + 1):
            if cancel.cancelled:
                return
            yield make_record(i, rng)
