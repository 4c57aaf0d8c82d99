"""Batch aggregator — bounded, periodic delivery of records to a consumer.

Reacting once per record at 100k records starves whatever renders or
stores them, so records are grouped into batches of ``batch_size`` and
handed to an externally owned sink. The aggregator itself never holds more
than one batch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from recordstream.schema import Record

logger = logging.getLogger(__name__)

Batch = list["Record"]


class BatchAggregator:
    """Collect records and deliver them in order, ``batch_size`` at a time.

    Args:
        sink: Called with each full batch, and with the final partial batch
            on :meth:`flush`. Owns the batch after the call.
        batch_size: Records per delivered batch.
    """

    def __init__(self, sink: Callable[[Batch], None], batch_size: int = 1_000) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._sink = sink
        self.batch_size = batch_size
        self._pending: Batch = []
        self.records_delivered = 0
        self.batches_delivered = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def accept(self, record: Record) -> Batch | None:
        """Add a record; deliver and return the batch if it is now full."""
        self._pending.append(record)
        if len(self._pending) >= self.batch_size:
            return self._deliver()
        return None

    def flush(self) -> Batch:
        """Deliver whatever is pending. Returns the (possibly empty) batch."""
        if not self._pending:
            return []
        return self._deliver()

    def discard(self) -> int:
        """Drop pending records without delivering them."""
        dropped = len(self._pending)
        self._pending = []
        return dropped

    def _deliver(self) -> Batch:
        batch, self._pending = self._pending, []
        self._sink(batch)
        self.records_delivered += len(batch)
        self.batches_delivered += 1
        logger.debug("Delivered batch %d (%d records)", self.batches_delivered, len(batch))
        return batch
