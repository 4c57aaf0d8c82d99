"""Record source contract and selection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from recordstream.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from recordstream.schema import Record
    from recordstream.settings import Settings
    from recordstream.streaming.cancellation import CancellationToken


@runtime_checkable
class RecordSource(Protocol):
    """Produces records lazily, in the source's defined order.

    Sources are read-only: one instance may serve any number of concurrent
    sessions, each calling :meth:`records` for its own iterator.

    A source may set ``blocking_pull = False`` when its iterator never
    suspends; the writer then pulls without racing the cancellation token.
    Sources without the attribute are treated as blocking.
    """

    name: str

    def records(self, cancel: CancellationToken) -> AsyncIterator[Record]:
        """Iterate records until exhausted or ``cancel`` fires."""
        ...

    def limited(self, limit: int | None) -> RecordSource:
        """Copy of this source producing at most ``limit`` records."""
        ...


def get_record_source(settings: Settings) -> RecordSource:
    """Build the source selected by ``settings.record_source``.

    Raises:
        ConfigurationError: The configured source is not known.
    """
    if settings.record_source == "generator":
        from recordstream.sources.generator import GeneratedRecordSource

        return GeneratedRecordSource(total_records=settings.stream_total_records)

    if settings.record_source == "database":
        from recordstream.sources.database import DatabaseRecordSource
        from recordstream.storage import get_session_factory

        return DatabaseRecordSource(
            get_session_factory(settings),
            fetch_size=settings.database_fetch_size,
        )

    raise ConfigurationError(f"Unknown record source: {settings.record_source!r}")
