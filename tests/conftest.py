"""Shared test fixtures for recordstream.

Provides settings isolation and record factories used across the unit
tests.
"""

from collections.abc import Generator
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from recordstream.schema import Record
from recordstream.settings import Settings, get_settings

# =============================================================================
# SETTINGS
# =============================================================================

_TEST_ENV = {
    "ENVIRONMENT": "testing",
    "DEBUG": "true",
    "RECORD_SOURCE": "generator",
    "STREAM_TOTAL_RECORDS": "30",
    "STREAM_CHUNK_SIZE": "10",
    "STREAM_DELAY_MS": "0",
    "STREAM_RATE_LIMIT": "100/minute",
    "CLIENT_BATCH_SIZE": "10",
}


@pytest.fixture
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    """Load settings from a test environment and reset the settings cache.

    Every module calling get_settings() sees the same test instance.
    """
    for key, value in _TEST_ENV.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


# =============================================================================
# RECORDS
# =============================================================================


def build_records(count: int, start: int = 1) -> list[Record]:
    """Deterministic records ``start .. start + count - 1``."""
    base = datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)
    return [
        Record(
            id=i,
            name=f"Item {i}",
            value=Decimal(i % 1000) + Decimal("0.25"),
            created_at=base.replace(microsecond=i % 1_000_000),
        )
        for i in range(start, start + count)
    ]


@pytest.fixture
def make_records():
    """Factory fixture returning ``build_records``."""
    return build_records
