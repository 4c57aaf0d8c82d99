"""Unit-test conftest — DB isolation and rate-limit reset.

Unit tests must never open a real Postgres connection: storage accessors
are replaced with guards that raise immediately. Tests needing a database
build their own in-memory SQLite engine.

The shared rate limiter keeps per-client counters in memory, so it is
reset before every test.
"""

from __future__ import annotations

import pytest

import recordstream.storage as _storage_mod
from recordstream.api.rate_limit import limiter


def _guarded(*args, **kwargs):
    raise RuntimeError(
        "Unit test attempted a real DB connection. "
        "Mock the database dependency or build an in-memory SQLite engine."
    )


@pytest.fixture(autouse=True)
def _isolate_db(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset storage singletons and guard the accessors."""
    monkeypatch.setattr(_storage_mod, "_engine", None)
    monkeypatch.setattr(_storage_mod, "_session_factory", None)
    monkeypatch.setattr(_storage_mod, "get_engine", _guarded)
    monkeypatch.setattr(_storage_mod, "get_session_factory", _guarded)
    monkeypatch.setattr(_storage_mod, "get_session", _guarded)


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    limiter.reset()
