"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from recordstream.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for key in ("STREAM_CHUNK_SIZE", "STREAM_DELAY_MS", "CLIENT_BATCH_SIZE", "RECORD_SOURCE"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings(_env_file=None)

        assert settings.stream_chunk_size == 1000
        assert settings.stream_delay_ms == 500
        assert settings.stream_delay_seconds == 0.5
        assert settings.client_batch_size == 1000
        assert settings.record_source == "generator"
        assert settings.stream_total_records == 100_000

    def test_env_overrides(self, test_settings):
        assert test_settings.environment == "testing"
        assert test_settings.stream_chunk_size == 10
        assert test_settings.stream_delay_seconds == 0

    def test_legacy_connection_alias(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DEFAULT_CONNECTION", "postgresql+asyncpg://u:p@db:5432/records")

        settings = Settings(_env_file=None)

        assert settings.database_url.hosts()[0]["host"] == "db"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"stream_chunk_size": 0},
            {"stream_delay_ms": -1},
            {"client_batch_size": 0},
            {"record_source": "kafka"},
            {"database_url": "mysql://localhost/records"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **kwargs)

    def test_get_settings_is_cached(self, test_settings):
        assert get_settings() is get_settings()
