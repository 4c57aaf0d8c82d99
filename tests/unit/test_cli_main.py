"""Unit tests for the CLI app and its commands."""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from typer.testing import CliRunner

import recordstream.client as client_mod
from recordstream import __version__
from recordstream.cli.commands.stream import NdjsonFileWriter, status_message
from recordstream.cli.main import app
from recordstream.client import RecordStreamClient
from recordstream.streaming import StatusUpdate, StreamStatus, encode_frame


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


def _patch_client(monkeypatch, handler):
    """Point the stream command's client at an httpx MockTransport."""

    class _MockClient(RecordStreamClient):
        def __init__(self, base_url, timeout=30.0):
            super().__init__(base_url, timeout, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(client_mod, "RecordStreamClient", _MockClient)


class TestMainApp:
    """Test main CLI app registration."""

    def test_app_name(self):
        assert app.info.name == "recordstream"

    def test_app_help(self, runner):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "Incremental NDJSON record streaming" in result.stdout
        for command in ("serve", "stream", "seed", "version"):
            assert command in result.stdout

    def test_app_no_args_shows_help(self, runner):
        result = runner.invoke(app, [])

        # Typer returns exit code 2 for no args (shows help)
        assert result.exit_code == 2
        assert "Usage:" in result.stdout or "Commands:" in result.stdout

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestStatusMessage:
    @pytest.mark.parametrize(
        "status,count,message,expected",
        [
            (StreamStatus.CONNECTING, 0, None, "🔌 Connecting to server..."),
            (StreamStatus.STREAMING, 12000, None, "📡 Streaming... (12,000 records received)"),
            (StreamStatus.COMPLETED, 100000, None, "✅ Stream completed! (100,000 total records)"),
            (StreamStatus.ERROR, 5, "HTTP error! status: 500", "❌ Error: HTTP error! status: 500"),
            (StreamStatus.ERROR, 5, None, "❌ Error: Unknown error occurred"),
        ],
    )
    def test_messages(self, status, count, message, expected):
        update = StatusUpdate(session_id="s", status=status, count=count, message=message)

        assert status_message(update) == expected


class TestStreamCommand:
    def test_completed_stream(self, runner, test_settings, monkeypatch, make_records, tmp_path):
        records = make_records(25)
        seen_params = []

        def handler(request):
            seen_params.append(dict(request.url.params))
            return httpx.Response(200, content=b"".join(encode_frame(r) for r in records))

        _patch_client(monkeypatch, handler)
        output = tmp_path / "records.ndjson"

        result = runner.invoke(app, ["stream", "--limit", "25", "--output", str(output)])

        assert result.exit_code == 0, result.stdout
        assert "Stream completed! (25 total records)" in result.stdout
        assert "First 10 records" in result.stdout
        assert seen_params == [{"limit": "25"}]
        assert output.read_bytes().count(b"\n") == 25

    def test_error_exits_with_1(self, runner, test_settings, monkeypatch):
        _patch_client(monkeypatch, lambda request: httpx.Response(503))

        result = runner.invoke(app, ["stream", "--url", "http://elsewhere:9000"])

        assert result.exit_code == 1
        assert "HTTP error! status: 503" in result.stdout


class TestServeCommand:
    def test_runs_uvicorn_with_settings(self, runner, test_settings, monkeypatch):
        import uvicorn

        run = MagicMock()
        monkeypatch.setattr(uvicorn, "run", run)

        result = runner.invoke(app, ["serve", "--port", "9001"])

        assert result.exit_code == 0
        args, kwargs = run.call_args
        assert args == ("recordstream.api.main:app",)
        assert kwargs["port"] == 9001
        assert kwargs["host"] == test_settings.api_host


class TestSeedCommand:
    def test_seeds_and_closes_db(self, runner, monkeypatch):
        import recordstream.storage as storage
        import recordstream.storage.seed as seed_mod

        seed_records = AsyncMock(return_value=1234)
        close_db = AsyncMock()
        monkeypatch.setattr(storage, "get_session_factory", lambda settings=None: MagicMock())
        monkeypatch.setattr(storage, "close_db", close_db)
        monkeypatch.setattr(seed_mod, "seed_records", seed_records)

        result = runner.invoke(app, ["seed", "--count", "1234", "--batch-size", "100"])

        assert result.exit_code == 0
        assert "Inserted 1,234 records" in result.stdout
        assert seed_records.await_args.args[1] == 1234
        assert seed_records.await_args.kwargs == {"batch_size": 100}
        close_db.assert_awaited_once()


class TestNdjsonFileWriter:
    @pytest.mark.asyncio
    async def test_batches_written_from_worker_thread(self, tmp_path, make_records, monkeypatch):
        original = asyncio.to_thread
        threads = []

        async def tracking_to_thread(func, *args, **kwargs):
            def call():
                threads.append(threading.current_thread())
                return func(*args, **kwargs)

            return await original(call)

        monkeypatch.setattr(asyncio, "to_thread", tracking_to_thread)
        records = make_records(7)
        writer = NdjsonFileWriter(tmp_path / "out.ndjson")

        writer.start()
        writer.submit(records[:4])
        writer.submit(records[4:])
        await writer.close()

        assert (tmp_path / "out.ndjson").read_bytes() == b"".join(encode_frame(r) for r in records)
        # open, two writes, close
        assert len(threads) == 4
        assert threading.main_thread() not in threads

    @pytest.mark.asyncio
    async def test_appends_to_existing_file(self, tmp_path, make_records):
        path = tmp_path / "out.ndjson"
        path.write_bytes(b"existing\n")
        writer = NdjsonFileWriter(path)

        writer.start()
        writer.submit(make_records(1))
        await writer.close()

        assert path.read_bytes().startswith(b"existing\n")
        assert path.read_bytes().count(b"\n") == 2

    @pytest.mark.asyncio
    async def test_close_without_start(self, tmp_path):
        await NdjsonFileWriter(tmp_path / "never.ndjson").close()

        assert not (tmp_path / "never.ndjson").exists()
