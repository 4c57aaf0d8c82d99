"""Stream consumer command."""

import asyncio
import signal
from contextlib import suppress
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from recordstream.cli.utils import console
from recordstream.settings import get_settings
from recordstream.streaming import StatusUpdate, StreamSession, StreamStatus, encode_frame

_PREVIEW_ROWS = 10


def stream(
    url: Annotated[
        str,
        typer.Option("--url", "-u", help="Server base URL (defaults to STREAM_URL)"),
    ] = "",
    limit: Annotated[
        Optional[int],  # noqa: UP007
        typer.Option("--limit", "-n", min=0, help="Ask the server to stop after N records"),
    ] = None,
    batch_size: Annotated[
        int,
        typer.Option("--batch-size", "-b", min=0, help="Records per batch (defaults to CLIENT_BATCH_SIZE)"),
    ] = 0,
    output: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--output", "-o", help="Append received records to this NDJSON file"),
    ] = None,
) -> None:
    """Consume a record stream and show live progress.

    Press Ctrl-C to cancel; cancellation is not reported as an error.
    """
    exit_code = asyncio.run(_run_stream(url, limit, batch_size, output))
    if exit_code:
        raise typer.Exit(code=exit_code)


def status_message(update: StatusUpdate) -> str:
    """Human-readable line for a status update."""
    if update.status is StreamStatus.CONNECTING:
        return "🔌 Connecting to server..."
    if update.status is StreamStatus.STREAMING:
        return f"📡 Streaming... ({update.count:,} records received)"
    if update.status is StreamStatus.COMPLETED:
        return f"✅ Stream completed! ({update.count:,} total records)"
    if update.status is StreamStatus.ERROR:
        return f"❌ Error: {update.message or 'Unknown error occurred'}"
    return f"Cancelled after {update.count:,} records"


class NdjsonFileWriter:
    """Appends delivered batches to an NDJSON file off the event loop.

    Batches are queued by the consumer's sink and written from a worker
    thread, so slow disk I/O never stalls reading the stream.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        self._task = asyncio.create_task(self._drain(), name="ndjson-output")

    def submit(self, batch: list) -> None:
        self._queue.put_nowait(b"".join(encode_frame(record) for record in batch))

    async def close(self) -> None:
        """Write everything queued so far, then close the file."""
        if self._task is None:
            return
        self._queue.put_nowait(None)
        await self._task

    async def _drain(self) -> None:
        out = await asyncio.to_thread(self.path.open, "ab")
        try:
            while (data := await self._queue.get()) is not None:
                await asyncio.to_thread(out.write, data)
        finally:
            await asyncio.to_thread(out.close)


async def _run_stream(url: str, limit: int | None, batch_size: int, output: Path | None) -> int:
    from recordstream.client import RecordStreamClient, RecordStreamConsumer

    settings = get_settings()
    client = RecordStreamClient(url or settings.stream_url, timeout=settings.client_timeout_seconds)
    session = StreamSession(role="consumer")
    preview: list = []

    loop = asyncio.get_running_loop()
    with suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, session.cancel, "interrupted")

    out = NdjsonFileWriter(output) if output else None
    if out is not None:
        out.start()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Starting...", total=None)

            def on_status(update: StatusUpdate) -> None:
                progress.update(task, description=status_message(update))

            def sink(batch: list) -> None:
                if len(preview) < _PREVIEW_ROWS:
                    preview.extend(batch[: _PREVIEW_ROWS - len(preview)])
                if out is not None:
                    out.submit(batch)

            consumer = RecordStreamConsumer(
                client,
                sink,
                batch_size=batch_size or settings.client_batch_size,
                on_status=on_status,
            )
            await consumer.run(params={"limit": limit} if limit is not None else None, session=session)
    finally:
        with suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)
        if out is not None:
            await out.close()

    if session.status is StreamStatus.CANCELLED:
        return 130

    if session.status is StreamStatus.ERROR:
        console.print(f"[red]{status_message(session.snapshot())}[/red]")
        return 1

    console.print(f"[green]{status_message(session.snapshot())}[/green] [dim]({session.elapsed:.1f}s)[/dim]")
    if preview:
        _print_preview(preview)
    return 0


def _print_preview(records: list) -> None:
    table = Table(title=f"First {len(records)} records", show_header=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Value", justify="right")
    table.add_column("Created At", style="dim")
    for record in records:
        table.add_row(
            str(record.id),
            record.name,
            f"{record.value:.2f}",
            record.created_at.isoformat(),
        )
    console.print(table)
