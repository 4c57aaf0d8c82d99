"""Database seeding command."""

import asyncio
from typing import Annotated

import typer
from rich.panel import Panel

from recordstream.cli.utils import console


def seed(
    count: Annotated[
        int,
        typer.Option("--count", "-c", min=1, help="Number of records to insert"),
    ] = 100_000,
    batch_size: Annotated[
        int,
        typer.Option("--batch-size", "-b", min=1, help="Rows per insert/commit"),
    ] = 5_000,
) -> None:
    """Populate the record table with generated records.

    The table must exist (run the alembic migrations first).
    """
    console.print(
        Panel(
            f"[bold blue]Seeding records[/bold blue]\nCount: {count:,}\nBatch size: {batch_size:,}",
            title="🌱 Seed",
            border_style="blue",
        )
    )
    inserted = asyncio.run(_run_seed(count, batch_size))
    console.print(f"[green]Inserted {inserted:,} records[/green]")


async def _run_seed(count: int, batch_size: int) -> int:
    from recordstream.storage import close_db, get_session_factory
    from recordstream.storage.seed import seed_records

    try:
        return await seed_records(get_session_factory(), count, batch_size=batch_size)
    finally:
        await close_db()
