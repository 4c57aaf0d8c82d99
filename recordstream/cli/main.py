"""CLI entry point and base commands.

Provides the main CLI application with commands for:
- serve: Run the streaming API server
- stream: Consume a record stream with live status
- seed: Populate the record table
- version: Show version information
"""

# Configure logging early before other imports
from recordstream.logging_config import configure_logging

configure_logging()

import typer  # noqa: E402
from rich.panel import Panel  # noqa: E402

from recordstream import __version__  # noqa: E402
from recordstream.cli.commands.seed import seed  # noqa: E402
from recordstream.cli.commands.serve import serve  # noqa: E402
from recordstream.cli.commands.stream import stream  # noqa: E402
from recordstream.cli.utils import console  # noqa: E402

app = typer.Typer(
    name="recordstream",
    help="Incremental NDJSON record streaming over HTTP",
    add_completion=False,
    no_args_is_help=True,
)

app.command()(serve)
app.command()(stream)
app.command()(seed)


@app.command()
def version() -> None:
    """Show recordstream version information."""
    console.print(
        Panel(
            f"[bold]recordstream[/bold] v{__version__}\n"
            "Incremental NDJSON record streaming over HTTP",
            title="📡 Version",
            border_style="blue",
        )
    )


# Entry point for: python -m recordstream.cli.main
if __name__ == "__main__":
    app()
