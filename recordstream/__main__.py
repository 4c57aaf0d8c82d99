"""Allow ``python -m recordstream``."""

from recordstream.cli.main import app

app()
