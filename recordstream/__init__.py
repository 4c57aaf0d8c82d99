"""recordstream: incremental NDJSON record streaming over HTTP."""

__version__ = "0.1.0"
