"""Record sources — lazy, ordered producers of records.

Usage::

    from recordstream.sources import get_record_source

    source = get_record_source(settings)
    async for record in source.records(cancel):
        ...
"""

from recordstream.sources.base import RecordSource, get_record_source
from recordstream.sources.database import DatabaseRecordSource
from recordstream.sources.generator import GeneratedRecordSource, make_record

__all__ = [
    "DatabaseRecordSource",
    "GeneratedRecordSource",
    "RecordSource",
    "get_record_source",
    "make_record",
]
