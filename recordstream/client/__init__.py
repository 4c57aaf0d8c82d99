"""Streaming client — consume an NDJSON record stream over HTTP.

Usage::

    client = RecordStreamClient("http://localhost:8000")
    consumer = RecordStreamConsumer(client, sink=rows.extend, batch_size=1000)
    session = await consumer.run()
"""

from recordstream.client.consumer import RecordStreamConsumer
from recordstream.client.stream_client import STREAM_PATH, RecordStreamClient

__all__ = [
    "STREAM_PATH",
    "RecordStreamClient",
    "RecordStreamConsumer",
]
