"""Streaming pipeline — framing, pacing, reassembly and batching.

Producer side: :class:`PacedStreamWriter` pulls from a record source,
frames each record with :func:`encode_frame` and flushes a
:class:`ChannelSink` on a fixed cadence.

Consumer side: :class:`ChunkReassembler` rebuilds records from network
chunks and :class:`BatchAggregator` hands them to the consumer in bounded
batches.

Both sides share :class:`StreamSession` and its :class:`CancellationToken`.
"""

from recordstream.streaming.batching import Batch, BatchAggregator
from recordstream.streaming.cancellation import CancellationToken
from recordstream.streaming.channel import ChannelSink, FrameSink
from recordstream.streaming.framing import FRAME_DELIMITER, MEDIA_TYPE, decode_frame, encode_frame
from recordstream.streaming.reassembler import ChunkReassembler, aiter_records
from recordstream.streaming.session import StatusUpdate, StreamSession, StreamStatus
from recordstream.streaming.writer import PacedStreamWriter, PacePolicy

__all__ = [
    "FRAME_DELIMITER",
    "MEDIA_TYPE",
    "Batch",
    "BatchAggregator",
    "CancellationToken",
    "ChannelSink",
    "ChunkReassembler",
    "FrameSink",
    "PacePolicy",
    "PacedStreamWriter",
    "StatusUpdate",
    "StreamSession",
    "StreamStatus",
    "aiter_records",
    "decode_frame",
    "encode_frame",
]
