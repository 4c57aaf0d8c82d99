"""NDJSON framing: one record per line.

A frame is the compact JSON text of one record followed by a single
``\\n``. JSON string escaping guarantees a frame never contains a raw
newline, so splitting on ``\\n`` always finds frame boundaries.
"""

from __future__ import annotations

from pydantic import ValidationError

from recordstream.exceptions import FrameDecodeError
from recordstream.schema import Record

FRAME_DELIMITER = b"\n"
MEDIA_TYPE = "application/x-ndjson"


def encode_frame(record: Record) -> bytes:
    """Serialize one record to a newline-terminated UTF-8 frame."""
    return record.model_dump_json(by_alias=True).encode("utf-8") + FRAME_DELIMITER


def decode_frame(text: str | bytes) -> Record:
    """Parse one frame (with or without its terminator) into a Record.

    Raises:
        FrameDecodeError: The line is not valid JSON or does not match the
            record schema.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    line = text.strip()
    try:
        return Record.model_validate_json(line)
    except ValidationError as e:
        raise FrameDecodeError(
            f"Malformed frame: {e.error_count()} validation error(s)",
            line=line,
        ) from e
