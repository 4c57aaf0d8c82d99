"""recordstream exception hierarchy.

Base exceptions for all application layers with correlation ID support.

Usage:
    from recordstream.exceptions import StreamCancelledError, TransportError

    try:
        await writer.run(source, sink, session)
    except StreamCancelledError:
        pass  # consumer went away, not a failure
    except TransportError as e:
        logger.error("Stream failed: %s", e)
"""

import uuid


class RecordStreamError(Exception):
    """Base exception for all recordstream application errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class TransportError(RecordStreamError):
    """The byte stream between producer and consumer broke.

    Covers connection resets, failed writes to a departed consumer and
    non-success HTTP responses. Terminates the session as ``error``; never
    retried.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, correlation_id=correlation_id)


class FrameDecodeError(RecordStreamError):
    """A single frame could not be decoded into a record.

    Contained by the reassembler: the line is logged and skipped.
    """

    def __init__(self, message: str, *, line: str = "", **kwargs):
        self.line = line[:200]
        super().__init__(message, **kwargs)


class StreamCancelledError(RecordStreamError):
    """The consumer aborted the stream. Not a failure."""

    pass


class ConfigurationError(RecordStreamError):
    """Errors from application configuration."""

    pass
