"""Stream session state machine.

One :class:`StreamSession` spans a single producer-to-consumer transfer.
Status moves ``connecting -> streaming -> completed | error | cancelled``
and each terminal transition happens exactly once: whichever stage reaches
a terminal state first wins, later attempts are ignored.

``cancelled`` is kept apart from ``error`` so a consumer that walks away is
never reported as a failure.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from recordstream.streaming.cancellation import CancellationToken

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class StreamStatus(StrEnum):
    """Observable lifecycle states of a stream session."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamStatus.COMPLETED, StreamStatus.ERROR, StreamStatus.CANCELLED)


@dataclass(frozen=True)
class StatusUpdate:
    """Snapshot published to status listeners.

    Attributes:
        session_id: Session the update belongs to.
        status: Current status.
        count: Records sent (producer) or received (consumer) so far.
        message: Error message, only set for ``error``.
    """

    session_id: str
    status: StreamStatus
    count: int
    message: str | None = None


class StreamSession:
    """State for one streaming transfer.

    Owns the cancellation token shared by every stage of the transfer and
    the running record counter.
    """

    def __init__(
        self,
        *,
        role: Literal["producer", "consumer"] = "producer",
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self.role = role
        self.status = StreamStatus.CONNECTING
        self.records_sent = 0
        self.records_received = 0
        self.error_message: str | None = None
        self.cancel_token = CancellationToken()
        self.started_at = time.monotonic()
        self.ended_at: float | None = None
        self._listeners: list[Callable[[StatusUpdate], None]] = []

    def __repr__(self) -> str:
        return f"StreamSession(id={self.session_id!r}, status={self.status.value}, count={self.count})"

    @property
    def count(self) -> int:
        return self.records_sent if self.role == "producer" else self.records_received

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def elapsed(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.monotonic()
        return end - self.started_at

    def subscribe(self, listener: Callable[[StatusUpdate], None]) -> None:
        """Register a listener called on every status update."""
        self._listeners.append(listener)

    def snapshot(self) -> StatusUpdate:
        return StatusUpdate(
            session_id=self.session_id,
            status=self.status,
            count=self.count,
            message=self.error_message,
        )

    # ─── Transitions ──────────────────────────────────────────────────────

    def mark_streaming(self) -> None:
        """Leave ``connecting`` after the first successful frame."""
        if self.status is StreamStatus.CONNECTING:
            self.status = StreamStatus.STREAMING
            self._publish()

    def publish_progress(self) -> None:
        """Publish the live count while streaming."""
        if self.status is StreamStatus.STREAMING:
            self._publish()

    def mark_completed(self) -> bool:
        return self._finish(StreamStatus.COMPLETED)

    def mark_failed(self, message: str) -> bool:
        return self._finish(StreamStatus.ERROR, message)

    def mark_cancelled(self) -> bool:
        return self._finish(StreamStatus.CANCELLED)

    def cancel(self, reason: str = "cancelled by consumer") -> None:
        """Ask every stage of the transfer to stop.

        Only fires the token; the stage that observes it records the
        ``cancelled`` transition.
        """
        self.cancel_token.cancel(reason)

    def _finish(self, status: StreamStatus, message: str | None = None) -> bool:
        if self.status.is_terminal:
            logger.debug(
                "Session %s already %s, ignoring transition to %s",
                self.session_id,
                self.status.value,
                status.value,
            )
            return False
        self.status = status
        self.error_message = message
        self.ended_at = time.monotonic()
        self._publish()
        return True

    def _publish(self) -> None:
        update = self.snapshot()
        for listener in self._listeners:
            try:
                listener(update)
            except Exception:
                logger.warning("Status listener failed for session %s", self.session_id, exc_info=True)
