"""Session model — one client connection as seen by the world.

The session is the only object shared between a connection's I/O tasks
and the tick loop. The reader task appends raw input lines to ``inbox``;
the world drains it during ingestion. The world puts encoded frames on
``outbox``; the writer task sends them. Neither side touches the other's
state directly.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

log = logging.getLogger(__name__)


class SessionState(enum.Enum):
    """Where a connection is in its lifecycle."""

    PENDING = "pending"
    ADMITTED = "admitted"
    REJECTED = "rejected"
    EVICTED = "evicted"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class CloseRequest:
    """Sentinel put on the outbox to make the writer close the connection."""

    code: int = 1000
    reason: str = ""


# Close codes used when the server ends a session
CLOSE_NORMAL = 1000
CLOSE_TRY_AGAIN_LATER = 1013


@dataclass
class Session:
    """Per-client connection record.

    Attributes:
        client_id: Unique id assigned by the server on connect.
        name: Display identity (the client's source address).
        state: Lifecycle state, advanced by the world and the server.
        inbox: Raw input lines not yet ingested (oldest first).
        outbox: Frames and close requests waiting for the writer task.
        dropped_inputs: Input lines superseded before ingestion.
        dropped_frames: Outbound frames discarded for a slow reader.
    """

    client_id: int
    name: str
    outbox_size: int = 8
    state: SessionState = SessionState.PENDING
    inbox: deque[str] = field(default_factory=deque)
    outbox: Optional[asyncio.Queue] = None
    dropped_inputs: int = 0
    dropped_frames: int = 0

    def __post_init__(self) -> None:
        if self.outbox is None:
            self.outbox = asyncio.Queue(maxsize=self.outbox_size)

    # -- Inbound (reader task → world) -----------------------------------

    def push_input(self, line: str) -> None:
        """Buffer an input line for the next ingestion."""
        self.inbox.append(line)

    def take_latest_input(self) -> Optional[str]:
        """Pop the newest pending line and discard any older ones."""
        if not self.inbox:
            return None
        latest = self.inbox.pop()
        if self.inbox:
            self.dropped_inputs += len(self.inbox)
            self.inbox.clear()
        return latest

    # -- Outbound (world → writer task) ----------------------------------

    def deliver(self, frame: str) -> None:
        """Queue a frame, dropping the oldest one if the reader lags."""
        if self.is_closed:
            return
        if self.outbox.full():
            try:
                self.outbox.get_nowait()
                self.dropped_frames += 1
            except asyncio.QueueEmpty:
                pass
        self.outbox.put_nowait(frame)

    def close(self, state: SessionState, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        """End the session from the server side.

        Pending frames are discarded so the close request is the next
        thing the writer sees.
        """
        if self.is_closed:
            return
        self.state = state
        while not self.outbox.empty():
            self.outbox.get_nowait()
        self.outbox.put_nowait(CloseRequest(code, reason))
        log.debug("Session %d closing: %s (code=%d)", self.client_id, state.value, code)

    def mark_disconnected(self) -> None:
        """The transport went away; the world removes the ship next prune."""
        if self.state in (SessionState.PENDING, SessionState.ADMITTED):
            self.state = SessionState.DISCONNECTED

    # -- Queries ---------------------------------------------------------

    @property
    def is_closed(self) -> bool:
        return self.state in (SessionState.REJECTED, SessionState.EVICTED,
                              SessionState.DISCONNECTED)
