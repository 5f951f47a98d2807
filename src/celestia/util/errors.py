"""Recoverable error conditions.

None of these abort a tick: the world logs them with the tick number and
the raw payload, then carries on.
"""

from __future__ import annotations


class ProtocolError(ValueError):
    """A line received from the wire could not be decoded.

    Attributes:
        payload: The raw text that failed to decode.
    """

    def __init__(self, message: str, payload: str = "") -> None:
        super().__init__(message)
        self.payload = payload


class MalformedInput(ProtocolError):
    """An inbound ``up:left:right:fire`` frame is unusable."""


class MalformedEntityField(ProtocolError):
    """A single ship or shot record inside a world frame is unusable."""


class AdmissionRejected(Exception):
    """The world is full; the connecting client gets no ship."""

    def __init__(self, client_id: int, max_clients: int) -> None:
        super().__init__(f"client {client_id} rejected: {max_clients} clients already admitted")
        self.client_id = client_id
        self.max_clients = max_clients
