"""Typed event bus — decoupled notification of simulation outcomes.

The world emits these while stepping; statistics and logging subscribers
react without the world knowing about them.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Session events ------------------------------------------------------

@dataclass(frozen=True)
class ClientAdmitted:
    """A connecting client received a ship."""
    client_id: int
    name: str


@dataclass(frozen=True)
class ClientRejected:
    """A connecting client was turned away because the world is full."""
    client_id: int
    name: str


@dataclass(frozen=True)
class ClientRemoved:
    """An admitted client left the world (disconnect or destruction)."""
    client_id: int
    reason: str


# -- Combat events -------------------------------------------------------

@dataclass(frozen=True)
class ShotFired:
    """A ship spawned its one allowed shot."""
    client_id: int
    shot_id: int


@dataclass(frozen=True)
class ShipHit:
    """A shot took shield strength off a ship."""
    client_id: int
    shot_id: int
    shield_strength: int


@dataclass(frozen=True)
class ShipDestroyed:
    """A ship's shield dropped below the minimum and it was removed."""
    client_id: int
    tick: int


@dataclass(frozen=True)
class ShotExpired:
    """A shot reached the end of its lifetime without hitting anything."""
    shot_id: int


@dataclass(frozen=True)
class ShipsCollided:
    """Two ships overlapped and were pushed apart."""
    first_id: int
    second_id: int


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(ShipDestroyed, lambda e: print(e.client_id))
        bus.emit(ShipDestroyed(client_id=3, tick=120))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
