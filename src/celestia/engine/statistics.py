"""Statistics service — session-wide counters fed by the event bus.

Counts what happened since the server started: admissions, rejections,
shots, hits, kills and ship collisions. Read by the status API.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from celestia.util.events import (
    ClientAdmitted,
    ClientRejected,
    ClientRemoved,
    EventBus,
    ShipDestroyed,
    ShipHit,
    ShipsCollided,
    ShotExpired,
    ShotFired,
)


class StatisticsService:
    """Aggregates world events into counters.

    Args:
        event_bus: Bus to subscribe to; pass None to wire up later
            with :meth:`attach`.
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self.counters: Counter[str] = Counter()
        self.hits_taken: Counter[int] = Counter()
        self.shots_fired: Counter[int] = Counter()
        if event_bus is not None:
            self.attach(event_bus)

    def attach(self, bus: EventBus) -> None:
        """Subscribe to every event the world emits."""
        bus.on(ClientAdmitted, self.on_client_admitted)
        bus.on(ClientRejected, lambda e: self.counters.update(["clients_rejected"]))
        bus.on(ClientRemoved, lambda e: self.counters.update([f"clients_removed_{e.reason}"]))
        bus.on(ShotFired, self.on_shot_fired)
        bus.on(ShipHit, self.on_ship_hit)
        bus.on(ShipDestroyed, lambda e: self.counters.update(["ships_destroyed"]))
        bus.on(ShotExpired, lambda e: self.counters.update(["shots_expired"]))
        bus.on(ShipsCollided, lambda e: self.counters.update(["ship_collisions"]))

    def on_client_admitted(self, event: ClientAdmitted) -> None:
        self.counters["clients_admitted"] += 1

    def on_shot_fired(self, event: ShotFired) -> None:
        self.counters["shots_fired"] += 1
        self.shots_fired[event.client_id] += 1

    def on_ship_hit(self, event: ShipHit) -> None:
        self.counters["hits"] += 1
        self.hits_taken[event.client_id] += 1

    def accuracy(self) -> float:
        """Share of fired shots that hit a ship."""
        fired = self.counters["shots_fired"]
        if fired == 0:
            return 0.0
        return self.counters["hits"] / fired

    def summary(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.counters)
        data["accuracy"] = round(self.accuracy(), 3)
        return data
