"""Immutable world snapshot for renderers and the status API.

Rendering collaborators never hold live ships or shots; they read one
of these, built by :meth:`celestia.engine.world.World.snapshot`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class ShipView:
    """Read-only projection of a ship.

    Attributes:
        client_id: Owning client.
        name: Display identity (source address).
        x: Rounded x coordinate.
        y: Rounded y coordinate.
        angle: Heading in degrees.
        shield_color: Hue of the shield ring.
        shield_strength: Remaining shield.
        points: Triangle corners (nose, left wing, right wing) as (x, y).
        shot_id: Id of the shot in flight, or None.
    """

    client_id: int
    name: str
    x: int
    y: int
    angle: float
    shield_color: float
    shield_strength: int
    points: tuple[tuple[float, float], ...]
    shot_id: int | None = None


@dataclass(frozen=True)
class ShotView:
    """Read-only projection of a shot."""

    shot_id: int
    x: int
    y: int
    angle: float
    spawn_tick: int
    owner_id: int | None = None


@dataclass(frozen=True)
class WorldSnapshot:
    """Everything a renderer needs for one frame."""

    tick: int
    width: float
    height: float
    ships: tuple[ShipView, ...]
    shots: tuple[ShotView, ...]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
