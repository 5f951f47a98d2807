"""Shot model — a projectile fired by a ship.

A shot flies in a straight line at constant speed from the nose of its
ship. It dies when its lifetime (in ticks) runs out or when it hits a
ship, whichever comes first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from celestia.models.entity import Entity
from celestia.models.vector import Vector2
from celestia.util.constants import SHOT_LIFETIME_SECONDS, SHOT_RADIUS, SHOT_VELOCITY

if TYPE_CHECKING:
    from celestia.models.ship import Ship


class Shot(Entity):
    """A single projectile.

    Attributes:
        sid: Shot identifier, checked against a ship's hit memo.
        spawn_tick: World tick on which the shot was created.
        lifetime: Ticks the shot lives, ``0.8 * tick_rate``.
        velocity: Speed in units per tick.
        owner: The ship that fired it, cleared once detached.
    """

    def __init__(
        self,
        x: float,
        y: float,
        angle: float,
        sid: int,
        spawn_tick: int,
        tick_rate: float,
        owner: Ship | None = None,
    ) -> None:
        super().__init__(x, y, angle)
        self.sid = sid
        self.spawn_tick = spawn_tick
        self.lifetime: float = SHOT_LIFETIME_SECONDS * tick_rate
        self.velocity: float = SHOT_VELOCITY
        self.owner = owner
        self.force_destruction = False
        self.displacement = Vector2.from_angle(self.angle, self.velocity)

    @property
    def effective_radius(self) -> int:
        return SHOT_RADIUS

    def update(self, tick: int) -> None:
        if not self.is_destroyed(tick):
            self.position += self.displacement

    def destroy(self) -> None:
        """Force destruction on the next check. Idempotent."""
        self.force_destruction = True

    def is_expired(self, tick: int) -> bool:
        return tick >= self.spawn_tick + self.lifetime

    def is_destroyed(self, tick: int) -> bool:
        return self.force_destruction or self.is_expired(tick)

    def __repr__(self) -> str:
        return (f"Shot(sid={self.sid}, pos=({self.x_position}, {self.y_position}), "
                f"spawn_tick={self.spawn_tick})")
