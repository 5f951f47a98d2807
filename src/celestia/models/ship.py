"""Ship model — the entity a connected client steers.

A ship turns, thrusts against a constant drag, wraps around the world
edges and owns at most one live shot. Its shield loses strength on every
hit; below the minimum the ship is destroyed.
"""

from __future__ import annotations

import math
from typing import Callable

from celestia.models.entity import Entity
from celestia.models.shot import Shot
from celestia.models.vector import Vector2
from celestia.util.constants import (
    AIR,
    MAX_DISPLACEMENT,
    MAX_SHIELD,
    MIN_SHIELD,
    PROPULSION,
    SHIP_RADIUS,
    SHIP_SIZE,
    START_ANGLE,
    TURN,
)

# Wing offset from the tail direction, in radians
_WING_SPREAD = 0.7
_WING_SCALE = 1.7


class Ship(Entity):
    """A player-controlled ship.

    Attributes:
        name: Display identity, the client's source address.
        world_width: Horizontal wrap bound.
        world_height: Vertical wrap bound.
        displacement: Velocity accumulator in units per tick.
        shield_strength: Remaining shield; only ever decreases.
        shield_color: Cosmetic hue, fixed at admission.
        size: Triangle scale for renderers.
        air_effect: Whether drag applies.
        shot: The one shot this ship may have in flight.
        hit_by: Ids of every shot that has damaged this ship.
        thrust: Propulsion requested by the last input frame.
        turn_left: Anticlockwise rotation held by the last input frame.
        turn_right: Clockwise rotation held by the last input frame.
    """

    def __init__(
        self,
        x: float,
        y: float,
        name: str,
        shield_color: float,
        world_width: float,
        world_height: float,
        angle: float = START_ANGLE,
        size: int = SHIP_SIZE,
        air_effect: bool = True,
    ) -> None:
        super().__init__(x, y, angle)
        self.name = name
        self.world_width = world_width
        self.world_height = world_height
        self.displacement = Vector2()
        self.shield_strength: int = MAX_SHIELD
        self.shield_color = shield_color
        self.size = size
        self.air_effect = air_effect
        self.shot: Shot | None = None
        self.hit_by: set[int] = set()
        self.thrust = False
        self.turn_left = False
        self.turn_right = False
        self.points: tuple[Vector2, Vector2, Vector2] = self._compute_points()

    @property
    def effective_radius(self) -> int:
        return SHIP_RADIUS

    # -- Controls --------------------------------------------------------

    def apply_input(self, up: bool, left: bool, right: bool) -> None:
        """Store the held keys from an input frame until the next one."""
        self.turn_left = left
        self.turn_right = right
        self.apply_propulsion(up)

    def apply_propulsion(self, active: bool) -> None:
        """Request thrust for the next :meth:`update`."""
        self.thrust = active

    def steer(self) -> None:
        """Apply the held rotation keys for this tick."""
        if self.turn_left:
            self.rotate(True)
        if self.turn_right:
            self.rotate(False)

    def rotate(self, anticlockwise: bool) -> None:
        """Turn by ``TURN`` degrees; anticlockwise means decreasing angle."""
        if anticlockwise:
            self.angle = (self.angle - TURN) % 360.0
        else:
            self.angle = (self.angle + TURN) % 360.0

    # -- Simulation ------------------------------------------------------

    def update(self, tick: int) -> None:
        """Drag, thrust, clamp, move, wrap; then drop an expired shot."""
        if self.air_effect:
            self.displacement *= AIR
        if self.thrust:
            self.displacement += Vector2.from_angle(self.angle, PROPULSION)
        self.displacement.limit(MAX_DISPLACEMENT)
        self.position += self.displacement
        self._wrap()
        self.points = self._compute_points()

        if self.shot is not None and self.shot.is_destroyed(tick):
            self.detach_shot()

    def _wrap(self) -> None:
        self.position.x %= self.world_width
        self.position.y %= self.world_height
        # A tiny negative coordinate mods to exactly the bound
        if self.position.x >= self.world_width:
            self.position.x = 0.0
        if self.position.y >= self.world_height:
            self.position.y = 0.0

    def _compute_points(self) -> tuple[Vector2, Vector2, Vector2]:
        """Triangle corners: nose, then the two wings behind the centre."""
        rad = math.radians(self.angle)
        x, y = self.position.x, self.position.y
        nose = Vector2(x + self.size * math.cos(rad), y + self.size * math.sin(rad))
        wing = _WING_SCALE * self.size
        left = Vector2(x + wing * math.cos(rad + math.pi + _WING_SPREAD),
                       y + wing * math.sin(rad + math.pi + _WING_SPREAD))
        right = Vector2(x + wing * math.cos(rad + math.pi - _WING_SPREAD),
                        y + wing * math.sin(rad + math.pi - _WING_SPREAD))
        return nose, left, right

    @property
    def nose(self) -> Vector2:
        return self._compute_points()[0]

    # -- Shooting --------------------------------------------------------

    @property
    def is_shooting(self) -> bool:
        return self.shot is not None

    def fire(self, tick: int, tick_rate: float, next_id: Callable[[], int]) -> Shot | None:
        """Spawn a shot at the nose unless one is already in flight.

        An owned shot that is already dead at ``tick`` is detached first,
        so a fire command on its expiry tick is not lost.

        Args:
            tick: Current world tick, becomes the shot's spawn tick.
            tick_rate: Ticks per second, scales the shot lifetime.
            next_id: Called once to obtain the new shot's id.

        Returns:
            The new shot, or None when the fire command was ignored.
        """
        if self.shot is not None and self.shot.is_destroyed(tick):
            self.detach_shot()
        if self.shot is not None:
            return None
        nose = self.nose
        self.shot = Shot(nose.x, nose.y, self.angle, next_id(), tick, tick_rate, owner=self)
        return self.shot

    def detach_shot(self) -> None:
        """Forget the owned shot so a new one can be fired."""
        if self.shot is not None:
            self.shot.owner = None
        self.shot = None

    # -- Damage ----------------------------------------------------------

    def apply_hit(self, damage: int, shot_id: int) -> None:
        self.shield_strength -= damage
        self.hit_by.add(shot_id)

    def already_hit_by(self, shot_id: int) -> bool:
        return shot_id in self.hit_by

    def is_destroyed(self, tick: int = 0) -> bool:
        return self.shield_strength < MIN_SHIELD

    # -- Rebound ---------------------------------------------------------

    def push(self, dx: float, dy: float, scale: float) -> None:
        """Add a scaled vector to the displacement."""
        self.displacement += Vector2(dx * scale, dy * scale)

    def pull(self, dx: float, dy: float, scale: float) -> None:
        """Subtract a scaled vector from the displacement."""
        self.displacement -= Vector2(dx * scale, dy * scale)

    def __repr__(self) -> str:
        return (f"Ship(name={self.name!r}, pos=({self.x_position}, {self.y_position}), "
                f"angle={self.angle:g}, shield={self.shield_strength})")
