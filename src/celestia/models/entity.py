"""Entity base class — anything the world simulates (ships and shots).

Entities carry their own per-tick behaviour but never reach into the
world; the world decides when to update, collide and remove them.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from celestia.models.vector import Vector2
from celestia.util.types import round_half_up


class Entity(ABC):
    """Common contract for simulated objects.

    Attributes:
        position: Authoritative world location.
        angle: Heading in degrees, kept in [0, 360).
    """

    def __init__(self, x: float, y: float, angle: float = 0.0) -> None:
        self.position = Vector2(x, y)
        self.angle = angle % 360.0

    # -- Contract --------------------------------------------------------

    @property
    @abstractmethod
    def effective_radius(self) -> int:
        """Radius used for circle collision tests."""

    @abstractmethod
    def update(self, tick: int) -> None:
        """Advance one tick. Must be total over every reachable state."""

    @abstractmethod
    def is_destroyed(self, tick: int) -> bool:
        """Should the entity be removed at the next prune step?"""

    # -- Derived ---------------------------------------------------------

    @property
    def x_position(self) -> int:
        """Nearest integer x coordinate."""
        return round_half_up(self.position.x)

    @property
    def y_position(self) -> int:
        """Nearest integer y coordinate."""
        return round_half_up(self.position.y)

    def colliding_with(self, other: Entity) -> bool:
        """Broad-phase circle test on rounded centres.

        Two entities collide when the distance between their integer
        centres is at most the sum of their effective radii.
        """
        dx = other.x_position - self.x_position
        dy = other.y_position - self.y_position
        distance = math.sqrt(dx * dx + dy * dy)
        return distance <= self.effective_radius + other.effective_radius
