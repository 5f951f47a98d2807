"""Two-dimensional vector used for positions and displacements.

Arithmetic operators return new vectors; the in-place operators and
:meth:`Vector2.limit` mutate, which is what the per-tick integration
uses for its accumulators.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class Vector2:
    """A point or displacement in world units.

    Attributes:
        x: Horizontal component (grows to the right).
        y: Vertical component (grows downwards, screen convention).
    """

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_angle(cls, degrees: float, length: float = 1.0) -> Vector2:
        """Vector of ``length`` pointing along ``degrees``."""
        rad = math.radians(degrees)
        return cls(length * math.cos(rad), length * math.sin(rad))

    # -- Arithmetic ------------------------------------------------------

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __iadd__(self, other: Vector2) -> Vector2:
        self.x += other.x
        self.y += other.y
        return self

    def __isub__(self, other: Vector2) -> Vector2:
        self.x -= other.x
        self.y -= other.y
        return self

    def __imul__(self, scalar: float) -> Vector2:
        self.x *= scalar
        self.y *= scalar
        return self

    # -- Geometry --------------------------------------------------------

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def limit(self, max_magnitude: float) -> Vector2:
        """Scale down in place so the magnitude does not exceed the bound."""
        mag = self.magnitude
        if mag > max_magnitude:
            self *= max_magnitude / mag
        return self
