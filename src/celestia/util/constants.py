"""Game constants — physics, sizes, damage.

Fixed gameplay numbers that clients rely on for bit-compatible behaviour.
Tunable deployment settings (ports, world size, tick rate) live in
``config/game.yaml`` instead.
"""

VERSION: str = "3.0.0"
"""Server version reported by the status API."""

# -- Ship ----------------------------------------------------------------

AIR: float = 0.99
"""Drag multiplier applied to a ship's displacement every tick."""

TURN: int = 10
"""Degrees a ship turns per tick while a rotate key is held."""

PROPULSION: float = 0.20
"""Thrust magnitude added along the heading while the up key is held."""

MAX_DISPLACEMENT: float = 3.3
"""Upper bound for a ship's displacement magnitude (units/tick)."""

MAX_SHIELD: int = 100
"""Shield strength of a freshly admitted ship."""

MIN_SHIELD: int = 10
"""A ship whose shield drops below this value is destroyed."""

SHIP_RADIUS: int = 25
"""Effective collision radius of a ship (works for ``SHIP_SIZE`` 10)."""

SHIP_SIZE: int = 10
"""Scale of the ship triangle handed to renderers."""

START_ANGLE: float = 270.0
"""Heading of a freshly admitted ship (pointing up on screen)."""

SHIP_WEIGHT: float = 0.035
"""Mass scalar for the ship/ship rebound impulse."""

# -- Shot ----------------------------------------------------------------

SHOT_VELOCITY: float = 24.0
"""Units per tick a shot travels along its spawn heading."""

SHOT_LIFETIME_SECONDS: float = 0.8
"""Shot lifetime; multiplied by the tick rate to get ticks."""

SHOT_RADIUS: int = 5
"""Effective collision radius of a shot."""

SHOT_DAMAGE: int = 10
"""Shield points removed by a single hit."""
