"""Protocol codec — the line-oriented text wire format.

Inbound (client → server), one line per client frame::

    up:left:right:fire            e.g. "true:false:false:true"

Outbound (server → every client), one line per tick::

    x,y,angle,hue,shield;...//x,y;...

Ships come first in admission order, then ``//``, then shots. With no
live shots the shot segment is the literal ``false``. Coordinates are
rounded to whole units.

Both directions are implemented so that clients, bots and tests can use
the same module as the server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from celestia.models.ship import Ship
from celestia.models.shot import Shot
from celestia.util.errors import MalformedEntityField, MalformedInput, ProtocolError
from celestia.util.types import format_bool, format_number, parse_bool

log = logging.getLogger(__name__)

FIELD_SEP = ":"
SEGMENT_SEP = "//"
RECORD_SEP = ";"
VALUE_SEP = ","
NO_SHOTS = "false"
INPUT_FIELDS = 4
SHIP_FIELDS = 5
SHOT_FIELDS = 2


# ===================================================================
# Inbound: input frames
# ===================================================================


@dataclass(frozen=True)
class InputFrame:
    """Keys held by a client when it sent the frame."""

    up: bool = False
    left: bool = False
    right: bool = False
    fire: bool = False


def decode_input(line: str) -> InputFrame:
    """Parse an ``up:left:right:fire`` line.

    Tokens other than ``true`` (any case) read as False. Fields beyond
    the fourth are ignored.

    Raises:
        MalformedInput: If the line has fewer than four fields.
    """
    text = line.strip()
    parts = text.split(FIELD_SEP)
    if len(parts) < INPUT_FIELDS:
        raise MalformedInput(
            f"expected {INPUT_FIELDS} fields, got {len(parts) if text else 0}", payload=line,
        )
    up, left, right, fire = (parse_bool(p) for p in parts[:INPUT_FIELDS])
    return InputFrame(up=up, left=left, right=right, fire=fire)


def encode_input(frame: InputFrame) -> str:
    """Render an input frame the way clients send it."""
    return FIELD_SEP.join(format_bool(v) for v in (frame.up, frame.left, frame.right, frame.fire))


# ===================================================================
# Outbound: world frames
# ===================================================================


@dataclass(frozen=True)
class ShipRecord:
    """One ship as carried by a world frame."""

    x: int
    y: int
    angle: float
    shield_color: float
    shield_strength: float


@dataclass(frozen=True)
class ShotRecord:
    """One shot as carried by a world frame."""

    x: int
    y: int


@dataclass
class WorldFrame:
    """A decoded world frame.

    Attributes:
        ships: Ship records in the server's admission order.
        shots: Shot records (order carries no meaning).
        skipped: Number of records dropped because they failed to parse.
    """

    ships: list[ShipRecord] = field(default_factory=list)
    shots: list[ShotRecord] = field(default_factory=list)
    skipped: int = 0


def encode_ship(ship: Ship) -> str:
    return VALUE_SEP.join((
        str(ship.x_position),
        str(ship.y_position),
        format_number(ship.angle),
        format_number(ship.shield_color),
        format_number(ship.shield_strength),
    ))


def encode_shot(shot: Shot) -> str:
    return f"{shot.x_position}{VALUE_SEP}{shot.y_position}"


def encode_world(ships: Iterable[Ship], shots: Iterable[Shot]) -> str:
    """Serialize the world for broadcast.

    Args:
        ships: Live ships in admission order.
        shots: Live shots.

    Returns:
        The frame text, without a trailing newline.
    """
    ship_part = RECORD_SEP.join(encode_ship(s) for s in ships)
    shot_list = [encode_shot(s) for s in shots]
    shot_part = RECORD_SEP.join(shot_list) if shot_list else NO_SHOTS
    return f"{ship_part}{SEGMENT_SEP}{shot_part}"


def decode_ship(text: str) -> ShipRecord:
    """Parse one ``x,y,angle,hue,shield`` record.

    Raises:
        MalformedEntityField: If a field is missing or not a number.
    """
    values = text.split(VALUE_SEP)
    if len(values) < SHIP_FIELDS:
        raise MalformedEntityField(f"ship record needs {SHIP_FIELDS} fields", payload=text)
    try:
        return ShipRecord(
            x=int(values[0]),
            y=int(values[1]),
            angle=float(values[2]),
            shield_color=float(values[3]),
            shield_strength=float(values[4]),
        )
    except ValueError as e:
        raise MalformedEntityField(f"bad ship field: {e}", payload=text) from e


def decode_shot(text: str) -> ShotRecord:
    """Parse one ``x,y`` record.

    Raises:
        MalformedEntityField: If a field is missing or not an integer.
    """
    values = text.split(VALUE_SEP)
    if len(values) < SHOT_FIELDS:
        raise MalformedEntityField(f"shot record needs {SHOT_FIELDS} fields", payload=text)
    try:
        return ShotRecord(x=int(values[0]), y=int(values[1]))
    except ValueError as e:
        raise MalformedEntityField(f"bad shot field: {e}", payload=text) from e


def decode_world(line: str) -> WorldFrame:
    """Parse a world frame, skipping records that do not parse.

    Raises:
        ProtocolError: If the frame does not have exactly one ``//``.
    """
    segments = line.strip().split(SEGMENT_SEP)
    if len(segments) != 2:
        raise ProtocolError("world frame needs exactly one '//' separator", payload=line)
    ship_part, shot_part = segments

    frame = WorldFrame()
    if ship_part:
        for text in ship_part.split(RECORD_SEP):
            try:
                frame.ships.append(decode_ship(text))
            except MalformedEntityField as e:
                frame.skipped += 1
                log.warning("Ship record malformed, skipping: %s (%r)", e, e.payload)
    if shot_part and shot_part != NO_SHOTS:
        for text in shot_part.split(RECORD_SEP):
            try:
                frame.shots.append(decode_shot(text))
            except MalformedEntityField as e:
                frame.skipped += 1
                log.warning("Shot record malformed, skipping: %s (%r)", e, e.payload)
    return frame
