"""Formatting and conversion utilities for the text wire format."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity.

    Matches the rounding clients expect for pixel coordinates
    (``round(2.5) == 3``, ``round(-2.5) == -2``), unlike Python's
    banker's rounding.
    """
    return int(math.floor(value + 0.5))


def format_number(value: float) -> str:
    """Format a number as integer text when integral, else one decimal."""
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"


def format_bool(value: bool) -> str:
    """Lower-case boolean token used by the input frame."""
    return "true" if value else "false"


def parse_bool(token: str) -> bool:
    """Parse a boolean token; anything but ``true`` (any case) is False."""
    return token.strip().lower() == "true"
