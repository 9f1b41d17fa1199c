"""Rounding shared by the scoring modules."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties going up.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); scores
    must round 2.5 to 3.
    """
    return int(math.floor(value + 0.5))
