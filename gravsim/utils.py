#!/usr/bin/env python3
"""
General utilities for gravsim.
"""
import math
from typing import Optional

from .constants import SECONDS_PER_DAY


def try_float(val) -> Optional[float]:
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def days_to_seconds(val: Optional[float]) -> float:
    """Convert a day count typed in a form to whole seconds; NaN if missing."""
    if val is None:
        return float("nan")
    seconds = val * SECONDS_PER_DAY
    if not math.isfinite(seconds):
        return seconds
    # Sample grids are kept on whole seconds.
    return float(round(seconds))
