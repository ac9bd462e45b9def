#!/usr/bin/env python3
"""
Vector helper functions for 2D operations.

These are small, fast functions for vector math used throughout the engine.
Vectors are plain ``(x, y)`` tuples.
"""
import math
from typing import Tuple


def clamp(x: float, a: float, b: float) -> float:
    """Clamp x to the inclusive range [a, b]."""
    return max(a, min(b, x))


def vec_sub(a: Tuple[float, float], b: Tuple[float, float]) -> Tuple[float, float]:
    return (a[0] - b[0], a[1] - b[1])


def vec_scale(a: Tuple[float, float], s: float) -> Tuple[float, float]:
    return (a[0] * s, a[1] * s)


def vec_dist(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def weighted_mean(a: Tuple[float, float], wa: float,
                  b: Tuple[float, float], wb: float) -> Tuple[float, float]:
    """Weighted average of two vectors, e.g. a centre of mass."""
    total = wa + wb
    return ((wa * a[0] + wb * b[0]) / total, (wa * a[1] + wb * b[1]) / total)
