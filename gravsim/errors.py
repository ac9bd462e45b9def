#!/usr/bin/env python3
"""
Exceptions raised by the trajectory engine.

- InvalidInput: numeric configuration that cannot be used (NaN, inf, out of range).
  Raised before the timeline is touched.
- NumericalFailure: the adaptive integrator could not meet its tolerance even at the
  smallest permitted step. Aborts the current population pass only.
- InconsistentTimelineState: an engine invariant was violated. Never recovered from
  inside the engine.
"""
from typing import Optional


class GravsimError(Exception):
    """Base class for all engine errors."""


class InvalidInput(GravsimError, ValueError):
    def __init__(self, field: str, value, reason: str = "is invalid"):
        self.field = field
        self.value = value
        super().__init__(f"{field} {reason} (got {value!r})")


class NumericalFailure(GravsimError, ArithmeticError):
    def __init__(self, message: str, t: Optional[float] = None, dt: Optional[float] = None):
        self.t = t
        self.dt = dt
        super().__init__(message)


class InconsistentTimelineState(GravsimError, RuntimeError):
    pass
