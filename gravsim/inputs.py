#!/usr/bin/env python3
"""
Per-refresh inputs supplied by the viewer.

The engine never reads widgets or pointer state directly; the viewer fills an
InputRecord and a DragState and passes them to every refresh.
"""
import dataclasses
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import (
    DEFAULT_DRAFT_MASS,
    DEFAULT_DRAFT_RADIUS,
    DEFAULT_DRAFT_VELOCITY_SCALE,
    DEFAULT_LOOKAHEAD,
    DEFAULT_STEP_RESOLUTION,
    DEFAULT_TOLERANCE,
)
from .drafts import DraftRequest
from .errors import InvalidInput


@dataclass
class InputRecord:
    """
    Numeric settings for one refresh.

    Fields:
    - mass, radius: properties of the next draft body (kg, m)
    - time_step: step resolution of stored samples and tick size (s)
    - lookahead: how far ahead trajectories are predicted (s), at least one time_step
    - tolerance: relative error tolerance of the integrator
    - draft_velocity_scale: drag length (m) divided by this gives launch speed (m/s)
    """
    mass: float = DEFAULT_DRAFT_MASS
    radius: float = DEFAULT_DRAFT_RADIUS
    time_step: float = DEFAULT_STEP_RESOLUTION
    lookahead: float = DEFAULT_LOOKAHEAD
    tolerance: float = DEFAULT_TOLERANCE
    draft_velocity_scale: float = DEFAULT_DRAFT_VELOCITY_SCALE

    def validate(self) -> "InputRecord":
        """Raise InvalidInput naming the first unusable field."""
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInput(f.name, value)
        for name in ("mass", "radius", "time_step", "tolerance", "draft_velocity_scale"):
            if getattr(self, name) <= 0:
                raise InvalidInput(name, getattr(self, name), "must be positive")
        if self.lookahead < self.time_step:
            # A tick must land inside the predicted span.
            raise InvalidInput("lookahead", self.lookahead, "must be at least one time step")
        return self

    def replace(self, **changes) -> "InputRecord":
        return dataclasses.replace(self, **changes)


@dataclass
class DragState:
    """Pointer drag in world coordinates (meters)."""
    is_dragging: bool = False
    anchor: Tuple[float, float] = (0.0, 0.0)
    current: Tuple[float, float] = (0.0, 0.0)


def draft_request(inputs: InputRecord, drag: DragState) -> Optional[DraftRequest]:
    """Build the draft to preview for this refresh, or None when not dragging."""
    if not drag.is_dragging:
        return None
    return DraftRequest(
        mass=inputs.mass,
        radius=inputs.radius,
        anchor=tuple(drag.anchor),
        current=tuple(drag.current),
        velocity_scale=inputs.draft_velocity_scale,
    )
