#!/usr/bin/env python3
"""
Data models for gravsim.

This module defines the Sample, Body and Epoch types shared between the engine,
the controller and the viewer.

Units and usage
- position is in meters [m], velocity in meters per second [m/s], radius in meters [m],
  mass in kg, time in seconds [s].
- A body's ``future`` holds the samples not yet consumed; ``future[0]`` is always its
  current state and sample times are strictly increasing. Population appends to the
  right, ticking pops from the left.
- ``history`` is append-only and stores consumed samples for drawing trails.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, NamedTuple, Tuple

from .errors import InconsistentTimelineState


class Sample(NamedTuple):
    """State of one body at one instant."""
    t: float
    position: Tuple[float, float]
    velocity: Tuple[float, float]


@dataclass
class Body:
    """
    Represents a sphere body in the simulation.

    Fields:
    - name: Identifier, unique within an epoch (merges create new names)
    - mass: Mass in kilograms
    - radius: Physical radius in meters, used for collisions
    - future: Deque of samples not yet consumed, current state first
    - history: Consumed samples, oldest first
    - is_draft: True while the body is a user preview that has not been committed
    - applied_acceleration: Reserved for external forces, always zero for now
    """
    name: str
    mass: float
    radius: float
    future: Deque[Sample] = field(default_factory=deque)
    history: List[Sample] = field(default_factory=list)
    is_draft: bool = False
    applied_acceleration: Tuple[float, float] = (0.0, 0.0)

    @classmethod
    def create(cls, name: str, mass: float, radius: float,
               position: Tuple[float, float], velocity: Tuple[float, float],
               t: float = 0.0, is_draft: bool = False) -> "Body":
        """Build a body whose future starts with a single sample at time t."""
        body = cls(name=name, mass=float(mass), radius=float(radius), is_draft=is_draft)
        body.append(t, position, velocity)
        return body

    @property
    def current(self) -> Sample:
        return self.future[0]

    @property
    def latest(self) -> Sample:
        return self.future[-1]

    @property
    def position(self) -> Tuple[float, float]:
        return self.future[0].position

    @property
    def velocity(self) -> Tuple[float, float]:
        return self.future[0].velocity

    def append(self, t: float, position, velocity) -> None:
        """Append a predicted sample; times must keep increasing."""
        if self.future and t <= self.future[-1].t:
            raise InconsistentTimelineState(
                f"Body '{self.name}': sample at t={t!r} does not follow t={self.future[-1].t!r}"
            )
        self.future.append(Sample(float(t),
                                  (float(position[0]), float(position[1])),
                                  (float(velocity[0]), float(velocity[1]))))

    def reset_future(self) -> None:
        """Drop every predicted sample except the current one."""
        while len(self.future) > 1:
            self.future.pop()

    def fork(self) -> "Body":
        """
        Start a copy of this body from its latest predicted sample.

        The sample is popped from this body so the two epochs never hold the same
        instant twice.
        """
        start = self.future.pop()
        return Body.create(self.name, self.mass, self.radius, start.position, start.velocity,
                           t=start.t, is_draft=self.is_draft)

    def consume(self, until: float, keep_last: bool = False) -> bool:
        """
        Move samples with ``t < until`` into the history.

        Returns True when the future ran out before reaching ``until``. With
        ``keep_last`` the final sample stays in the future so the body keeps a
        current state to repopulate from.
        """
        floor = 1 if keep_last else 0
        while len(self.future) > floor and self.future[0].t < until:
            self.history.append(self.future.popleft())
        if keep_last:
            return len(self.future) == 1 and self.future[0].t < until
        return not self.future


@dataclass
class Epoch:
    """
    A set of bodies over one collision-free interval.

    ``merges`` maps the names removed by the collision that started this epoch to
    the name of the merged body.
    """
    bodies: List[Body]
    merges: Dict[str, str] = field(default_factory=dict)

    @property
    def start_time(self) -> float:
        if not self.bodies:
            raise InconsistentTimelineState("Epoch has no bodies")
        return self.bodies[0].future[0].t

    def names(self) -> List[str]:
        return [b.name for b in self.bodies]

    def find(self, name: str):
        for b in self.bodies:
            if b.name == name:
                return b
        return None
