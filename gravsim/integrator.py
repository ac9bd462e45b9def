#!/usr/bin/env python3
"""
Adaptive embedded Runge-Kutta integrator (Cash-Karp 4(5)).

Each step evaluates the derivative six times and forms a fourth- and a fifth-order
solution from the same stages. Their difference estimates the local truncation error,
which drives the step size:

- error above tolerance: the step is rejected and retried with a smaller dt;
- error within tolerance: the step is accepted (advancing with the fifth-order
  solution) and the next dt is grown.

The error of component i is scaled by |y_i| + |dt * dy_i/dt|, so the tolerance is
relative. The step never advances the clock past the ``not_past`` time given to
``step``, which lets the caller store samples on a fixed time grid while the
integrator takes finer steps where it needs to.
"""
import logging
import math
from typing import Callable, Optional

import numpy as np

from .constants import DEFAULT_MIN_STEP, DEFAULT_TOLERANCE
from .errors import NumericalFailure

logger = logging.getLogger(__name__)

Derivative = Callable[[float, np.ndarray], np.ndarray]

# Cash-Karp tableau
_C = (0.0, 1.0 / 5.0, 3.0 / 10.0, 3.0 / 5.0, 1.0, 7.0 / 8.0)
_A = (
    (),
    (1.0 / 5.0,),
    (3.0 / 40.0, 9.0 / 40.0),
    (3.0 / 10.0, -9.0 / 10.0, 6.0 / 5.0),
    (-11.0 / 54.0, 5.0 / 2.0, -70.0 / 27.0, 35.0 / 27.0),
    (1631.0 / 55296.0, 175.0 / 512.0, 575.0 / 13824.0, 44275.0 / 110592.0, 253.0 / 4096.0),
)
_B5 = (37.0 / 378.0, 0.0, 250.0 / 621.0, 125.0 / 594.0, 0.0, 512.0 / 1771.0)
_B4 = (2825.0 / 27648.0, 0.0, 18575.0 / 48384.0, 13525.0 / 55296.0, 277.0 / 14336.0, 1.0 / 4.0)

SAFETY_FACTOR = 0.9
MAX_INCREASE_FACTOR = 10.0
MAX_DECREASE_FACTOR = 10.0
ERROR_FLOOR = 1e-32


class AdaptiveIntegrator:
    """
    Step an ODE ``dy/dt = derivative(t, y)`` with adaptive step size control.

    Attributes:
        t: Current time; only changes on accepted steps.
        y: Current state vector; only changes on accepted steps.
        dt: Step size the next attempt will start from.
    """

    def __init__(self, y0, derivative: Derivative, t0: float = 0.0, dt: float = 1.0,
                 tolerance: float = DEFAULT_TOLERANCE, dt_max: Optional[float] = None,
                 dt_min: float = DEFAULT_MIN_STEP):
        if not dt > 0:
            raise ValueError(f"Initial step must be positive, got {dt!r}")
        self.y = np.array(y0, dtype=float)
        self.derivative = derivative
        self.t = float(t0)
        self.tolerance = float(tolerance)
        self.dt_max = dt_max
        self.dt_min = float(dt_min)
        self.dt = min(float(dt), dt_max) if dt_max is not None else float(dt)
        self.accepted_steps = 0
        self.rejected_steps = 0

    def _attempt(self, dt: float):
        """Run the six stages; return the fifth-order solution and its error estimate."""
        t, y = self.t, self.y
        k = []
        for stage in range(6):
            yi = y.copy()
            for coeff, kj in zip(_A[stage], k):
                yi += (dt * coeff) * kj
            k.append(np.asarray(self.derivative(t + _C[stage] * dt, yi), dtype=float))

        y5 = y + dt * sum(b * kj for b, kj in zip(_B5, k) if b)
        y4 = y + dt * sum(b * kj for b, kj in zip(_B4, k) if b)

        scale = np.abs(y) + np.abs(dt * k[0]) + ERROR_FLOOR
        with np.errstate(invalid="ignore", over="ignore"):
            error = float(np.max(np.abs(y5 - y4) / scale)) if y.size else 0.0
        return y5, error

    def step(self, not_past: float) -> bool:
        """
        Take one accepted step without moving past ``not_past``.

        Returns True if more calls are needed to reach ``not_past`` and False once it
        has been reached.

        Raises:
            NumericalFailure: the tolerance could not be met at the minimum step size.
        """
        remaining = not_past - self.t
        if remaining <= 1e-10 * self.dt:
            return False

        trial = self.dt
        truncated = False
        if trial >= remaining:
            trial = remaining
            truncated = True

        while True:
            y_new, error = self._attempt(trial)
            if math.isfinite(error) and error <= self.tolerance:
                break

            self.rejected_steps += 1
            logger.debug("Rejected step at t=%g: dt=%g error=%g", self.t, trial, error)
            if trial <= self.dt_min:
                raise NumericalFailure(
                    f"Tolerance {self.tolerance:g} not met at minimum step {self.dt_min:g}s "
                    f"(t={self.t:g}s, error={error:g})",
                    t=self.t, dt=trial,
                )
            if math.isfinite(error):
                factor = max(SAFETY_FACTOR * (self.tolerance / error) ** 0.25, 1.0 / MAX_DECREASE_FACTOR)
            else:
                factor = 1.0 / MAX_DECREASE_FACTOR
            trial = max(trial * factor, self.dt_min)
            truncated = False

        self.y = y_new
        t_new = self.t + trial
        if truncated or not_past - t_new <= 1e-10 * trial:
            t_new = not_past
        self.t = t_new
        self.accepted_steps += 1

        if error > 0:
            growth = min(SAFETY_FACTOR * (self.tolerance / error) ** 0.2, MAX_INCREASE_FACTOR)
        else:
            growth = MAX_INCREASE_FACTOR
        next_dt = trial * growth
        if truncated:
            # Steps cut short by the target do not shrink dt.
            next_dt = max(next_dt, self.dt)
        if self.dt_max is not None:
            next_dt = min(next_dt, self.dt_max)
        self.dt = max(next_dt, self.dt_min)

        return self.t < not_past
