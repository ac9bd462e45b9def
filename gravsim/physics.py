#!/usr/bin/env python3
"""
Gravity derivative for gravsim.

Responsibilities
- Flatten a body set into the integrator's state vector (x, y, vx, vy per body).
- Compute the time derivative of that vector from pairwise Newtonian gravity.
- Provide small helpers for common orbital computations.

Units and conventions
- World space positions are in meters [m], velocities in [m/s], masses in [kg],
  time in seconds [s].
- The gravitational constant G is expressed in SI: m^3 kg^-1 s^-2.

Numerical notes
- No softening is applied. Accelerations grow without bound as two bodies approach;
  the collision merger is expected to act first, but near misses still produce large
  transient accelerations that force the integrator down to small steps.
- Coincident bodies give a non-finite derivative, which the integrator reports as a
  numerical failure.
- Complexity: O(N^2) per evaluation (direct summation).
"""

import math
from typing import Iterable, Optional, Sequence

import numpy as np

from .constants import G
from .data_models import Body


def state_vector(bodies: Iterable[Body]) -> np.ndarray:
    """Flatten the latest sample of every body into [x, y, vx, vy, ...]."""
    values = []
    for body in bodies:
        s = body.latest
        values.extend((s.position[0], s.position[1], s.velocity[0], s.velocity[1]))
    return np.array(values, dtype=float)


def gravity_derivative(t: float, y: np.ndarray, masses: Sequence[float],
                       applied: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Time derivative of the flattened state vector.

        dq_i/dt = v_i
        dv_i/dt = sum_{j != i} G * m_j * (q_j - q_i) / |q_j - q_i|^3  (+ applied_i)

    Args:
        t: Time in seconds (unused, gravity is autonomous).
        y: State vector of length 4N.
        masses: N masses in kg, in the same order as the state vector.
        applied: Optional (N, 2) array of external accelerations.

    Returns:
        Array of length 4N.
    """
    m = np.asarray(masses, dtype=float)
    state = np.asarray(y, dtype=float).reshape(len(m), 4)
    pos = state[:, :2]

    # sep[i, j] = q_j - q_i
    sep = pos[np.newaxis, :, :] - pos[:, np.newaxis, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        dist_cubed = np.sum(sep * sep, axis=2) ** 1.5
        np.fill_diagonal(dist_cubed, np.inf)
        acc = G * np.sum(m[np.newaxis, :, np.newaxis] * sep / dist_cubed[:, :, np.newaxis], axis=1)

    dydt = np.empty_like(state)
    dydt[:, :2] = state[:, 2:]
    dydt[:, 2:] = acc
    if applied is not None:
        dydt[:, 2:] += applied
    return dydt.ravel()


def applied_accelerations(bodies: Sequence[Body]) -> Optional[np.ndarray]:
    """External accelerations as an (N, 2) array, or None when they are all zero."""
    applied = np.array([b.applied_acceleration for b in bodies], dtype=float).reshape(len(bodies), 2)
    if not applied.any():
        return None
    return applied


def circular_orbit_velocity(central_mass: float, orbital_radius: float) -> float:
    """
    Calculate the speed needed for a circular orbit.

    For a circular orbit gravity provides exactly the centripetal force:
    G * M / r = v^2 / r, therefore v = sqrt(G * M / r).
    """
    if orbital_radius <= 0:
        return 0.0

    return math.sqrt(G * central_mass / orbital_radius)
