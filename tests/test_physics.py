"""
Tests for the gravity derivative and state vector helpers.
"""

import math

import numpy as np
import pytest

from gravsim.constants import G
from gravsim.data_models import Body
from gravsim.physics import (
    applied_accelerations,
    circular_orbit_velocity,
    gravity_derivative,
    state_vector,
)


class TestStateVector:
    def test_layout(self):
        bodies = [
            Body.create("a", 1.0, 1.0, (1.0, 2.0), (3.0, 4.0)),
            Body.create("b", 1.0, 1.0, (5.0, 6.0), (7.0, 8.0)),
        ]
        np.testing.assert_array_equal(state_vector(bodies), [1, 2, 3, 4, 5, 6, 7, 8])

    def test_uses_latest_sample(self):
        body = Body.create("a", 1.0, 1.0, (0.0, 0.0), (0.0, 0.0))
        body.append(1.0, (9.0, 9.0), (1.0, 1.0))
        np.testing.assert_array_equal(state_vector([body]), [9, 9, 1, 1])


class TestGravityDerivative:
    def test_velocity_passthrough(self):
        y = np.array([0.0, 0.0, 1.5, -2.5, 10.0, 0.0, 3.0, 4.0])
        dydt = gravity_derivative(0.0, y, [1.0, 1.0])
        assert dydt[0] == 1.5
        assert dydt[1] == -2.5
        assert dydt[4] == 3.0
        assert dydt[5] == 4.0

    def test_inverse_square_attraction(self):
        """Each body is pulled towards the other with G*m_other/r^2."""
        r = 2.0e7
        m1, m2 = 3.0e24, 5.0e22
        y = np.array([0.0, 0.0, 0.0, 0.0, r, 0.0, 0.0, 0.0])
        dydt = gravity_derivative(0.0, y, [m1, m2])

        assert dydt[2] == pytest.approx(G * m2 / r ** 2, rel=1e-12)
        assert dydt[6] == pytest.approx(-G * m1 / r ** 2, rel=1e-12)
        assert dydt[3] == 0.0
        assert dydt[7] == 0.0

    def test_momentum_balance(self):
        """Internal forces cancel: sum of m_i * a_i is zero."""
        masses = np.array([1e24, 2e23, 7e22])
        y = np.array([0.0, 0.0, 0.0, 0.0,
                      1e8, 3e7, 0.0, 0.0,
                      -4e7, 9e7, 0.0, 0.0])
        acc = gravity_derivative(0.0, y, masses).reshape(3, 4)[:, 2:]
        total = (masses[:, None] * acc).sum(axis=0)
        scale = np.abs(masses[:, None] * acc).max()
        assert np.all(np.abs(total) < 1e-12 * scale)

    def test_applied_acceleration_added(self):
        y = np.array([0.0, 0.0, 0.0, 0.0])
        dydt = gravity_derivative(0.0, y, [1.0], applied=np.array([[0.5, -0.25]]))
        np.testing.assert_array_equal(dydt, [0.0, 0.0, 0.5, -0.25])

    def test_single_body_is_unaccelerated(self):
        dydt = gravity_derivative(0.0, np.array([4.0, 5.0, 6.0, 7.0]), [1e30])
        np.testing.assert_array_equal(dydt, [6.0, 7.0, 0.0, 0.0])

    def test_coincident_bodies_not_finite(self):
        y = np.array([1.0, 1.0, 0.0, 0.0, 1.0, 1.0, 0.0, 0.0])
        dydt = gravity_derivative(0.0, y, [1.0, 1.0])
        assert not np.all(np.isfinite(dydt))


class TestHelpers:
    def test_applied_accelerations_zero(self):
        bodies = [Body.create("a", 1.0, 1.0, (0.0, 0.0), (0.0, 0.0))]
        assert applied_accelerations(bodies) is None

    def test_applied_accelerations_nonzero(self):
        body = Body.create("a", 1.0, 1.0, (0.0, 0.0), (0.0, 0.0))
        body.applied_acceleration = (1.0, 2.0)
        np.testing.assert_array_equal(applied_accelerations([body]), [[1.0, 2.0]])

    def test_circular_orbit_velocity(self):
        v = circular_orbit_velocity(1.98847e30, 1.495978707e11)
        assert v == pytest.approx(math.sqrt(G * 1.98847e30 / 1.495978707e11))
        assert 29.7e3 < v < 29.9e3

    def test_circular_orbit_velocity_zero_radius(self):
        assert circular_orbit_velocity(1.0, 0.0) == 0.0
