"""
Shared fixtures: small scenes built directly from Body.create.
"""

import pytest

from gravsim.data_models import Body
from gravsim.timeline import Timeline


def head_on_bodies():
    """Two equal planets approaching each other along the x axis."""
    return [
        Body.create("A", 1e24, 1e6, (-2e6, 0.0), (10.0, 0.0)),
        Body.create("B", 1e24, 1e6, (2e6, 0.0), (-10.0, 0.0)),
    ]


@pytest.fixture
def head_on():
    return Timeline(head_on_bodies())


@pytest.fixture
def head_on_with_bystander():
    """Head-on pair plus a light body far away that survives the merge."""
    bodies = head_on_bodies()
    bodies.insert(0, Body.create("C", 1.0, 1.0, (1e9, 0.0), (0.0, 0.0)))
    return Timeline(bodies)


@pytest.fixture
def lone_sun():
    return Timeline([Body.create("Sun", 1.98847e30, 6.9551e8, (0.0, 0.0), (0.0, 0.0))])
