#!/usr/bin/env python3
"""
Built-in scenes and scene lookup.

JSON templates (see presets_loader) take priority; the functions here cover scenes
whose initial conditions are computed rather than tabulated.
"""
import logging
import math
from typing import Callable, Dict, List

from .constants import EARTH_MASS, EARTH_RADIUS, G, SOLAR_MASS, SOLAR_RADIUS
from .data_models import Body
from .physics import circular_orbit_velocity
from .presets_loader import list_templates, load_template
from .timeline import Timeline

logger = logging.getLogger(__name__)


def scene_circular_solar_system() -> List[Body]:
    """
    Sun + Earth + Moon + Mars on circular orbits.
    Distances are real SI; velocities computed for circular orbits around the Sun.
    """
    bodies = [Body.create("Sun", SOLAR_MASS, SOLAR_RADIUS, (0.0, 0.0), (0.0, 0.0))]

    r_earth = 1.495978707e11  # 1 AU in meters
    v_earth = circular_orbit_velocity(SOLAR_MASS, r_earth)
    bodies.append(Body.create("Earth", EARTH_MASS, EARTH_RADIUS, (r_earth, 0.0), (0.0, v_earth)))

    r_moon = 384400e3
    v_moon = v_earth + circular_orbit_velocity(EARTH_MASS, r_moon)
    bodies.append(Body.create("Moon", 7.34767309e22, 1.7374e6, (r_earth + r_moon, 0.0), (0.0, v_moon)))

    r_mars = 2.279e11
    bodies.append(Body.create("Mars", 6.4171e23, 3.3895e6, (r_mars, 0.0),
                              (0.0, circular_orbit_velocity(SOLAR_MASS, r_mars))))
    return bodies


def scene_figure_eight() -> List[Body]:
    """Classic equal-mass figure-eight periodic solution (Chenciner-Montgomery), scaled to SI.
    Dimensionless initial conditions (G=1, m=1):
    r1=(-0.97000436, 0.24308753), r2=(0.97000436,-0.24308753), r3=(0,0)
    v1=v2=(0.4662036850, 0.4323657300), v3=(-0.93240737,-0.86473146)
    Scaling by mass m_si and length L gives velocity unit V = sqrt(G*m_si/L).
    """
    m_si = 5e24
    L = 1.0e9  # meters
    V = math.sqrt(G * m_si / L)

    r = ((-0.97000436, 0.24308753), (0.97000436, -0.24308753), (0.0, 0.0))
    v = ((0.4662036850, 0.4323657300), (0.4662036850, 0.4323657300), (-0.93240737, -0.86473146))
    return [
        Body.create(name, m_si, 6.0e6, (ri[0] * L, ri[1] * L), (vi[0] * V, vi[1] * V))
        for name, ri, vi in zip("ABC", r, v)
    ]


BUILTIN_SCENES: Dict[str, Callable[[], List[Body]]] = {
    "Solar System (circular)": scene_circular_solar_system,
    "Classic 3-body (Figure-eight)": scene_figure_eight,
}


def scene_names() -> List[str]:
    """Display names of every available scene, JSON templates first."""
    names = [display for _, display in list_templates()]
    names.extend(n for n in BUILTIN_SCENES if n not in names)
    return names


def load_scene(name: str) -> List[Body]:
    """Bodies for the scene with the given display name."""
    for file_name, display in list_templates():
        if display == name:
            bodies, _ = load_template(file_name)
            if bodies:
                return bodies
            logger.warning("Template '%s' has no usable bodies", file_name)
    if name in BUILTIN_SCENES:
        return BUILTIN_SCENES[name]()
    raise KeyError(f"Unknown scene: {name!r}")


def build_timeline(bodies: List[Body]) -> Timeline:
    return Timeline(bodies)
