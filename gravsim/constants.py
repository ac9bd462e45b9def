#!/usr/bin/env python3
"""
Shared constants for gravsim (SI units unless stated otherwise).

Keeping constants in one place helps ensure values are consistent across the
engine, the controller and the viewer.
"""

# Physical constants
G = 6.67430e-11  # m^3 kg^-1 s^-2
EARTH_MASS = 5.9722e24  # kg
SOLAR_MASS = 1.98847e30  # kg
EARTH_RADIUS = 6.371e6  # m
SOLAR_RADIUS = 6.9551e8  # m
SECONDS_PER_DAY = 86400.0

# Engine defaults
DEFAULT_TOLERANCE = 1e-8  # relative error per integrator step
DEFAULT_MIN_STEP = 1e-10  # s; smallest integrator step before giving up
DEFAULT_STEP_RESOLUTION = 1.0 * SECONDS_PER_DAY  # s between stored samples
DEFAULT_LOOKAHEAD = 365.0 * SECONDS_PER_DAY  # s of predicted trajectory
DEFAULT_DRAFT_MASS = 1.0e4  # kg
DEFAULT_DRAFT_RADIUS = 100.0  # m
DEFAULT_DRAFT_VELOCITY_SCALE = 1.0e6  # s; drag length (m) / scale = speed (m/s)
DRAFT_NAME_PREFIX = "User"

# Rendering (viewport)
VIEW_WIDTH = 1100
VIEW_HEIGHT = 800
BACKGROUND_COLOR = (10, 12, 18)
GRID_COLOR = (40, 45, 60)
BODY_COLOR = (90, 200, 110)
DRAFT_COLOR = (255, 255, 0)
PATH_COLORS = ((120, 160, 255), (255, 150, 90), (200, 120, 255), (120, 230, 200))
TRAIL_COLOR = (110, 110, 130)
DRAG_LINE_COLOR = (255, 255, 255)

# Camera zoom bounds (meters-per-pixel)
DEFAULT_METERS_PER_PIXEL = 2.5e8
MIN_METERS_PER_PIXEL = 1e2
MAX_METERS_PER_PIXEL = 1e12

# Safety: avoid drawing outside reasonable integer pixel ranges
SAFE_COORD_LIMIT = 30000
