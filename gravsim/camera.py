#!/usr/bin/env python3
"""
2D camera for the viewport.

The camera is a world point shown at the middle of the viewport plus a scale in
meters per pixel. World y points up and screen y points down, so the vertical axis
is flipped in both directions of the transform.
"""
from typing import Iterable, List, Optional, Tuple
from .constants import (
    DEFAULT_METERS_PER_PIXEL,
    MIN_METERS_PER_PIXEL,
    MAX_METERS_PER_PIXEL,
    SAFE_COORD_LIMIT,
    VIEW_WIDTH,
    VIEW_HEIGHT,
)
from .vector_utils import clamp


class Camera2D:
    """
    Maps world coordinates (meters) to screen pixels and back.
    """

    def __init__(self, center=(0.0, 0.0), meters_per_pixel=DEFAULT_METERS_PER_PIXEL):
        self.center = (float(center[0]), float(center[1]))
        self.mpp = meters_per_pixel
        self.viewport_size = (VIEW_WIDTH, VIEW_HEIGHT)

    def set_viewport_size(self, w: int, h: int) -> None:
        self.viewport_size = (max(int(w), 1), max(int(h), 1))

    def _half_viewport(self) -> Tuple[float, float]:
        return self.viewport_size[0] / 2, self.viewport_size[1] / 2

    def world_to_screen(self, pos: Tuple[float, float]) -> Tuple[int, int]:
        half_w, half_h = self._half_viewport()
        return (int(half_w + (pos[0] - self.center[0]) / self.mpp),
                int(half_h - (pos[1] - self.center[1]) / self.mpp))

    def screen_to_world(self, screen: Tuple[int, int]) -> Tuple[float, float]:
        half_w, half_h = self._half_viewport()
        return (self.center[0] + (screen[0] - half_w) * self.mpp,
                self.center[1] + (half_h - screen[1]) * self.mpp)

    def project(self, positions: Iterable[Tuple[float, float]]) -> List[Tuple[int, int]]:
        """Screen points for world positions; points too far off-screen to draw are dropped."""
        pts = []
        for pos in positions:
            x, y = self.world_to_screen(pos)
            if abs(x) <= SAFE_COORD_LIMIT and abs(y) <= SAFE_COORD_LIMIT:
                pts.append((x, y))
        return pts

    def zoom(self, factor: float, pivot_screen: Optional[Tuple[int, int]] = None) -> None:
        """Zoom in by ``factor`` (>1 zooms in), keeping the pivot pixel over the same world point."""
        factor = clamp(factor, 0.05, 20.0)
        anchor = self.screen_to_world(pivot_screen) if pivot_screen is not None else None
        self.mpp = clamp(self.mpp / factor, MIN_METERS_PER_PIXEL, MAX_METERS_PER_PIXEL)
        if anchor is not None:
            moved = self.screen_to_world(pivot_screen)
            self.center = (self.center[0] + anchor[0] - moved[0],
                           self.center[1] + anchor[1] - moved[1])

    def pan_pixels(self, dx_pixels: float, dy_pixels: float) -> None:
        self.center = (self.center[0] - dx_pixels * self.mpp,
                       self.center[1] + dy_pixels * self.mpp)

    def follow(self, position: Tuple[float, float]) -> None:
        self.center = (position[0], position[1])

    def fit(self, points: Iterable[Tuple[float, float]], margin: float = 1.3) -> None:
        """Center on the bounding box of the points and zoom so they all fit."""
        pts = list(points)
        if not pts:
            self.center = (0.0, 0.0)
            self.mpp = DEFAULT_METERS_PER_PIXEL
            return
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        width_m = (max(xs) - min(xs)) * margin + 1.0
        height_m = (max(ys) - min(ys)) * margin + 1.0
        self.center = ((min(xs) + max(xs)) / 2, (min(ys) + max(ys)) / 2)
        self.mpp = clamp(max(width_m / self.viewport_size[0], height_m / self.viewport_size[1]),
                         MIN_METERS_PER_PIXEL, MAX_METERS_PER_PIXEL)
