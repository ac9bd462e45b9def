#!/usr/bin/env python3
"""
gravsim viewer: trajectory preview with collisions, driven by the gravsim engine.

What this module does
- Starts two event loops: a Pygame thread (viewport) and the Dear PyGui controls
  (running on the main thread).
- Both talk to a shared SimulationController; all access is guarded by its re-entrant
  lock. The viewport thread is the periodic driver: every frame it refreshes the
  predicted trajectories, ticks time when playing and draws the result.

Viewport controls
- Left-drag: aim a new body (release to launch it; Esc cancels)
- Right/Middle-drag: pan | Wheel: zoom | Space: play/pause | Right arrow: single step
- F: fit camera to all predicted paths

Drawing
- Predicted paths for every epoch (colour changes at each predicted collision)
- Trails from each body's consumed history
- Bodies of the current epoch; the draft body is highlighted

Running
1) Install dependencies: `pip install -e .`
2) Run this module: `python gravity_sim.py [--scene NAME] [--log-level LEVEL]`
"""

import argparse
import logging
import math
import threading
from typing import Optional

# GUI and Rendering libs
import pygame
from pygame import gfxdraw
import dearpygui.dearpygui as dpg

from gravsim.camera import Camera2D
from gravsim.constants import (
    BACKGROUND_COLOR,
    BODY_COLOR,
    DRAFT_COLOR,
    DRAG_LINE_COLOR,
    GRID_COLOR,
    PATH_COLORS,
    SECONDS_PER_DAY,
    TRAIL_COLOR,
    VIEW_HEIGHT,
    VIEW_WIDTH,
)
from gravsim.controller import SimulationController
from gravsim.presets import load_scene, scene_names
from gravsim.utils import days_to_seconds, try_float
from gravsim.vector_utils import clamp

logger = logging.getLogger("gravsim.viewer")

DEFAULT_SCENE = "Sandbox"
FRAME_RATE = 60

# ============================================================
# Pygame Renderer Thread
# ============================================================


class PygameRenderer(threading.Thread):
    """
    Pygame loop: refreshes the simulation, draws predicted paths, trails and bodies.
    Handles drag-to-launch, camera panning and zoom.
    """
    def __init__(self, sim: SimulationController):
        super().__init__(daemon=True)
        self.sim = sim
        self.camera = Camera2D(center=(0.0, 0.0))
        self.surface = None
        self.clock = None
        self.dragging_background = False
        self.drag_start_screen = (0, 0)
        self.body_size = 1.0
        self.trail_length = 500
        self.running = True
        self._fit_requested = True

    def request_fit(self):
        self._fit_requested = True

    def auto_frame_camera(self):
        """Adjust camera to fit every predicted path into view with margin."""
        with self.sim.lock:
            points = [s.position for epoch in self.sim.timeline.epochs
                      for b in epoch.bodies for s in b.future]
        self.camera.fit(points)

    def run(self):
        pygame.init()
        pygame.display.set_caption("gravsim - Viewport")
        self.surface = pygame.display.set_mode((VIEW_WIDTH, VIEW_HEIGHT), pygame.RESIZABLE)
        self.camera.set_viewport_size(VIEW_WIDTH, VIEW_HEIGHT)
        self.clock = pygame.time.Clock()

        while self.running and self.sim.running:
            self.handle_events()
            self.sim.refresh()
            if self._fit_requested:
                self.auto_frame_camera()
                self._fit_requested = False
            followed = self.sim.followed_body()
            if followed is not None:
                self.camera.follow(followed.position)
            self.draw()
            self.clock.tick(FRAME_RATE)

        pygame.quit()

    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.sim.running = False
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.surface = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                self.camera.set_viewport_size(event.w, event.h)

            elif event.type == pygame.MOUSEWHEEL:
                factor = 1.1 if event.y > 0 else 1.0 / 1.1
                self.camera.zoom(factor, pygame.mouse.get_pos())

            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button == 1:
                    self.sim.begin_drag(self.camera.screen_to_world(event.pos))
                elif event.button in (2, 3):
                    self.dragging_background = True
                    self.drag_start_screen = event.pos

            elif event.type == pygame.MOUSEBUTTONUP:
                if event.button == 1:
                    self.sim.end_drag()
                elif event.button in (2, 3):
                    self.dragging_background = False

            elif event.type == pygame.MOUSEMOTION:
                if self.dragging_background:
                    dx = event.pos[0] - self.drag_start_screen[0]
                    dy = event.pos[1] - self.drag_start_screen[1]
                    self.camera.pan_pixels(dx, dy)
                    self.drag_start_screen = event.pos
                else:
                    self.sim.update_drag(self.camera.screen_to_world(event.pos))

            elif event.type == pygame.WINDOWLEAVE:
                self.sim.cancel_drag()

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    self.sim.toggle_play()
                elif event.key == pygame.K_RIGHT:
                    self.sim.step()
                elif event.key == pygame.K_ESCAPE:
                    self.sim.cancel_drag()
                elif event.key == pygame.K_f:
                    self.request_fit()

    def draw(self):
        surf = self.surface
        surf.fill(BACKGROUND_COLOR)
        w, h = self.camera.viewport_size
        ox, oy = self.camera.world_to_screen((0.0, 0.0))
        if 0 <= ox <= w:
            pygame.draw.line(surf, GRID_COLOR, (ox, 0), (ox, h), 1)
        if 0 <= oy <= h:
            pygame.draw.line(surf, GRID_COLOR, (0, oy), (w, oy), 1)

        with self.sim.lock:
            epochs = [list(e.bodies) for e in self.sim.timeline.epochs]
            drag = self.sim.drag
            drag_line = (drag.anchor, drag.current) if drag.is_dragging else None
            t_now = self.sim.timeline.current_time
            n_collisions = len(self.sim.timeline.collisions)
            playing = self.sim.playing
            error = self.sim.last_error
            status = self.sim.status

            # Trails
            for b in epochs[0]:
                trail = b.history[-self.trail_length:] if self.trail_length else []
                pts = self.camera.project([s.position for s in trail] + [b.position])
                if len(pts) > 1:
                    pygame.draw.aalines(surf, TRAIL_COLOR, False, pts)

            # Predicted paths, one colour per epoch
            for idx, bodies in enumerate(epochs):
                color = PATH_COLORS[idx % len(PATH_COLORS)]
                for b in bodies:
                    pts = self.camera.project(s.position for s in b.future)
                    if len(pts) > 1:
                        pygame.draw.aalines(surf, color, False, pts)

            # Bodies of the current epoch
            for b in epochs[0]:
                projected = self.camera.project([b.position])
                if not projected:
                    continue
                sp = projected[0]
                # Visual radius in pixels: true size when zoomed in, log-scaled otherwise
                vis_r = int(clamp(max(b.radius / self.camera.mpp,
                                      math.log10(max(b.radius, 1.0)) * self.body_size), 2, 50))
                gfxdraw.filled_circle(surf, sp[0], sp[1], vis_r, DRAFT_COLOR if b.is_draft else BODY_COLOR)
                gfxdraw.aacircle(surf, sp[0], sp[1], vis_r, (0, 0, 0))
                draw_text(surf, b.name, sp[0] + vis_r + 3, sp[1] - 8, (200, 200, 200))

        if drag_line:
            ends = self.camera.project(drag_line)
            if len(ends) == 2:
                pygame.draw.line(surf, DRAG_LINE_COLOR, ends[0], ends[1], 1)

        draw_text(surf, "Left-drag: launch body | Right-drag: pan | Wheel: zoom | Space: play/pause | ->: step | F: fit", 10, 10, (200, 200, 200))
        draw_text(surf, f"t = {t_now / SECONDS_PER_DAY:.2f} days  [{'Playing' if playing else 'Paused'}]  "
                        f"epochs: {len(epochs)}  predicted merges: {n_collisions}", 10, 30, (200, 200, 200))
        if error:
            draw_text(surf, error, 10, 50, (255, 120, 120))
        elif status:
            draw_text(surf, status, 10, 50, (180, 220, 180))

        pygame.display.flip()


_cached_font = None


def draw_text(surface, text, x, y, color):
    global _cached_font
    if not pygame.font.get_init():
        pygame.font.init()
    if _cached_font is None:
        _cached_font = pygame.font.SysFont("consolas", 16)
    img = _cached_font.render(text, True, color)
    surface.blit(img, (x, y))

# ============================================================
# Dear PyGui UI
# ============================================================


class UI:
    """
    Dear PyGui interface: draft body form, integration settings, scenes, play controls.
    """
    def __init__(self, sim: SimulationController, renderer: PygameRenderer):
        self.sim = sim
        self.renderer = renderer
        self.status_msg_id = None
        self.follow_combo_id = None
        self._build_ui()
        dpg.set_frame_callback(1, self._sync_ui_with_sim)

    def _build_ui(self):
        dpg.create_context()
        dpg.create_viewport(title='gravsim - Controls', width=460, height=560)

        inputs = self.sim.inputs
        with dpg.window(label="Controls", width=440, height=540, pos=(10, 10), tag="main_window"):
            with dpg.group(horizontal=True):
                dpg.add_text("Scene:")
                names = scene_names()
                dpg.add_combo(names, default_value=DEFAULT_SCENE if DEFAULT_SCENE in names else (names[0] if names else ""),
                              width=220, tag="scene_combo")
                dpg.add_button(label="Load", callback=lambda: self._load_scene(dpg.get_value("scene_combo")))

            dpg.add_separator()
            dpg.add_text("New Body (drag in the viewport)")
            dpg.add_input_text(label="Mass (kg)", default_value=f"{inputs.mass:g}", width=160,
                               callback=lambda s, a, u: self.sim.update_inputs(mass=_field(a)))
            dpg.add_input_text(label="Radius (m)", default_value=f"{inputs.radius:g}", width=160,
                               callback=lambda s, a, u: self.sim.update_inputs(radius=_field(a)))
            dpg.add_input_text(label="Velocity scale (s)", default_value=f"{inputs.draft_velocity_scale:g}", width=160,
                               callback=lambda s, a, u: self.sim.update_inputs(draft_velocity_scale=_field(a)))

            dpg.add_separator()
            dpg.add_text("Integration")
            dpg.add_input_text(label="Time step (days)", default_value=f"{inputs.time_step / SECONDS_PER_DAY:g}", width=160,
                               callback=lambda s, a, u: self.sim.update_inputs(time_step=days_to_seconds(try_float(a))))
            dpg.add_input_text(label="Lookahead (days)", default_value=f"{inputs.lookahead / SECONDS_PER_DAY:g}", width=160,
                               callback=lambda s, a, u: self.sim.update_inputs(lookahead=days_to_seconds(try_float(a))))
            dpg.add_input_text(label="Tolerance", default_value=f"{inputs.tolerance:g}", width=160,
                               callback=lambda s, a, u: self.sim.update_inputs(tolerance=_field(a)))

            dpg.add_separator()
            dpg.add_text("View")
            dpg.add_slider_float(label="Body size", min_value=0.1, max_value=10.0, default_value=1.0, width=200,
                                 callback=lambda s, a, u: setattr(self.renderer, "body_size", float(a)))
            dpg.add_input_int(label="Trail length", default_value=500, min_value=0, max_value=100000, width=120,
                              callback=lambda s, a, u: setattr(self.renderer, "trail_length", max(0, int(a))))
            with dpg.group(horizontal=True):
                self.follow_combo_id = dpg.add_combo([], label="Follow", width=200,
                                                     callback=lambda s, a, u: self.sim.set_follow(a))
                dpg.add_button(label="Stop following", callback=lambda: self.sim.set_follow(None))
            dpg.add_button(label="Auto-fit Camera", callback=self.renderer.request_fit)

            dpg.add_separator()
            dpg.add_text("Simulation Controls")
            with dpg.group(horizontal=True):
                dpg.add_button(label="Play/Pause", callback=self._toggle_play)
                dpg.add_button(label="Step ▶", callback=lambda: self.sim.step())
                dpg.add_button(label="Step x10", callback=lambda: self.sim.step(10))
            self.status_msg_id = dpg.add_text("")

        dpg.setup_dearpygui()
        dpg.show_viewport()
        dpg.set_primary_window("main_window", True)

    def _set_status(self, msg: str, color=(180, 220, 180)):
        dpg.set_value(self.status_msg_id, msg)
        dpg.configure_item(self.status_msg_id, color=color)

    def _toggle_play(self):
        state = "Playing" if self.sim.toggle_play() else "Paused"
        self._set_status(f"Simulation {state}.")

    def _load_scene(self, name: str):
        try:
            self.sim.load_scene(name)
        except KeyError as exc:
            self._set_status(str(exc), color=(255, 120, 120))
            return
        self.renderer.request_fit()
        self._set_status(f"Loaded scene: {name}")

    def _sync_ui_with_sim(self):
        """Periodic UI update (~10Hz): body list for following and engine messages."""
        dpg.configure_item(self.follow_combo_id, items=self.sim.body_names())
        with self.sim.lock:
            error = self.sim.last_error
            status = self.sim.status
            self.sim.status = None
        if error:
            self._set_status(error, color=(255, 120, 120))
        elif status:
            self._set_status(status)
        dpg.set_frame_callback(dpg.get_frame_count() + 6, self._sync_ui_with_sim)


def _field(text) -> float:
    """Parse a numeric form field; NaN lets the controller report it as invalid."""
    val = try_float(text)
    return float("nan") if val is None else val

# ============================================================
# Application Entry
# ============================================================


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(description="Interactive N-body trajectory preview.")
    parser.add_argument("--scene", default=DEFAULT_SCENE, help="scene to start with")
    parser.add_argument("--log-level", default="INFO", help="logging level (DEBUG, INFO, ...)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    sim = SimulationController(load_scene(args.scene))
    renderer = PygameRenderer(sim)
    renderer.start()

    ui = UI(sim, renderer)

    with dpg.handler_registry():
        def key_down(sender, app_data):
            if app_data == dpg.mvKey_Spacebar:
                ui._toggle_play()
        dpg.add_key_press_handler(callback=key_down)

    try:
        dpg.start_dearpygui()
    finally:
        sim.running = False
        renderer.running = False
        renderer.join(timeout=2.0)
        dpg.destroy_context()


if __name__ == "__main__":
    main()
