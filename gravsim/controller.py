#!/usr/bin/env python3
"""
Simulation controller: the state shared between the viewport and the controls.

The viewer runs its pygame loop and its Dear PyGui controls on different threads, so
every method here takes the controller's re-entrant lock. The engine itself stays
single-threaded: only ``refresh`` touches the timeline's trajectories, and it runs to
completion under the lock.

One refresh
1) validate the InputRecord (invalid input: report, keep the old trajectories)
2) populate_trajectories with the current drag and any pending finalize signal
   (numerical failure: report, no new data this cycle)
3) tick by one time step if playing or if steps are queued, unless a drag is in
   progress
"""
import logging
import threading
from typing import List, Optional, Tuple

from .data_models import Body
from .errors import InvalidInput, NumericalFailure
from .inputs import DragState, InputRecord, draft_request
from .presets import build_timeline, load_scene
from .timeline import Timeline, populate_trajectories

logger = logging.getLogger(__name__)


class SimulationController:
    """
    Owns the timeline plus the viewer's inputs, play state and follow target.
    """

    def __init__(self, bodies: List[Body], inputs: Optional[InputRecord] = None):
        self.lock = threading.RLock()
        self.timeline: Timeline = build_timeline(bodies)
        self.inputs = inputs or InputRecord()
        self.drag = DragState()
        self.running = True  # app running
        self.playing = False  # tick after every refresh
        self.pending_ticks = 0  # single steps requested while paused
        self.follow: Optional[str] = None
        self.status: Optional[str] = None
        self.last_error: Optional[str] = None
        self._finalize_pending = False

    # -----------------------
    # Inputs
    # -----------------------

    def update_inputs(self, **changes) -> None:
        """Store new field values; they are validated on the next refresh."""
        with self.lock:
            self.inputs = self.inputs.replace(**changes)

    def begin_drag(self, world: Tuple[float, float]) -> None:
        with self.lock:
            self.playing = False
            self.drag = DragState(is_dragging=True, anchor=world, current=world)

    def update_drag(self, world: Tuple[float, float]) -> None:
        with self.lock:
            if self.drag.is_dragging:
                self.drag.current = world

    def end_drag(self) -> None:
        """Pointer released: commit the draft on the next refresh."""
        with self.lock:
            self.drag = DragState()
            self._finalize_pending = True

    def cancel_drag(self) -> None:
        """Abandon the drag; the draft disappears on the next refresh."""
        with self.lock:
            self.drag = DragState()

    def toggle_play(self) -> bool:
        with self.lock:
            self.playing = not self.playing
            return self.playing

    def step(self, count: int = 1) -> None:
        with self.lock:
            self.pending_ticks += max(0, int(count))

    def set_follow(self, name: Optional[str]) -> None:
        with self.lock:
            self.follow = name or None

    def load_scene(self, name: str) -> None:
        bodies = load_scene(name)
        with self.lock:
            self.timeline = build_timeline(bodies)
            self.drag = DragState()
            self._finalize_pending = False
            self.follow = None
            self.status = f"Loaded scene: {name}"
        logger.info("Loaded scene '%s' with %d bodies", name, len(bodies))

    # -----------------------
    # Refresh cycle
    # -----------------------

    def refresh(self) -> bool:
        """
        Recompute trajectories and advance time if requested.

        Returns True if new trajectories were produced this cycle.
        """
        with self.lock:
            try:
                inputs = self.inputs.validate()
            except InvalidInput as exc:
                if self.last_error != str(exc):
                    logger.warning("Rejected input: %s", exc)
                self.last_error = str(exc)
                return False

            finalize = self._finalize_pending
            self._finalize_pending = False
            request = None if self.playing else draft_request(inputs, self.drag)
            try:
                populate_trajectories(self.timeline, inputs.time_step, inputs.lookahead,
                                      draft=request, finalize=finalize,
                                      tolerance=inputs.tolerance)
            except NumericalFailure as exc:
                self.last_error = f"Numerical failure: {exc}"
                return False
            self.last_error = None

            # Queued steps wait until the drag ends; drafts never take part in a tick.
            if not self.drag.is_dragging and (self.playing or self.pending_ticks > 0):
                self.timeline.tick(inputs.time_step)
                self.pending_ticks = max(0, self.pending_ticks - 1)
            self._track_follow()
            return True

    def _track_follow(self) -> None:
        if self.follow is None:
            return
        resolved = self.timeline.resolve_name(self.follow)
        if resolved is None:
            self.status = f"'{self.follow}' no longer exists"
            self.follow = None
        elif resolved != self.follow:
            self.status = f"Following '{resolved}' (was '{self.follow}')"
            self.follow = resolved

    # -----------------------
    # Read-only snapshots for drawing
    # -----------------------

    def followed_body(self) -> Optional[Body]:
        with self.lock:
            if self.follow is None:
                return None
            return self.timeline.find(self.follow)

    def body_names(self) -> List[str]:
        with self.lock:
            return self.timeline.current_epoch.names()

    def current_time(self) -> float:
        with self.lock:
            return self.timeline.current_time
