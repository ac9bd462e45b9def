#!/usr/bin/env python3
"""
Piecewise trajectory timeline.

The timeline is an ordered list of epochs. Epoch 0 always holds the bodies at the
current simulated time; later epochs are speculative states that only exist because
a collision was predicted. Ticking consumes samples from epoch 0, and when its bodies
run out of samples the next epoch becomes current, which is how a predicted collision
becomes real.

Workflow per refresh
1) populate_trajectories: throw away every speculative epoch and predicted sample,
   apply the draft lifecycle, then integrate forward to the lookahead horizon,
   starting a new epoch whenever two bodies merge.
2) Timeline.tick: advance the current time by dt.

Threading
- Single-threaded. Population runs to completion inside the call; there is no
  cancellation. The viewer serializes access through its controller lock.
"""
import logging
import math
from functools import partial
from typing import Dict, List, Optional, Tuple

from .collisions import handle_collision
from .constants import DEFAULT_MIN_STEP, DEFAULT_TOLERANCE
from .data_models import Body, Epoch
from .drafts import DraftLifecycle, DraftRequest
from .errors import InconsistentTimelineState, InvalidInput, NumericalFailure
from .integrator import AdaptiveIntegrator
from .physics import applied_accelerations, gravity_derivative, state_vector

logger = logging.getLogger(__name__)


class Timeline:
    """
    Ordered epochs of bodies plus the collision record of the last population pass.

    Attributes:
        epochs: Epochs ordered by time; epochs[0] is current.
        collisions: Removed name -> merged name for every predicted merge.
        drafts: Lifecycle of the user's draft body.
        stale: True once a tick ran past the last predicted sample.
    """

    def __init__(self, bodies: List[Body]):
        if not bodies:
            raise InconsistentTimelineState("A timeline needs at least one body")
        self.epochs: List[Epoch] = [Epoch(bodies=list(bodies))]
        self.collisions: Dict[str, str] = {}
        self.drafts = DraftLifecycle()
        self.stale = False

    @property
    def current_epoch(self) -> Epoch:
        self._check()
        return self.epochs[0]

    @property
    def latest_epoch(self) -> Epoch:
        self._check()
        return self.epochs[-1]

    @property
    def bodies(self) -> List[Body]:
        return self.current_epoch.bodies

    @property
    def current_time(self) -> float:
        return self.current_epoch.start_time

    @property
    def horizon(self) -> float:
        """Time of the last predicted sample."""
        return max(b.latest.t for b in self.latest_epoch.bodies)

    def _check(self) -> None:
        if not self.epochs:
            raise InconsistentTimelineState("Timeline has no epochs")
        for epoch in self.epochs:
            if not epoch.bodies:
                raise InconsistentTimelineState("Timeline holds an epoch with no bodies")

    def push_epoch(self, epoch: Epoch) -> None:
        if not epoch.bodies:
            raise InconsistentTimelineState("Cannot start an epoch with no bodies")
        self.epochs.append(epoch)
        self.collisions.update(epoch.merges)

    def reset_to_current(self) -> None:
        """Collapse to epoch 0 holding only the current sample of each body."""
        epoch = self.current_epoch
        del self.epochs[1:]
        for body in epoch.bodies:
            body.reset_future()
        self.collisions.clear()
        self.stale = False

    def tick(self, dt: float) -> None:
        """
        Advance the current time by dt, consuming predicted samples.

        If any body of epoch 0 runs out of samples, epoch 0 is dropped and the next
        epoch becomes current. When there is no next epoch the bodies keep their final
        sample and the timeline turns stale until it is repopulated.
        """
        if not (isinstance(dt, (int, float)) and math.isfinite(dt)) or dt < 0:
            raise InvalidInput("dt", dt)
        if self.stale:
            raise InconsistentTimelineState(
                "Tick past the end of the predicted trajectories; repopulate first"
            )

        until = self.current_time + dt
        while True:
            epoch = self.epochs[0]
            last = len(self.epochs) == 1
            exhausted = [body.consume(until, keep_last=last) for body in epoch.bodies]
            if not any(exhausted):
                return
            if last:
                self.stale = True
                logger.debug("Ticked past the horizon at t=%.6gs", self.current_time)
                return
            self._promote()

    def _promote(self) -> None:
        old = self.epochs.pop(0)
        new = self.current_epoch
        for body in new.bodies:
            parent = old.find(body.name)
            if parent is not None:
                body.history[:0] = parent.history
        for removed, merged in new.merges.items():
            logger.info("Collision applied at t=%.6gs: %s -> %s", new.start_time, removed, merged)

    def resolve_name(self, name: str) -> Optional[str]:
        """
        Name of the current body that ``name`` refers to, following merges.

        Returns None when the name cannot be traced to a live body.
        """
        live = set(self.current_epoch.names())
        mapping = dict(self.epochs[0].merges)
        mapping.update(self.collisions)
        limit = sum(len(e.bodies) for e in self.epochs) + len(mapping)
        for _ in range(limit + 1):
            if name in live:
                return name
            if name not in mapping:
                return None
            name = mapping[name]
        return None

    def find(self, name: str) -> Optional[Body]:
        resolved = self.resolve_name(name)
        if resolved is None:
            return None
        return self.current_epoch.find(resolved)


def _validate(step_resolution: float, lookahead: float, tolerance: float,
              draft: Optional[DraftRequest] = None) -> None:
    for field, value in (("step_resolution", step_resolution), ("lookahead", lookahead),
                         ("tolerance", tolerance)):
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidInput(field, value)
    if step_resolution <= 0:
        raise InvalidInput("step_resolution", step_resolution, "must be positive")
    if lookahead < 0:
        raise InvalidInput("lookahead", lookahead, "must not be negative")
    if tolerance <= 0:
        raise InvalidInput("tolerance", tolerance, "must be positive")
    if draft is not None:
        _validate_draft(draft)


def _validate_draft(draft: DraftRequest) -> None:
    for field in ("mass", "radius", "velocity_scale"):
        value = getattr(draft, field)
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidInput(f"draft.{field}", value)
        if value <= 0:
            raise InvalidInput(f"draft.{field}", value, "must be positive")
    for field in ("anchor", "current"):
        point = getattr(draft, field)
        if len(point) != 2 or not all(
                isinstance(c, (int, float)) and math.isfinite(c) for c in point):
            raise InvalidInput(f"draft.{field}", point)


def _integrate_epoch(timeline: Timeline, t_start: float, t_max: float,
                     step_resolution: float, tolerance: float,
                     min_step: float) -> Tuple[float, bool]:
    """
    Integrate the latest epoch from t_start towards t_max.

    Returns (time reached, whether a collision started a new epoch).
    """
    bodies = timeline.latest_epoch.bodies
    derivative = partial(gravity_derivative,
                         masses=[b.mass for b in bodies],
                         applied=applied_accelerations(bodies))
    integrator = AdaptiveIntegrator(state_vector(bodies), derivative, t0=0.0,
                                    dt=step_resolution, tolerance=tolerance,
                                    dt_max=step_resolution, dt_min=min_step)
    span = t_max - t_start
    t_sim = t_start
    grid = 0
    while integrator.t < span:
        # Next multiple of the step resolution, clamped to the horizon.
        target = min((grid + 1) * step_resolution, span)
        more = True
        while more:
            accepted = integrator.accepted_steps
            more = integrator.step(target)
            if integrator.accepted_steps == accepted:
                continue
            t_now = t_start + integrator.t
            if t_now <= t_sim:
                raise NumericalFailure(
                    f"Accepted step does not advance the clock past t={t_sim:g}s",
                    t=t_sim, dt=integrator.dt,
                )
            t_sim = t_now
            y = integrator.y
            for k, body in enumerate(bodies):
                body.append(t_sim, (y[4 * k], y[4 * k + 1]), (y[4 * k + 2], y[4 * k + 3]))
            if handle_collision(timeline):
                return t_sim, True
        if target >= span:
            break
        grid += 1

    logger.debug("Epoch integrated to t=%.6gs in %d steps (%d rejected)",
                 t_sim, integrator.accepted_steps, integrator.rejected_steps)
    return t_max, False


def populate_trajectories(timeline: Timeline, step_resolution: float, lookahead: float,
                          draft: Optional[DraftRequest] = None, finalize: bool = False,
                          tolerance: float = DEFAULT_TOLERANCE,
                          min_step: float = DEFAULT_MIN_STEP) -> None:
    """
    Recompute every predicted trajectory from the current state.

    Args:
        timeline: Timeline to repopulate in place.
        step_resolution: Largest time gap between stored samples (s).
        lookahead: How far past the current time to predict (s).
        draft: Draft body to preview this pass, or None.
        finalize: Commit the current draft before deciding on a new one.
        tolerance: Relative error tolerance of the integrator.
        min_step: Smallest integrator step before giving up (s).

    Raises:
        InvalidInput: unusable numeric arguments or draft fields; the timeline is left unchanged.
        NumericalFailure: the integrator gave up; the timeline is left holding only
            the current sample of each current body.
    """
    _validate(step_resolution, lookahead, tolerance, draft)

    timeline.reset_to_current()
    t_sim = timeline.current_time
    timeline.drafts.apply(timeline.current_epoch, t_sim, draft, finalize)

    t_max = t_sim + lookahead
    try:
        while t_sim < t_max:
            t_sim, collided = _integrate_epoch(timeline, t_sim, t_max, step_resolution,
                                               tolerance, min_step)
            if not collided:
                break
    except NumericalFailure:
        logger.error("Integration failed after t=%.6gs; discarding predictions", t_sim)
        timeline.reset_to_current()
        raise

    logger.debug("Populated %d epoch(s) up to t=%.6gs, %d predicted merge(s)",
                 len(timeline.epochs), t_max, len(timeline.collisions))
