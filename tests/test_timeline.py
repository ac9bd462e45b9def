"""
Tests for trajectory population and ticking across epochs.
"""

import dataclasses
import math

import pytest

from gravsim.data_models import Body, Epoch
from gravsim.drafts import DraftRequest
from gravsim.errors import InconsistentTimelineState, InvalidInput, NumericalFailure
from gravsim.presets_loader import load_template
from gravsim.timeline import Timeline, populate_trajectories


def sample_times(body):
    return [s.t for s in body.future]


RES = 10.0
LOOKAHEAD = 5000.0

GOOD_DRAFT = DraftRequest(mass=1e4, radius=100.0, anchor=(1e8, 0.0), current=(1e8, 5e7),
                          velocity_scale=1e6)


def bad_draft(**changes):
    return {"draft": dataclasses.replace(GOOD_DRAFT, **changes)}


@pytest.fixture
def populated(head_on):
    populate_trajectories(head_on, RES, LOOKAHEAD)
    return head_on


class TestPopulate:
    def test_head_on_merges_once(self, populated):
        assert len(populated.epochs) == 2
        assert populated.collisions == {"A": "A+B", "B": "A+B"}

        merged = populated.latest_epoch.bodies
        assert [b.name for b in merged] == ["A+B"]
        body = merged[0]
        assert body.mass == 2e24
        assert body.radius == 2e6
        assert body.velocity[0] == pytest.approx(0.0, abs=1e-6)
        assert body.position[0] == pytest.approx(0.0, abs=1e-3)

    def test_collision_time_starts_next_epoch(self, populated):
        a = populated.epochs[0].find("A")
        assert populated.epochs[1].start_time == a.latest.t
        assert 0.0 < a.latest.t < LOOKAHEAD

    def test_reaches_lookahead(self, populated):
        assert populated.horizon == pytest.approx(LOOKAHEAD)

    def test_samples_increase_within_resolution(self, populated):
        for epoch in populated.epochs:
            for body in epoch.bodies:
                times = sample_times(body)
                gaps = [b - a for a, b in zip(times, times[1:])]
                assert all(g > 0 for g in gaps)
                assert all(g <= RES + 1e-9 for g in gaps)

    def test_bodies_of_an_epoch_share_sample_times(self, populated):
        a, b = populated.epochs[0].bodies
        assert sample_times(a) == sample_times(b)

    def test_repopulate_is_idempotent(self, populated):
        first = [sample_times(b) for b in populated.latest_epoch.bodies]
        populate_trajectories(populated, RES, LOOKAHEAD)
        assert len(populated.epochs) == 2
        assert [sample_times(b) for b in populated.latest_epoch.bodies] == first

    def test_zero_lookahead_keeps_current_state(self, head_on):
        populate_trajectories(head_on, RES, 0.0)
        assert len(head_on.epochs) == 1
        assert all(len(b.future) == 1 for b in head_on.bodies)

    def test_no_collision_for_separate_bodies(self, lone_sun):
        populate_trajectories(lone_sun, RES, 100.0)
        assert len(lone_sun.epochs) == 1
        assert sample_times(lone_sun.bodies[0])[-1] == 100.0

    @pytest.mark.parametrize("kwargs", [
        {"step_resolution": 0.0},
        {"step_resolution": -1.0},
        {"step_resolution": math.nan},
        {"lookahead": -1.0},
        {"lookahead": math.inf},
        {"tolerance": 0.0},
        bad_draft(velocity_scale=0.0),
        bad_draft(mass=math.nan),
        bad_draft(radius=math.inf),
        bad_draft(radius=-1.0),
        bad_draft(anchor=(math.nan, 0.0)),
        bad_draft(current=(0.0, math.inf)),
    ])
    def test_invalid_input_leaves_timeline(self, populated, kwargs):
        args = {"step_resolution": RES, "lookahead": LOOKAHEAD}
        args.update(kwargs)
        before = [sample_times(b) for b in populated.epochs[0].bodies]
        with pytest.raises(InvalidInput):
            populate_trajectories(populated, **args)
        assert len(populated.epochs) == 2
        assert [sample_times(b) for b in populated.epochs[0].bodies] == before
        assert populated.epochs[0].names() == ["A", "B"]
        assert populated.drafts.name is None

    def test_valid_draft_accepted(self, populated):
        populate_trajectories(populated, RES, LOOKAHEAD, draft=GOOD_DRAFT)
        assert populated.epochs[0].names() == ["A", "B", "User 1"]

    def test_numerical_failure_resets_to_current(self):
        timeline = Timeline([
            Body.create("A", 1e24, 1.0, (0.0, 0.0), (0.0, 0.0)),
            Body.create("B", 1e24, 1.0, (0.0, 0.0), (0.0, 0.0)),
        ])
        with pytest.raises(NumericalFailure):
            populate_trajectories(timeline, RES, 100.0)
        assert len(timeline.epochs) == 1
        assert all(len(b.future) == 1 for b in timeline.bodies)
        assert timeline.collisions == {}

    def test_step_lost_to_clock_rounding_fails(self):
        # At t=1e20 neighbouring floats are 16384 s apart, so a 10 s step cannot move the clock.
        timeline = Timeline([Body.create("A", 1.0, 1.0, (0.0, 0.0), (1.0, 0.0), t=1e20)])
        with pytest.raises(NumericalFailure):
            populate_trajectories(timeline, RES, 1e5)
        assert len(timeline.bodies[0].future) == 1


class TestTick:
    def test_tick_within_epoch(self, populated):
        populated.tick(100.0)
        assert populated.current_time == 100.0
        a = populated.find("A")
        assert sample_times(a)[0] == 100.0
        assert [s.t for s in a.history][-1] < 100.0

    def test_tick_zero_is_noop(self, populated):
        populated.tick(0.0)
        assert populated.current_time == 0.0

    def test_tick_promotes_merged_epoch(self, populated):
        populated.tick(1000.0)
        assert len(populated.epochs) == 1
        assert populated.epochs[0].names() == ["A+B"]
        assert 1000.0 <= populated.current_time < 1000.0 + RES + 1e-9
        assert populated.resolve_name("A") == "A+B"
        assert populated.resolve_name("B") == "A+B"
        assert populated.find("A").name == "A+B"

    def test_merge_still_resolvable_after_repopulate(self, populated):
        populated.tick(1000.0)
        populate_trajectories(populated, RES, LOOKAHEAD)
        assert populated.collisions == {}
        assert populated.resolve_name("A") == "A+B"

    def test_survivor_history_carries_across_promotion(self, head_on_with_bystander):
        timeline = head_on_with_bystander
        populate_trajectories(timeline, RES, LOOKAHEAD)
        collision_time = timeline.epochs[1].start_time
        timeline.tick(1000.0)

        c = timeline.find("C")
        times = [s.t for s in c.history]
        assert times[0] == 0.0
        assert times[-1] < timeline.current_time
        assert all(b > a for a, b in zip(times, times[1:]))
        assert collision_time in times

    def test_merged_body_history_starts_at_collision(self, populated):
        collision_time = populated.epochs[1].start_time
        populated.tick(1000.0)
        merged = populated.find("A+B")
        assert merged.history[0].t == collision_time

    def test_stale_after_running_off_the_end(self, head_on):
        populate_trajectories(head_on, RES, 50.0)
        head_on.tick(100.0)
        assert head_on.stale
        assert head_on.current_time == 50.0

        with pytest.raises(InconsistentTimelineState):
            head_on.tick(10.0)

        populate_trajectories(head_on, RES, 50.0)
        assert not head_on.stale
        head_on.tick(10.0)
        assert head_on.current_time == 60.0

    def test_tick_to_last_sample_is_not_stale(self, head_on):
        populate_trajectories(head_on, RES, 50.0)
        head_on.tick(50.0)
        assert not head_on.stale
        assert head_on.current_time == 50.0

    @pytest.mark.parametrize("dt", [-1.0, math.nan, math.inf])
    def test_invalid_dt(self, populated, dt):
        with pytest.raises(InvalidInput):
            populated.tick(dt)
        assert populated.current_time == 0.0


class TestNames:
    def test_empty_timeline_rejected(self):
        with pytest.raises(InconsistentTimelineState):
            Timeline([])

    def test_unknown_name(self, head_on):
        assert head_on.resolve_name("Nope") is None
        assert head_on.find("Nope") is None

    def test_chained_merges(self, head_on):
        head_on.epochs[0].merges = {"X": "Y"}
        head_on.collisions = {"Y": "A"}
        assert head_on.resolve_name("X") == "A"

    def test_cyclic_mapping_terminates(self, head_on):
        head_on.collisions = {"X": "Y", "Y": "X"}
        assert head_on.resolve_name("X") is None

    def test_empty_epoch_is_inconsistent(self, head_on):
        head_on.epochs.append(Epoch(bodies=[]))
        with pytest.raises(InconsistentTimelineState):
            head_on.latest_epoch


class TestSolarOrbit:
    def test_earth_returns_after_one_year(self):
        bodies, name = load_template("sun_earth_venus.json")
        assert name == "Sun, Earth & Venus"
        timeline = Timeline(bodies)
        day = 86400.0
        populate_trajectories(timeline, day, 365.25 * day, tolerance=1e-8)

        assert len(timeline.epochs) == 1
        assert timeline.collisions == {}
        earth = timeline.find("Earth")
        start, end = earth.current.position, earth.latest.position
        distance = math.hypot(end[0] - start[0], end[1] - start[1])
        assert distance < 0.01 * 152.10e9
