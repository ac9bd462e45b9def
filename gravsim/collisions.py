#!/usr/bin/env python3
"""
Collision handling for gravsim.

Collisions are perfectly inelastic merges: two overlapping spheres become one body
that conserves mass and momentum. Overlap is only checked at the samples the
integrator produced, and the merge uses those post-step (already interpenetrating)
positions rather than solving back to the instant of first contact.

A merge changes the number of bodies, so it ends the current epoch: the bodies that
were not involved are forked into a new epoch together with the merged body.
"""
import logging
from typing import List, Optional, Tuple

from .data_models import Body, Epoch
from .vector_utils import vec_dist, weighted_mean

logger = logging.getLogger(__name__)


def find_collision(bodies: List[Body]) -> Optional[Tuple[int, int]]:
    """
    Return the first overlapping pair (i, j), i < j, in index order.

    Later overlapping pairs are ignored; they are found again after the next step.
    """
    n = len(bodies)
    for i in range(n):
        bi = bodies[i].latest
        ri = bodies[i].radius
        for j in range(i + 1, n):
            if vec_dist(bi.position, bodies[j].latest.position) <= ri + bodies[j].radius:
                return i, j
    return None


def merge_bodies(b1: Body, b2: Body) -> Body:
    """
    Combine two bodies in a perfectly inelastic collision.

    - mass is conserved: m = m1 + m2
    - position is the centre of mass of the latest samples
    - velocity conserves momentum: v = (m1 v1 + m2 v2) / m
    - radii add (r1 + r2); volume is not conserved
    """
    s1, s2 = b1.latest, b2.latest
    mass = b1.mass + b2.mass
    return Body.create(
        name=f"{b1.name}+{b2.name}",
        mass=mass,
        radius=b1.radius + b2.radius,
        position=weighted_mean(s1.position, b1.mass, s2.position, b2.mass),
        velocity=weighted_mean(s1.velocity, b1.mass, s2.velocity, b2.mass),
        t=s1.t,
    )


def handle_collision(timeline) -> bool:
    """
    Merge the first colliding pair of the timeline's latest epoch.

    Pushes a new epoch (untouched bodies forked, merged body last) onto the timeline
    and records both parent names in its collision record.

    Returns True if a merge happened.
    """
    epoch = timeline.latest_epoch
    pair = find_collision(epoch.bodies)
    if pair is None:
        return False

    i, j = pair
    bi, bj = epoch.bodies[i], epoch.bodies[j]
    survivors = [body.fork() for k, body in enumerate(epoch.bodies) if k not in (i, j)]
    merged = merge_bodies(bi, bj)
    merges = {bi.name: merged.name, bj.name: merged.name}

    timeline.push_epoch(Epoch(bodies=survivors + [merged], merges=merges))
    logger.info("Predicted collision at t=%.6gs: %s + %s -> %s",
                merged.current.t, bi.name, bj.name, merged.name)
    return True
