from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from pygame.math import Vector3

from ..utils.math3d import _normalize_ip, _scale_components

if TYPE_CHECKING:
    from ..core.agent import Boid, Neighbor
    from ..core.rng import DeterministicRng


@dataclass(slots=True)
class SteeringForces:
    wander: Vector3
    separation: Vector3
    alignment: Vector3
    cohesion: Vector3
    steering: Vector3


def apply_steering(
    boid: Boid,
    neighbors: Sequence[Neighbor],
    dt: float,
    rng: DeterministicRng,
) -> SteeringForces:
    """
    Fold the four behaviours into one bounded nudge and re-saturate speed.

    Speed always ends at `max_speed`; only the heading changes frame to frame.
    The vertical component is damped before normalizing, so a flock drifts in
    height far slower than it turns horizontally.
    """

    params = boid.params
    separation_force = separation(boid, neighbors)
    alignment_force = alignment(boid, neighbors)
    cohesion_force = cohesion(boid, neighbors)
    wander_force = wander(boid, rng)

    total = Vector3()
    total += wander_force
    total += separation_force
    total += alignment_force
    total += cohesion_force
    total *= params.acceleration * dt
    total = _scale_components(total, params.steering_damping)
    _normalize_ip(total)
    total *= params.max_steering_force

    velocity = boid.velocity
    velocity += total
    _normalize_ip(velocity)
    velocity *= params.max_speed
    boid.velocity = velocity
    boid.direction = _normalize_ip(velocity.copy())

    return SteeringForces(
        wander=wander_force,
        separation=separation_force,
        alignment=alignment_force,
        cohesion=cohesion_force,
        steering=total,
    )


def wander(boid: Boid, rng: DeterministicRng) -> Vector3:
    # All three axes share one cosine, so the offset always lies on (1, 1, 1).
    boid.wander_angle += rng.next_angle_step(boid.params.wander_step)
    c = math.cos(boid.wander_angle)
    point_ahead = boid.direction * 2.0
    point_ahead += Vector3(c, c, c)
    _normalize_ip(point_ahead)
    point_ahead *= boid.params.wander_force
    return point_ahead


def separation(boid: Boid, neighbors: Sequence[Neighbor]) -> Vector3:
    force = Vector3()
    if not neighbors:
        return force
    params = boid.params
    position = boid.position
    radius = boid.radius
    for other in neighbors:
        radius_sum = radius + other.radius
        gap = max(other.position.distance_to(position) - radius_sum, params.min_gap)
        away = _normalize_ip(position - other.position)
        away *= params.separation_force * (radius_sum / gap)
        force += away
    return force


def alignment(boid: Boid, neighbors: Sequence[Neighbor]) -> Vector3:
    force = Vector3()
    if not neighbors:
        return force
    for other in neighbors:
        force += other.direction
    _normalize_ip(force)
    force *= boid.params.alignment_force
    return force


def cohesion(boid: Boid, neighbors: Sequence[Neighbor]) -> Vector3:
    if not neighbors:
        return Vector3()
    average = Vector3()
    for other in neighbors:
        average += other.position
    average *= 1.0 / len(neighbors)
    toward = average - boid.position
    _normalize_ip(toward)
    toward *= boid.params.cohesion_force
    return toward
