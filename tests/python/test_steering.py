from __future__ import annotations

import math

import pytest
from pygame.math import Vector3
from pytest import approx

from shoal.sim.core.agent import Boid, BoidView
from shoal.sim.core.rng import DeterministicRng
from shoal.sim.systems import steering


class ScriptedRng(DeterministicRng):
    """Replays a fixed list of uniform draws in [0, 1)."""

    def __init__(self, draws: list[float]):
        super().__init__(0)
        self._draws = list(draws)
        self._cursor = 0

    def next_float(self) -> float:
        value = self._draws[self._cursor % len(self._draws)]
        self._cursor += 1
        return value


def _boid(position=(0.0, 0.0, 0.0), direction=(1.0, 0.0, 0.0), speed: float = 10.0) -> Boid:
    heading = Vector3(direction)
    return Boid(id=0, position=Vector3(position), direction=heading, velocity=heading * speed)


def _view(boid_id: int, position, direction=(1.0, 0.0, 0.0), radius: float = 15.0) -> BoidView:
    heading = Vector3(direction)
    return BoidView(id=boid_id, position=Vector3(position), direction=heading, velocity=heading * 10.0, radius=radius)


def test_empty_neighborhood_leaves_only_wander():
    boid = _boid()
    forces = steering.apply_steering(boid, [], 1.0 / 60.0, ScriptedRng([0.5]))

    assert forces.separation == Vector3()
    assert forces.alignment == Vector3()
    assert forces.cohesion == Vector3()
    # A mid-range draw leaves the wander angle at 0, so cos = 1 on every axis.
    assert boid.wander_angle == approx(0.0)
    expected = Vector3(3.0, 1.0, 1.0) * (5.0 / math.sqrt(11.0))
    assert forces.wander.x == approx(expected.x)
    assert forces.wander.y == approx(expected.y)
    assert forces.wander.z == approx(expected.z)


def test_wander_offset_lies_on_the_diagonal():
    boid = _boid(direction=(0.0, 0.0, 0.0))
    force = steering.wander(boid, ScriptedRng([0.9]))

    assert boid.wander_angle == approx(0.1 * (0.9 * 4.0 * math.pi - 2.0 * math.pi))
    assert force.x == approx(force.y)
    assert force.y == approx(force.z)
    assert force.length() == approx(5.0)


def test_wander_angle_is_an_unbounded_random_walk():
    boid = _boid()
    rng = ScriptedRng([0.99])
    for _ in range(100):
        steering.wander(boid, rng)
    assert boid.wander_angle > 2.0 * math.pi


def test_cohesion_with_one_neighbor_points_at_it():
    boid = _boid()
    force = steering.cohesion(boid, [_view(1, (3.0, 4.0, 0.0))])

    assert force.x == approx(0.6 * 4.0)
    assert force.y == approx(0.8 * 4.0)
    assert force.z == approx(0.0)


def test_cohesion_toward_own_position_is_zero():
    boid = _boid(position=(1.0, 1.0, 1.0))
    neighbors = [_view(1, (0.0, 1.0, 1.0)), _view(2, (2.0, 1.0, 1.0))]

    assert steering.cohesion(boid, neighbors) == Vector3()


def test_separation_is_symmetric_and_grows_when_closer():
    a = _boid(position=(0.0, 0.0, 0.0))
    b = _boid(position=(20.0, 0.0, 0.0))

    push_a = steering.separation(a, [BoidView.of(b)])
    push_b = steering.separation(b, [BoidView.of(a)])

    # Overlapping radii floor the gap at 0.001: weight = 0.0001 * 30 / 0.001.
    assert push_a.x == approx(-3.0)
    assert push_b.x == approx(3.0)
    assert push_a.y == approx(0.0) and push_a.z == approx(0.0)

    far = steering.separation(a, [_view(1, (40.0, 0.0, 0.0))])
    near = steering.separation(a, [_view(1, (35.0, 0.0, 0.0))])
    assert far.x < 0.0 and near.x < 0.0
    assert near.length() > far.length()
    assert far.length() == approx(0.0001 * 30.0 / 10.0)


def test_alignment_normalizes_summed_headings():
    boid = _boid()
    force = steering.alignment(boid, [_view(1, (5.0, 0.0, 0.0), (1, 0, 0)), _view(2, (0.0, 0.0, 5.0), (0, 0, 1))])

    assert force.x == approx(5.0 / math.sqrt(2.0))
    assert force.y == approx(0.0)
    assert force.z == approx(5.0 / math.sqrt(2.0))


def test_alignment_with_opposed_headings_is_zero():
    boid = _boid()
    neighbors = [_view(1, (5.0, 0.0, 0.0), (1, 0, 0)), _view(2, (0.0, 0.0, 5.0), (-1, 0, 0))]

    assert steering.alignment(boid, neighbors) == Vector3()


def test_combined_force_is_damped_vertically_and_capped():
    boid = _boid()
    neighbors = [_view(1, (2.0, 9.0, 1.0), (0, 1, 0)), _view(2, (-3.0, 6.0, 4.0), (0, 0, 1))]
    dt = 0.02

    forces = steering.apply_steering(boid, neighbors, dt, ScriptedRng([0.3]))

    total = forces.wander + forces.separation + forces.alignment + forces.cohesion
    damped = Vector3(total.x * dt, total.y * dt * 0.1, total.z * dt)
    expected = damped.normalize() * 0.1
    assert forces.steering.x == approx(expected.x)
    assert forces.steering.y == approx(expected.y)
    assert forces.steering.z == approx(expected.z)
    assert forces.steering.length() == approx(0.1)


@pytest.mark.parametrize(
    "direction,speed",
    [((1.0, 0.0, 0.0), 10.0), ((0.3, 0.0, -0.7), 0.76), ((0.0, 1.0, 0.0), 4.0), ((-0.2, 0.1, 0.9), 25.0)],
)
def test_speed_saturates_to_max_speed(direction, speed):
    boid = _boid(direction=direction, speed=speed)
    neighbors = [_view(1, (4.0, 1.0, -2.0), (0, 0, 1)), _view(2, (-6.0, 0.5, 3.0), (1, 0, 0))]

    steering.apply_steering(boid, neighbors, 1.0 / 60.0, ScriptedRng([0.17]))

    assert boid.velocity.length() == approx(10.0)
    assert boid.direction.length() == approx(1.0)
    assert boid.direction.x == approx(boid.velocity.x / 10.0)


def test_zero_dt_keeps_heading_and_speed():
    boid = _boid(direction=(0.6, 0.0, 0.8), speed=3.0)

    forces = steering.apply_steering(boid, [_view(1, (5.0, 0.0, 0.0))], 0.0, ScriptedRng([0.8]))

    assert forces.steering == Vector3()
    assert boid.velocity.x == approx(6.0)
    assert boid.velocity.z == approx(8.0)


def test_fully_degenerate_state_stays_finite():
    boid = _boid(direction=(0.0, 0.0, 0.0), speed=0.0)
    # cos(angle) == 0 makes the wander offset vanish along with everything else.
    boid.wander_angle = math.pi / 2.0

    steering.apply_steering(boid, [], 0.0, ScriptedRng([0.5]))

    for value in (*boid.velocity, *boid.direction):
        assert math.isfinite(value)
    assert boid.velocity == Vector3()
