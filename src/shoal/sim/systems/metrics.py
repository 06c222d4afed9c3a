from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from ..types.metrics import FrameMetrics

if TYPE_CHECKING:
    from ..core.agent import Boid


def polarization(boids: Sequence[Boid]) -> float:
    """Length of the mean heading: 1.0 when every boid points the same way."""
    if not boids:
        return 0.0
    sum_x = 0.0
    sum_y = 0.0
    sum_z = 0.0
    for boid in boids:
        direction = boid.direction
        length = direction.length()
        if length < 1e-12:
            continue
        sum_x += direction.x / length
        sum_y += direction.y / length
        sum_z += direction.z / length
    inv = 1.0 / len(boids)
    return math.sqrt(sum_x * sum_x + sum_y * sum_y + sum_z * sum_z) * inv


def create_metrics(
    tick: int,
    boids: Sequence[Boid],
    neighbor_checks: int,
    neighbors_seen: int,
    wraps: int,
    dt: float,
    duration_ms: float,
) -> FrameMetrics:
    population = len(boids)
    if population:
        average_speed = sum(boid.velocity.length() for boid in boids) / population
        average_neighbors = neighbors_seen / population
    else:
        average_speed = 0.0
        average_neighbors = 0.0
    return FrameMetrics(
        tick=tick,
        population=population,
        neighbor_checks=neighbor_checks,
        average_neighbors=average_neighbors,
        average_speed=average_speed,
        polarization=polarization(boids),
        wraps=wraps,
        dt=dt,
        tick_duration_ms=duration_ms,
    )
