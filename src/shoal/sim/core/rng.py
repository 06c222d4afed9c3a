from __future__ import annotations

import math
import random

from pygame.math import Vector3


class DeterministicRng:
    """Seeded random source owned by a World and handed to every boid."""

    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self.next_float() * (high - low) + low

    def next_angle_step(self, scale: float) -> float:
        return scale * self.next_range(-2.0 * math.pi, 2.0 * math.pi)

    def next_point_in_box(self, half_extent: float) -> Vector3:
        return Vector3(
            self.next_range(-half_extent, half_extent),
            self.next_range(-half_extent, half_extent),
            self.next_range(-half_extent, half_extent),
        )

    def next_horizontal_direction(self) -> Vector3:
        x = self.next_range(-1.0, 1.0)
        z = self.next_range(-1.0, 1.0)
        return Vector3(x, 0.0, z)
