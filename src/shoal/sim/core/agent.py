from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol, Sequence, runtime_checkable

from pygame.math import Vector3

from .config import BoidConfig
from ..systems import steering
from ..utils.math3d import Basis, identity_basis, look_at

if TYPE_CHECKING:
    from .neighborhood import NeighborhoodIndex
    from .rng import DeterministicRng


@runtime_checkable
class Neighbor(Protocol):
    """State another boid reads when this agent shows up in its neighborhood."""

    @property
    def position(self) -> Vector3: ...

    @property
    def direction(self) -> Vector3: ...

    @property
    def velocity(self) -> Vector3: ...

    @property
    def radius(self) -> float: ...


@runtime_checkable
class Steerable(Neighbor, Protocol):
    def update(self, dt: float) -> int: ...

    def check_bounds(self, max_dist: float = ...) -> bool: ...


@dataclass(frozen=True, slots=True)
class BoidView:
    """Frozen copy of a boid's readable state, taken at the start of a frame."""

    id: int
    position: Vector3
    direction: Vector3
    velocity: Vector3
    radius: float

    @staticmethod
    def of(boid: "Boid") -> "BoidView":
        return BoidView(
            id=boid.id,
            position=boid.position.copy(),
            direction=boid.direction.copy(),
            velocity=boid.velocity.copy(),
            radius=boid.radius,
        )


@dataclass(slots=True)
class Boid:
    id: int
    position: Vector3
    direction: Vector3
    velocity: Vector3
    params: BoidConfig = field(default_factory=BoidConfig)
    tracker: Optional["NeighborhoodIndex"] = field(default=None, repr=False, compare=False)
    rng: Optional["DeterministicRng"] = field(default=None, repr=False, compare=False)
    wander_angle: float = 0.0
    orientation: Basis = field(default_factory=identity_basis)

    @property
    def radius(self) -> float:
        return self.params.radius

    @property
    def acceleration(self) -> float:
        return self.params.acceleration

    @property
    def max_speed(self) -> float:
        return self.params.max_speed

    @property
    def max_steering_force(self) -> float:
        return self.params.max_steering_force

    def update(self, dt: float, tracker: Optional["NeighborhoodIndex"] = None) -> int:
        """
        Advance this boid by `dt` seconds and return how many neighbors it saw.

        Neighbors come from `tracker` when given (a start-of-frame snapshot),
        otherwise from the live index the boid was registered with.
        """

        index = tracker if tracker is not None else self.tracker
        if index is None or self.rng is None:
            raise RuntimeError(f"Boid {self.id} is not attached to a neighborhood index and random source")
        locals_: Sequence[Neighbor] = index.query(self.position, self.radius)
        steering.apply_steering(self, locals_, dt, self.rng)

        self.position += self.velocity * dt
        self.orientation = look_at(self.direction)
        return len(locals_)

    def check_bounds(self, max_dist: float = 300.0) -> bool:
        """Teleport across the world on X and Z; Y is never constrained."""
        position = self.position
        wrapped = False
        if position.x > max_dist:
            position.x = -max_dist
            wrapped = True
        if position.x < -max_dist:
            position.x = max_dist
            wrapped = True
        if position.z > max_dist:
            position.z = -max_dist
            wrapped = True
        if position.z < -max_dist:
            position.z = max_dist
            wrapped = True
        return wrapped
