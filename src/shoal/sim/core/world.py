from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List, Optional

from .agent import Boid, BoidView
from .config import SimulationConfig
from .neighborhood import NeighborhoodIndex, build_index
from .rng import DeterministicRng
from ..systems import metrics as metrics_system
from ..types.metrics import FrameMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math3d import basis_to_quaternion, look_at, _yaw_pitch

logger = logging.getLogger(__name__)


class World:
    """
    Owns every boid and the neighborhood index they share.

    By default boids update one after another in registration order and
    mutate in place, so a boid late in the pass sees some neighbors already
    moved this frame. With `synchronized_updates` every boid instead reads a
    start-of-frame copy of its neighbors.
    """

    def __init__(self, config: SimulationConfig, rng: Optional[DeterministicRng] = None):
        config.validate()
        self._config = config
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self._index: NeighborhoodIndex = build_index(config.neighbor_index, config.cell_size)
        self._boids: List[Boid] = []
        self._tick = 0
        self._metrics: FrameMetrics | None = None
        self._bootstrap_flock()

    @property
    def boids(self) -> List[Boid]:
        return self._boids

    @property
    def index(self) -> NeighborhoodIndex:
        return self._index

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> FrameMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._rng.reset()
        self._index = build_index(self._config.neighbor_index, self._config.cell_size)
        self._boids.clear()
        self._tick = 0
        self._metrics = None
        self._bootstrap_flock()

    def step(self, dt: float | None = None) -> FrameMetrics:
        start = perf_counter()
        config = self._config
        if dt is None:
            dt = config.time_step
        if not math.isfinite(dt) or dt < 0.0:
            raise ValueError(f"dt must be a finite value >= 0, got {dt}")

        index = self._index
        index.reset_counters()
        neighbors_seen = 0

        if config.synchronized_updates:
            frozen = build_index(config.neighbor_index, config.cell_size)
            for boid in self._boids:
                frozen.register(BoidView.of(boid))
            for boid in self._boids:
                neighbors_seen += boid.update(dt, tracker=frozen)
            neighbor_checks = frozen.checks
            index.rebuild()
        else:
            for boid in self._boids:
                neighbors_seen += boid.update(dt)
                index.relocate(boid)
            neighbor_checks = index.checks

        wraps = 0
        bound = config.world_bound
        for boid in self._boids:
            if boid.check_bounds(bound):
                wraps += 1
                index.relocate(boid)

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            self._tick, self._boids, neighbor_checks, neighbors_seen, wraps, dt, elapsed_ms
        )
        self._metrics = metrics
        logger.debug(
            "tick=%d neighbors/boid=%.2f polarization=%.3f wraps=%d (%.2f ms)",
            metrics.tick,
            metrics.average_neighbors,
            metrics.polarization,
            metrics.wraps,
            elapsed_ms,
        )
        self._tick += 1
        return metrics

    def snapshot(self) -> Snapshot:
        config = self._config
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(self._tick, self._boids, 0, 0, 0, 0.0, 0.0)
        metadata = SnapshotMetadata(
            sim_dt=config.time_step,
            tick_rate=0.0 if config.time_step <= 0 else 1.0 / config.time_step,
            seed=self._rng.seed,
            neighbor_index=config.neighbor_index,
            synchronized_updates=config.synchronized_updates,
            config_version=config.config_version,
        )
        return Snapshot(
            tick=self._tick,
            metrics=metrics,
            boids=[self._boid_snapshot(boid) for boid in self._boids],
            world=SnapshotWorld(bound=config.world_bound, spawn_box_range=config.spawn_box_range),
            metadata=metadata,
        )

    def _bootstrap_flock(self) -> None:
        config = self._config
        for boid_id in range(config.agent_count):
            position = self._rng.next_point_in_box(config.spawn_box_range)
            direction = self._rng.next_horizontal_direction()
            boid = Boid(
                id=boid_id,
                position=position,
                direction=direction,
                velocity=direction.copy(),
                params=config.boid,
                tracker=self._index,
                rng=self._rng,
            )
            boid.orientation = look_at(boid.direction)
            self._boids.append(boid)
            self._index.register(boid)
        logger.info(
            "Spawned %d boids (index=%s, synchronized=%s, seed=%d)",
            len(self._boids),
            config.neighbor_index,
            config.synchronized_updates,
            self._rng.seed,
        )

    @staticmethod
    def _boid_snapshot(boid: Boid) -> Dict[str, Any]:
        position = boid.position
        velocity = boid.velocity
        direction = boid.direction
        yaw, pitch = _yaw_pitch(direction)
        return {
            "id": boid.id,
            "x": position.x,
            "y": position.y,
            "z": position.z,
            "vx": velocity.x,
            "vy": velocity.y,
            "vz": velocity.z,
            "dx": direction.x,
            "dy": direction.y,
            "dz": direction.z,
            "speed": velocity.length(),
            "yaw": yaw,
            "pitch": pitch,
            "quaternion": basis_to_quaternion(boid.orientation),
            "radius": boid.radius,
        }
