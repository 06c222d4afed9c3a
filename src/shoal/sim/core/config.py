from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

NEIGHBOR_INDEX_KINDS = ("linear", "grid")


@dataclass(frozen=True)
class BoidConfig:
    radius: float = 15.0
    acceleration: float = 1.0
    max_speed: float = 10.0
    max_steering_force: float = 0.1
    wander_force: float = 5.0
    wander_step: float = 0.1
    separation_force: float = 0.0001
    alignment_force: float = 5.0
    cohesion_force: float = 4.0
    # Vertical steering is heavily damped to keep the flock mostly horizontal.
    steering_damping: tuple[float, float, float] = (1.0, 0.1, 1.0)
    min_gap: float = 0.001


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    agent_count: int = 1000
    spawn_box_range: float = 150.0
    world_bound: float = 300.0
    seed: int = 42
    neighbor_index: str = "linear"
    cell_size: float = 30.0
    synchronized_updates: bool = False
    config_version: str = "v1"
    boid: BoidConfig = field(default_factory=BoidConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        logger.debug("Loaded simulation config from %s", path)
        return load_config(data)

    def validate(self) -> None:
        if self.agent_count < 0:
            raise ValueError(f"agent_count must be >= 0, got {self.agent_count}")
        if not math.isfinite(self.time_step) or self.time_step < 0.0:
            raise ValueError(f"time_step must be a finite value >= 0, got {self.time_step}")
        if self.spawn_box_range < 0.0:
            raise ValueError(f"spawn_box_range must be >= 0, got {self.spawn_box_range}")
        if self.world_bound <= 0.0:
            raise ValueError(f"world_bound must be > 0, got {self.world_bound}")
        if self.neighbor_index not in NEIGHBOR_INDEX_KINDS:
            raise ValueError(f"Unknown neighbor index: {self.neighbor_index}")
        if self.cell_size <= 0.0:
            raise ValueError(f"cell_size must be > 0, got {self.cell_size}")
        boid = self.boid
        if boid.radius <= 0.0:
            raise ValueError(f"boid.radius must be > 0, got {boid.radius}")
        if boid.max_speed <= 0.0:
            raise ValueError(f"boid.max_speed must be > 0, got {boid.max_speed}")
        if boid.min_gap <= 0.0:
            raise ValueError(f"boid.min_gap must be > 0, got {boid.min_gap}")
        if len(boid.steering_damping) != 3:
            raise ValueError("boid.steering_damping needs exactly three components")


def load_config(raw: dict) -> SimulationConfig:
    default_boid = BoidConfig()
    boid_raw = dict(raw.get("boid", {}))

    def _triple(value: tuple[float, ...] | list[float] | None, default: tuple[float, float, float]) -> tuple[float, float, float]:
        if isinstance(value, (tuple, list)) and len(value) == 3:
            return (float(value[0]), float(value[1]), float(value[2]))
        return default

    boid_raw["steering_damping"] = _triple(boid_raw.get("steering_damping"), default_boid.steering_damping)
    boid = BoidConfig(**boid_raw)
    sim_values = {k: v for k, v in raw.items() if k != "boid"}
    return SimulationConfig(boid=boid, **sim_values)
