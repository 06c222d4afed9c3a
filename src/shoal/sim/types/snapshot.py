from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import FrameMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: FrameMetrics
    boids: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    bound: float
    spawn_box_range: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    neighbor_index: str
    synchronized_updates: bool
    config_version: str
