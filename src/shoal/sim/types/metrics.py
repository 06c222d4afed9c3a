from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class FrameMetrics:
    tick: int
    population: int
    neighbor_checks: int
    average_neighbors: float
    average_speed: float
    polarization: float
    wraps: int
    dt: float = 0.0
    tick_duration_ms: float = 0.0
