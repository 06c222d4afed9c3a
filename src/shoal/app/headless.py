from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import NEIGHBOR_INDEX_KINDS, SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import FrameMetrics

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "neighbor_checks",
    "avg_neighbors",
    "avg_speed",
    "polarization",
    "wraps",
    "tick_ms",
]


def _format_row(metrics: FrameMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.neighbor_checks,
        f"{metrics.average_neighbors:.4f}",
        f"{metrics.average_speed:.4f}",
        f"{metrics.polarization:.4f}",
        metrics.wraps,
        f"{tick_ms:.3f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * (pos - low))


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p95": 0.0}
    ordered = sorted(values)
    return {
        "min": float(ordered[0]),
        "max": float(ordered[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(ordered, 0.50),
        "p95": _percentile(ordered, 0.95),
    }


def build_config(
    config_path: Optional[Path] = None,
    seed: Optional[int] = None,
    agents: Optional[int] = None,
    index: Optional[str] = None,
    synchronized: bool = False,
) -> SimulationConfig:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if agents is not None:
        config.agent_count = agents
    if index is not None:
        config.neighbor_index = index
    if synchronized:
        config.synchronized_updates = True
    return config


def run_headless(
    frames: int,
    config: Optional[SimulationConfig] = None,
    dt: Optional[float] = None,
    log_path: Optional[Path] = None,
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    summary_window: int = 600,
) -> World:
    if frames < 0:
        raise ValueError(f"frames must be >= 0, got {frames}")
    world = World(config if config is not None else SimulationConfig())
    step_dt = world.config.time_step if dt is None else dt

    tick_ms_series: list[float] = []
    neighbor_series: list[float] = []
    polarization_series: list[float] = []
    wraps_total = 0

    csv_file = Path(log_path).open("w", newline="") if log_path else None
    try:
        writer = csv.writer(csv_file) if csv_file else None
        if writer:
            writer.writerow(_HEADER)
        for _ in range(frames):
            metrics = world.step(step_dt)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            neighbor_series.append(metrics.average_neighbors)
            polarization_series.append(metrics.polarization)
            wraps_total += metrics.wraps
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info(
        "Ran %d frames of %d boids; final polarization %.3f",
        frames,
        len(world.boids),
        polarization_series[-1] if polarization_series else 0.0,
    )

    if summary_path:
        window = max(1, int(summary_window))
        tail = slice(max(0, frames - window), frames)
        config = world.config
        summary = {
            "frames": frames,
            "seed": config.seed,
            "dt": step_dt,
            "agents": config.agent_count,
            "neighbor_index": config.neighbor_index,
            "synchronized_updates": config.synchronized_updates,
            "deterministic_log": deterministic_log,
            "wraps": wraps_total,
            "tick_ms": _summary_stats(tick_ms_series),
            "avg_neighbors": _summary_stats(neighbor_series),
            "polarization": _summary_stats(polarization_series),
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail]),
                "avg_neighbors": _summary_stats(neighbor_series[tail]),
                "polarization": _summary_stats(polarization_series[tail]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Headless 3D boids flocking simulation")
    parser.add_argument("--frames", type=int, default=600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--dt", type=float, default=None, help="Seconds per frame (defaults to config time_step).")
    parser.add_argument("--agents", type=int, default=None, help="Override the number of boids.")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--index", choices=list(NEIGHBOR_INDEX_KINDS), default=None)
    parser.add_argument(
        "--synchronized",
        action="store_true",
        help="Update every boid against a start-of-frame snapshot instead of in place.",
    )
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-frame metrics")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file for run summary stats.")
    parser.add_argument("--summary-window", type=int, default=600, help="Tail window size (frames) for summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = build_config(args.config, args.seed, args.agents, args.index, args.synchronized)
    run_headless(
        args.frames,
        config=config,
        dt=args.dt,
        log_path=args.log,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        summary_window=args.summary_window,
    )


if __name__ == "__main__":
    main()
