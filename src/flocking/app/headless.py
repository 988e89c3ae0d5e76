from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional, Sequence

from ..sim.core.config import ConfigError, SimulationConfig, validate_config
from ..sim.core.world import FlockingSystem
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "interactions",
    "avg_speed",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "interactions",
    "avg_speed",
    "tick_ms",
    "min_speed",
    "max_speed",
    "centroid_x",
    "centroid_y",
    "spread",
    "interactions_per_boid",
    "tick_ms_per_boid",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.interactions,
        f"{metrics.average_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(system: FlockingSystem, metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        min_speed = 0.0
        max_speed = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
        spread = 0.0
        interactions_per_boid = 0.0
        tick_ms_per_boid = 0.0
    else:
        speeds = system.speeds()
        min_speed = min(speeds)
        max_speed = max(speeds)
        positions = system.positions()
        centroid_x = sum(p.x for p in positions) / population
        centroid_y = sum(p.y for p in positions) / population
        spread = sum(math.hypot(p.x - centroid_x, p.y - centroid_y) for p in positions) / population
        interactions_per_boid = metrics.interactions / population
        tick_ms_per_boid = tick_ms / population

    return [
        *_format_basic_row(metrics, tick_ms),
        f"{min_speed:.4f}",
        f"{max_speed:.4f}",
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        f"{spread:.4f}",
        f"{interactions_per_boid:.4f}",
        f"{tick_ms_per_boid:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def build_config(
    config_path: Optional[Path] = None,
    seed: Optional[int] = None,
    boid_count: Optional[int] = None,
    size: Optional[Sequence[float]] = None,
) -> SimulationConfig:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if boid_count is not None:
        config.boid_count = boid_count
    if size is not None:
        config.width, config.height = float(size[0]), float(size[1])
    return validate_config(config)


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 500,
    config_path: Optional[Path] = None,
    boid_count: Optional[int] = None,
    size: Optional[Sequence[float]] = None,
) -> FlockingSystem:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    config = build_config(config_path, seed=seed, boid_count=boid_count, size=size)
    if config.debug:
        logging.getLogger("flocking").setLevel(logging.DEBUG)
    system = FlockingSystem(config)
    logger.info(
        "running %d ticks with %d boids in %.0fx%.0f (seed %d)",
        steps,
        system.boid_count,
        system.width,
        system.height,
        config.seed,
    )

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    speed_series: list[float] = []
    interaction_series: list[float] = []
    max_tick_ms = (-1.0, -1)
    max_interactions = (-1, -1)

    try:
        for _ in range(steps):
            metrics = system.update()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                speed_series.append(metrics.average_speed)
                interaction_series.append(float(metrics.interactions))
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, metrics.tick)
                if metrics.interactions > max_interactions[0]:
                    max_interactions = (metrics.interactions, metrics.tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(system, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "boid_count": system.boid_count,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "average_speed": _summary_stats(speed_series),
            "interactions": _summary_stats(interaction_series),
            "over_threshold": {
                "tick_ms_gt_16": sum(1 for value in tick_ms_series if value > 16.7),
                "tick_ms_gt_33": sum(1 for value in tick_ms_series if value > 33.3),
            },
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "interactions": {"value": max_interactions[0], "tick": max_interactions[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "average_speed": _summary_stats(speed_series[tail_slice]),
                "interactions": _summary_stats(interaction_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
        logger.info("wrote summary to %s", summary_path)

    return system


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--steps", type=int, default=100)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("-c", "--config", type=Path, default=None, help="YAML file to read simulation parameters from")
    parser.add_argument("-b", "--boid-count", type=int, default=None, help="Number of boids to simulate")
    parser.add_argument(
        "-s",
        "--size",
        type=float,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=None,
        help="Simulation space width and height",
    )
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file to write summary stats for the run.")
    parser.add_argument("--summary-window", type=int, default=500, help="Tail window size (ticks) for summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Log at debug level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        run_headless(
            args.steps,
            args.seed,
            args.log,
            deterministic_log=args.deterministic_log,
            log_format=args.log_format,
            summary_path=args.summary,
            summary_window=args.summary_window,
            config_path=args.config,
            boid_count=args.boid_count,
            size=args.size,
        )
    except (ConfigError, OSError) as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
