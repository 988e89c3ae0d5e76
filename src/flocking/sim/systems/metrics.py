from __future__ import annotations

import math
from typing import Sequence

from ..core.boid import Boid
from ..types.metrics import TickMetrics


def average_speed(boids: Sequence[Boid]) -> float:
    if not boids:
        return 0.0
    return sum(math.hypot(boid.velocity.x, boid.velocity.y) for boid in boids) / len(boids)


def create_metrics(tick: int, boids: Sequence[Boid], interactions: int, duration_ms: float) -> TickMetrics:
    return TickMetrics(
        tick=tick,
        population=len(boids),
        interactions=interactions,
        average_speed=average_speed(boids),
        tick_duration_ms=duration_ms,
    )
