from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import List

from pygame.math import Vector2

from .boid import Boid
from .config import FlockingConfig, SimulationConfig
from .pointer import PointerInfluence, PointerPolarity
from .rng import DeterministicRng, RandomSource
from ..systems import metrics as metrics_system, steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import _f32, _rotated

logger = logging.getLogger(__name__)

_TWO_PI = 2.0 * math.pi


class FlockingSystem:
    """
    Owns the flock and advances it one fixed tick at a time.

    Every force of a tick is computed against the flock as it stood at the
    start of the tick; only then are the forces applied.
    """

    def __init__(self, config: SimulationConfig, rng: RandomSource | None = None):
        self._config = config
        self._rules: FlockingConfig = config.flocking
        self._width = _f32(config.width)
        self._height = _f32(config.height)
        self._rng: RandomSource = rng if rng is not None else DeterministicRng(config.seed)
        self._boids: List[Boid] = []
        self._pointer = PointerInfluence()
        self._forces: List[Vector2] = []
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self.add_boids(config.boid_count)

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def boid_count(self) -> int:
        return len(self._boids)

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def add_boids(self, count: int) -> None:
        for _ in range(count):
            position = self._random_position()
            velocity = self._random_velocity()
            self._boids.append(Boid(position=position, velocity=velocity))
        if count:
            logger.debug("added %d boids, flock size %d", count, len(self._boids))

    def resize(self, width: float, height: float) -> None:
        self._width = _f32(width)
        self._height = _f32(height)

    def randomise(self) -> None:
        for boid in self._boids:
            boid.position = self._random_position()
            boid.velocity = self._random_velocity()

    def centralise(self) -> None:
        center_x = self._width / 2.0
        center_y = self._height / 2.0
        for boid in self._boids:
            boid.position = Vector2(center_x, center_y)
            boid.velocity = self._random_velocity()

    def zeroise(self) -> None:
        for boid in self._boids:
            boid.position = Vector2()
            boid.velocity = self._random_velocity()

    def set_mouse(self, x: float, y: float) -> None:
        self._pointer.target = Vector2(_f32(x), _f32(y))

    def enable_mouse_attraction(self) -> None:
        self._pointer.polarity = PointerPolarity.ATTRACT

    def enable_mouse_repulsion(self) -> None:
        self._pointer.polarity = PointerPolarity.REPEL

    def positions(self) -> List[Vector2]:
        return [Vector2(boid.position) for boid in self._boids]

    def speeds(self) -> List[float]:
        return [boid.velocity.length() for boid in self._boids]

    def update(self) -> TickMetrics:
        start = perf_counter()
        boids = self._boids
        rules = self._rules
        pointer = self._pointer
        forces = self._forces
        forces.clear()
        interactions = 0

        for index in range(len(boids)):
            force, engaged = steering.compute_force(boids, index, rules, pointer)
            forces.append(force)
            interactions += engaged

        max_speed = rules.max_speed
        width = self._width
        height = self._height
        for boid, force in zip(boids, forces):
            boid.apply_force(force, max_speed)
            boid.wrap_to(width, height)

        self._tick += 1
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(self._tick, boids, interactions, duration_ms)
        return self._metrics

    def snapshot(self) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(self._tick, self._boids, 0, 0.0)
        return Snapshot(
            tick=self._tick,
            metrics=metrics,
            boids=[{"x": position.x, "y": position.y} for position in self.positions()],
            world=SnapshotWorld(width=self._width, height=self._height),
            metadata=SnapshotMetadata(
                seed=self._config.seed,
                boid_size=self._config.boid_size,
                max_speed=self._rules.max_speed,
                config_version=self._config.config_version,
            ),
        )

    def _random_position(self) -> Vector2:
        x = self._rng.next_range(0.0, self._width)
        y = self._rng.next_range(0.0, self._height)
        return Vector2(_f32(x), _f32(y))

    def _random_velocity(self) -> Vector2:
        speed = self._rng.next_range(0.0, self._rules.max_speed)
        heading = self._rng.next_range(0.0, _TWO_PI)
        return _rotated(Vector2(0.0, speed), heading)
