from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2

from ..utils.math2d import _f32, _limit


@dataclass(slots=True)
class Boid:
    position: Vector2 = field(default_factory=Vector2)
    velocity: Vector2 = field(default_factory=Vector2)

    def apply_force(self, force: Vector2, max_speed: float) -> None:
        velocity = _limit(self.velocity + force, max_speed)
        self.velocity = velocity
        self.position = Vector2(
            _f32(self.position.x + velocity.x),
            _f32(self.position.y + velocity.y),
        )

    def wrap_to(self, width: float, height: float) -> None:
        """Re-enter at the opposite edge.

        This is a clamp, not a modulo: a boid that overshoots an edge lands
        exactly on the opposite bound no matter how far it travelled.
        """
        position = self.position
        if position.x < 0.0:
            position.x = width
        if position.y < 0.0:
            position.y = height
        if position.x > width:
            position.x = 0.0
        if position.y > height:
            position.y = 0.0
