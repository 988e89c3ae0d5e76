from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector2

from ..core.boid import Boid
from ..core.config import FlockingConfig
from ..core.pointer import PointerInfluence, PointerPolarity
from ..utils.math2d import _f32, _f32_vector, _limit, _normalize_to_xy


def steer(velocity: Vector2, target_velocity: Vector2, max_force: float) -> Vector2:
    return _limit(target_velocity - velocity, max_force)


def react_to_neighbours(boids: Sequence[Boid], index: int, config: FlockingConfig) -> tuple[Vector2, int]:
    """
    Steering force for `boids[index]` from separation, alignment and cohesion.

    Reads every other boid as it is now, so callers must not mutate the
    sequence until every force of the tick has been computed. Also returns the
    number of neighbours that engaged at least one rule.
    """

    boid = boids[index]
    pos_x = boid.position.x
    pos_y = boid.position.y
    sep_radius_sq = _f32(config.sep_radius * config.sep_radius)
    ali_radius_sq = _f32(config.ali_radius * config.ali_radius)
    coh_radius_sq = _f32(config.coh_radius * config.coh_radius)

    dodge_x = dodge_y = 0.0
    ali_x = ali_y = 0.0
    ali_count = 0
    coh_x = coh_y = 0.0
    coh_count = 0
    interactions = 0

    for j, other in enumerate(boids):
        if j == index:
            continue
        other_pos = other.position
        from_x = pos_x - other_pos.x
        from_y = pos_y - other_pos.y
        dist_sq = _f32(from_x * from_x + from_y * from_y)
        if dist_sq == 0.0:
            continue
        engaged = False
        if dist_sq < sep_radius_sq:
            # Weight falls off with distance, not distance squared.
            push_x, push_y = _normalize_to_xy(from_x, from_y, 1.0 / math.sqrt(dist_sq))
            dodge_x += push_x
            dodge_y += push_y
            engaged = True
        if dist_sq < ali_radius_sq:
            ali_x += other.velocity.x
            ali_y += other.velocity.y
            ali_count += 1
            engaged = True
        if dist_sq < coh_radius_sq:
            coh_x += other_pos.x
            coh_y += other_pos.y
            coh_count += 1
            engaged = True
        if engaged:
            interactions += 1

    velocity = boid.velocity
    max_speed = config.max_speed
    max_force = config.max_force
    force = Vector2()

    if dodge_x * dodge_x + dodge_y * dodge_y > 0.0:
        target = Vector2(_normalize_to_xy(dodge_x, dodge_y, max_speed))
        force += config.sep_weight * steer(velocity, target, max_force)

    if ali_count > 0:
        target = Vector2(_normalize_to_xy(ali_x / ali_count, ali_y / ali_count, max_speed))
        force += config.ali_weight * steer(velocity, target, max_force)

    if coh_count > 0:
        target = Vector2(_normalize_to_xy(coh_x / coh_count - pos_x, coh_y / coh_count - pos_y, max_speed))
        force += config.coh_weight * steer(velocity, target, max_force)

    return _f32_vector(force), interactions


def pointer_force(position: Vector2, pointer: PointerInfluence, mouse_weight: float) -> Vector2:
    """Pull toward (or push away from) the pointer with inverse-square falloff."""
    if not pointer.active:
        return Vector2()
    to_x = _f32(pointer.target.x - position.x)
    to_y = _f32(pointer.target.y - position.y)
    dist_sq = _f32(to_x * to_x + to_y * to_y)
    if dist_sq == 0.0:
        return Vector2()
    strength = _f32(mouse_weight / dist_sq)
    if pointer.polarity is PointerPolarity.REPEL:
        strength = -strength
    x, y = _normalize_to_xy(to_x, to_y, strength)
    return Vector2(x, y)


def compute_force(
    boids: Sequence[Boid],
    index: int,
    config: FlockingConfig,
    pointer: PointerInfluence,
) -> tuple[Vector2, int]:
    force, interactions = react_to_neighbours(boids, index, config)
    if pointer.active and config.mouse_weight > 0.0:
        force = _f32_vector(force + pointer_force(boids[index].position, pointer, config.mouse_weight))
    return force, interactions
