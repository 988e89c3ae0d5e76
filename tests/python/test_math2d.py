from __future__ import annotations

import math

import numpy as np
from pygame.math import Vector2
from pytest import approx

from flocking.sim.utils.math2d import _limit, _magnitude2, _normalize_to, _rotated


def test_normalize_to_zero_vector_stays_zero():
    result = _normalize_to(Vector2(), 5.0)

    assert result == Vector2()
    assert math.isfinite(result.x) and math.isfinite(result.y)


def test_normalize_to_scales_to_requested_length():
    result = _normalize_to(Vector2(3.0, 4.0), 10.0)

    assert result.x == approx(6.0)
    assert result.y == approx(8.0)


def test_normalize_to_negative_length_flips_direction():
    result = _normalize_to(Vector2(0.0, 2.0), -1.0)

    assert result.y == approx(-1.0)


def test_limit_clamps_only_when_longer_than_max():
    short = Vector2(0.3, 0.4)
    long = Vector2(30.0, 40.0)

    assert _limit(short, 1.0) == Vector2(float(np.float32(0.3)), float(np.float32(0.4)))
    assert _limit(short, 1.0) is not short
    assert _limit(long, 1.0).length() == approx(1.0)
    assert _limit(long, 1.0).x == approx(0.6)


def test_limit_keeps_vector_exactly_at_max():
    vector = Vector2(3.0, 4.0)

    assert _limit(vector, 5.0) == vector


def test_magnitude2_and_rotation():
    assert _magnitude2(Vector2(3.0, 4.0)) == approx(25.0)

    rotated = _rotated(Vector2(0.0, 2.0), math.pi / 2)
    assert rotated.x == approx(-2.0)
    assert rotated.y == approx(0.0, abs=1e-12)


def test_limit_threshold_is_compared_in_float32():
    # Over 0.1 as a double, equal to float32(0.1) once rounded: no clamp.
    vector = Vector2(0.1000000005, 0.0)
    assert vector.x > 0.1

    result = _limit(vector, 0.1)

    assert result.x == float(np.float32(0.1))
    assert result.x != 0.1
    assert result.y == 0.0


def test_results_are_float32_values():
    result = _normalize_to(Vector2(1.0, 2.0), 3.0)

    assert result.x == float(np.float32(result.x))
    assert result.y == float(np.float32(result.y))
    rotated = _rotated(Vector2(0.0, 1.0), 1.0)
    assert rotated.x == float(np.float32(rotated.x))
    assert rotated.x == approx(-math.sin(1.0))
