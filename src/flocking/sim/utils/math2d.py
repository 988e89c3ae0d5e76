"""
Vector helpers for the flocking engine.

All results are float32 values held in ``Vector2``'s doubles: inputs are cast
to ``numpy.float32`` and every operation runs in single precision, so the
clamping thresholds behave as they do in 32-bit arithmetic.
"""
from __future__ import annotations

import numpy as np
from pygame.math import Vector2

_float32 = np.float32
_FLOAT32_MAX = float(np.finfo(np.float32).max)


def _f32(value: float) -> float:
    return float(_float32(value))


def _f32_vector(vector: Vector2) -> Vector2:
    return Vector2(_f32(vector.x), _f32(vector.y))


def _fits_float32(value: float) -> bool:
    """True when `value` is finite and stays finite once cast to float32.

    NaN fails the comparison, and ints are compared exactly, so huge ones never overflow.
    """
    return abs(value) <= _FLOAT32_MAX


def _magnitude2(vector: Vector2) -> float:
    x = _float32(vector.x)
    y = _float32(vector.y)
    return float(x * x + y * y)


def _normalize_to(vector: Vector2, length: float) -> Vector2:
    """Return `vector` rescaled to `length`; a zero vector comes back as a new zero vector."""
    x, y = _normalize_to_xy(vector.x, vector.y, length)
    return Vector2(x, y)


def _normalize_to_xy(x: float, y: float, length: float) -> tuple[float, float]:
    x32 = _float32(x)
    y32 = _float32(y)
    magnitude_sq = x32 * x32 + y32 * y32
    if magnitude_sq == 0.0:
        return 0.0, 0.0
    scale = _float32(length) / np.sqrt(magnitude_sq)
    return float(x32 * scale), float(y32 * scale)


def _limit(vector: Vector2, max_length: float) -> Vector2:
    x, y = _limit_xy(vector.x, vector.y, max_length)
    return Vector2(x, y)


def _limit_xy(x: float, y: float, max_length: float) -> tuple[float, float]:
    x32 = _float32(x)
    y32 = _float32(y)
    limit = _float32(max_length)
    if x32 * x32 + y32 * y32 > limit * limit:
        return _normalize_to_xy(x, y, max_length)
    return float(x32), float(y32)


def _rotated(vector: Vector2, angle: float) -> Vector2:
    # counter-clockwise, radians
    return _f32_vector(vector.rotate_rad(angle))
