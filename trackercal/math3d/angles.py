"""Angle helpers for yaw comparison in radians."""

from __future__ import annotations

import math

import numpy as np

from .quaternion import q_yaw

TWO_PI = 2.0 * math.pi

# Default tolerance for "equal up to yaw".
ANGLE_TOLERANCE_RAD = 1.5e-3


def pos_rad(angle: float) -> float:
    """Reduce an angle into [0, 2pi)."""
    a = math.fmod(float(angle), TWO_PI)
    if a < 0.0:
        a += TWO_PI
    if a >= TWO_PI:
        a = 0.0
    return a


def angle_diff_rad(a: float, b: float) -> float:
    """Signed shortest difference a - b in [-pi, pi)."""
    return (a - b + math.pi) % TWO_PI - math.pi


def yaw_rad(q: np.ndarray) -> float:
    """YZX yaw of q in [0, 2pi)."""
    return pos_rad(q_yaw(q))


def _approx(a: float, b: float, tol: float) -> bool:
    return abs(a - b) <= tol


def angles_approx_equal(a: float, b: float, tol: float = ANGLE_TOLERANCE_RAD) -> bool:
    """Equality for angles in [0, 2pi), including across the 0/2pi seam."""
    return (
        _approx(a, b, tol)
        or _approx(a - TWO_PI, b, tol)
        or _approx(a, b - TWO_PI, tol)
    )


def vec_heading_rad(v: np.ndarray) -> float:
    """
    Heading of a vector in (x right, y up, z front):
      atan2(x, z) => 0=forward, +pi/2=right
    """
    return math.atan2(float(v[0]), float(v[2]))


def horizontal_norm(v: np.ndarray) -> float:
    x, z = float(v[0]), float(v[2])
    return math.sqrt(x * x + z * z)
