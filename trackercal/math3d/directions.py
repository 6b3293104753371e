"""Canonical mounting directions at 45 degree yaw steps."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .angles import ANGLE_TOLERANCE_RAD, angle_diff_rad, yaw_rad
from .quaternion import yaw_to_q

# Yaw in degrees, +90 = right.
DIRECTION_YAW_DEG = {
    "front": 0.0,
    "front_right": 45.0,
    "right": 90.0,
    "back_right": 135.0,
    "back": 180.0,
    "back_left": 225.0,
    "left": 270.0,
    "front_left": 315.0,
}

DIRECTION_NAMES = tuple(DIRECTION_YAW_DEG)


def direction_q(name: str) -> np.ndarray:
    key = name.strip().lower().replace("-", "_")
    if key not in DIRECTION_YAW_DEG:
        raise ValueError(
            f"unknown direction {name!r}, expected one of {'|'.join(DIRECTION_NAMES)}"
        )
    return yaw_to_q(math.radians(DIRECTION_YAW_DEG[key]))


FRONT = direction_q("front")
FRONT_RIGHT = direction_q("front_right")
RIGHT = direction_q("right")
BACK_RIGHT = direction_q("back_right")
BACK = direction_q("back")
BACK_LEFT = direction_q("back_left")
LEFT = direction_q("left")
FRONT_LEFT = direction_q("front_left")


def nearest_direction(
    q: np.ndarray, tolerance: float = ANGLE_TOLERANCE_RAD
) -> Optional[str]:
    """Name of the canonical direction matching q's yaw, None for custom."""
    yaw = yaw_rad(q)
    best_name = None
    best_err = math.inf
    for name, deg in DIRECTION_YAW_DEG.items():
        err = abs(angle_diff_rad(yaw, math.radians(deg)))
        if err < best_err:
            best_name, best_err = name, err
    if best_err > tolerance:
        return None
    return best_name
