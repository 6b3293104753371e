import math

import pytest

from trackercal.math3d.angles import yaw_rad
from trackercal.math3d.directions import (
    DIRECTION_NAMES,
    RIGHT,
    direction_q,
    nearest_direction,
)
from trackercal.math3d.quaternion import euler_yzx_to_q, yaw_to_q


def test_eight_directions_at_45_degree_steps():
    yaws = sorted(math.degrees(yaw_rad(direction_q(n))) for n in DIRECTION_NAMES)
    for i, y in enumerate(yaws):
        assert abs(y - 45.0 * i) < 1e-9


def test_right_is_plus_90():
    assert abs(yaw_rad(RIGHT) - math.pi / 2.0) < 1e-12


def test_direction_lookup_accepts_dashes():
    assert abs(yaw_rad(direction_q("Back-Left")) - math.radians(225.0)) < 1e-9


def test_direction_lookup_rejects_unknown():
    with pytest.raises(ValueError, match="unknown direction"):
        direction_q("up")


def test_nearest_direction_ignores_tilt():
    q = euler_yzx_to_q(0.6, math.radians(135.0), 0.1)
    assert nearest_direction(q) == "back_right"


def test_nearest_direction_custom_returns_none():
    assert nearest_direction(yaw_to_q(math.radians(20.0))) is None
