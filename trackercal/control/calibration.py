"""Per-tracker calibration state and correction application."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..math3d.angles import ANGLE_TOLERANCE_RAD, angles_approx_equal, yaw_rad
from ..math3d.directions import nearest_direction
from ..math3d.quaternion import identity, q_mul, q_mul_all

_QUATERNION_FIELDS = (
    "full_reset_fix",
    "yaw_reset_fix",
    "mounting_fix",
    "mounting_orientation",
    "world_fix_mounting",
)


@dataclass(frozen=True, slots=True)
class CalibrationState:
    """Corrections established by the reset operations.

    full_reset_fix:
      World-frame correction from the last full reset (tilt + heading).
    yaw_reset_fix:
      World-frame heading correction from the last yaw reset.
    mounting_fix:
      Sensor-frame yaw found by the last mounting reset, relative to
      mounting_orientation.
    mounting_orientation:
      Manually assigned mounting direction, applied to the raw sample.
    world_fix_mounting:
      Yaw of mounting_orientation * mounting_fix at the time the world fixes
      were last derived. Mounting resets measure against it.
    needs_reset / needs_mounting:
      True until the first full / mounting reset.

    Instances are never mutated; resets build a new state. The arrays are
    private read-only copies.
    """

    full_reset_fix: np.ndarray = field(default_factory=identity)
    yaw_reset_fix: np.ndarray = field(default_factory=identity)
    mounting_fix: np.ndarray = field(default_factory=identity)
    mounting_orientation: np.ndarray = field(default_factory=identity)
    world_fix_mounting: np.ndarray = field(default_factory=identity)
    needs_reset: bool = True
    needs_mounting: bool = True

    def __post_init__(self):
        for name in _QUATERNION_FIELDS:
            arr = np.array(getattr(self, name), dtype=np.float64).reshape(4)
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)

    @property
    def mount_rot_fix(self) -> np.ndarray:
        return self.mounting_fix

    @property
    def effective_mounting(self) -> np.ndarray:
        """Total sensor-frame yaw: assigned orientation then reset result."""
        return q_mul(self.mounting_orientation, self.mounting_fix)


def apply_correction(raw: np.ndarray, state: CalibrationState) -> np.ndarray:
    """corrected = yaw_reset_fix * full_reset_fix * (raw * mounting_orientation) * mounting_fix"""
    return q_mul_all(
        state.yaw_reset_fix,
        state.full_reset_fix,
        raw,
        state.mounting_orientation,
        state.mounting_fix,
    )


def mounting_direction(
    state: CalibrationState, tolerance: float = ANGLE_TOLERANCE_RAD
) -> Optional[str]:
    """Canonical name of the effective mounting, None for custom."""
    return nearest_direction(state.effective_mounting, tolerance)


def is_mounting_overridden(
    state: CalibrationState, tolerance: float = ANGLE_TOLERANCE_RAD
) -> bool:
    """True when a mounting reset moved the effective mounting away from the assigned one."""
    assigned = nearest_direction(state.mounting_orientation, tolerance)
    if assigned is not None and assigned == mounting_direction(state, tolerance):
        return False
    return not angles_approx_equal(
        yaw_rad(state.mounting_orientation),
        yaw_rad(state.effective_mounting),
        tolerance,
    )
