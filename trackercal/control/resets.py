"""Reset operations deriving new calibration state from a raw reading.

All functions are pure: they take the current raw orientation and state and
return a new CalibrationState. The caller swaps it in atomically.

Geometry contract:
  corrected = yaw_reset_fix * full_reset_fix * (raw * mounting_orientation) * mounting_fix
  full/yaw fixes act in the world frame (left), mounting in the sensor frame
  (right). Yaw is read with the YZX decomposition.
"""

from __future__ import annotations

import logging
from dataclasses import replace

import numpy as np

from ..math3d.angles import horizontal_norm, vec_heading_rad
from ..math3d.quaternion import (
    UP,
    identity,
    is_valid_quaternion,
    q_inv,
    q_mul,
    q_mul_all,
    q_normalize,
    q_rotate_vec,
    q_yaw,
    q_yaw_only,
    yaw_to_q,
)
from .calibration import CalibrationState
from .errors import InvalidReferenceOrientation

logger = logging.getLogger(__name__)

# Below this the up axis is considered vertical and carries no heading.
_MIN_TILT_HORIZONTAL = 1e-6


def validate_reference(reference, norm_tolerance: float = 1e-3) -> np.ndarray:
    """Return reference as a normalized quaternion or raise."""
    if reference is None:
        return identity()
    try:
        q = np.asarray(reference, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as exc:
        raise InvalidReferenceOrientation(f"reference is not numeric: {reference!r}") from exc
    if not is_valid_quaternion(q, norm_tolerance):
        raise InvalidReferenceOrientation(
            f"reference must be a finite unit quaternion [w, x, y, z], got {q.tolist()}"
        )
    return q_normalize(q)


def reset_full(
    raw: np.ndarray, state: CalibrationState, reference: np.ndarray
) -> CalibrationState:
    """Make the current reading map to the reference heading with no tilt.

    Supersedes any yaw reset. Mounting is kept and folded into the fix so the
    corrected output right after the call is exactly yaw(reference).
    """
    mounting = state.effective_mounting
    full_fix = q_mul(q_yaw_only(reference), q_inv(q_mul(raw, mounting)))
    return replace(
        state,
        full_reset_fix=q_normalize(full_fix),
        yaw_reset_fix=identity(),
        world_fix_mounting=q_yaw_only(mounting),
        needs_reset=False,
    )


def reset_yaw(
    raw: np.ndarray, state: CalibrationState, reference: np.ndarray
) -> CalibrationState:
    """Replace the heading correction so corrected yaw equals yaw(reference).

    full_reset_fix and the mounting are held fixed; only yaw of reference is used.
    """
    mounting = state.effective_mounting
    without_yaw = q_mul_all(state.full_reset_fix, raw, mounting)
    yaw_fix = q_mul(q_yaw_only(reference), q_inv(q_yaw_only(without_yaw)))
    return replace(
        state,
        yaw_reset_fix=q_normalize(yaw_fix),
        world_fix_mounting=q_yaw_only(mounting),
    )


def tilt_heading(corrected: np.ndarray) -> float:
    """Heading (rad) the up axis of a corrected orientation leans toward.

    Falls back to the orientation's own yaw when it is not tilted.
    """
    up = q_rotate_vec(corrected, UP)
    if horizontal_norm(up) < _MIN_TILT_HORIZONTAL:
        logger.warning(
            "[MOUNT] tracker is not tilted, using orientation yaw as best-effort heading"
        )
        return q_yaw(corrected)
    return vec_heading_rad(up)


def reset_mounting(
    raw: np.ndarray, state: CalibrationState, reference: np.ndarray
) -> CalibrationState:
    """Derive the sensor's mounting yaw from a tilt toward the body's forward.

    The world fixes are applied together with the mounting they were derived
    with, so the result depends only on raw, the world fixes and reference.
    Repeating the call with the same inputs gives the same mounting_fix.
    Reference gives the expected tilt heading.
    """
    basis = state.world_fix_mounting
    heading = tilt_heading(
        q_mul_all(state.yaw_reset_fix, state.full_reset_fix, raw, basis)
    )
    mounting_yaw = heading - q_yaw(reference) + q_yaw(basis) - q_yaw(state.mounting_orientation)
    return replace(state, mounting_fix=yaw_to_q(mounting_yaw), needs_mounting=False)


def assign_mounting(state: CalibrationState, orientation: np.ndarray) -> CalibrationState:
    """Manually selected mounting direction; a mounting reset result is kept on top."""
    return replace(state, mounting_orientation=q_yaw_only(orientation), needs_mounting=False)


def clear_mounting(state: CalibrationState) -> CalibrationState:
    """Drop the mounting reset result; the assigned orientation stays."""
    return replace(state, mounting_fix=identity(), needs_mounting=True)
