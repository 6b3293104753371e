"""Quaternion utilities for right-handed coordinates.

Axes: x right, y up, z forward. Quaternions are [w, x, y, z].
Euler angles use the YZX order: q = Ry(yaw) * Rz(roll) * Rx(pitch).
"""

from __future__ import annotations

import math

import numpy as np

IDENTITY = np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)
UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)

# |sin(roll)| above this is treated as the YZX gimbal pole.
_GIMBAL_THRESHOLD = 1.0 - 1e-6


def identity() -> np.ndarray:
    return IDENTITY.copy()


def q_normalize(q: np.ndarray) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    n = float(np.linalg.norm(q))
    if n < 1e-12:
        return IDENTITY.copy()
    return q / n


def q_conj(q: np.ndarray) -> np.ndarray:
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=np.float64)


def q_inv(q: np.ndarray) -> np.ndarray:
    """Inverse; equal to the conjugate for unit quaternions."""
    n2 = float(np.dot(q, q))
    if n2 < 1e-24:
        return IDENTITY.copy()
    return q_conj(q) / n2


def q_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array(
        [
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
        ],
        dtype=np.float64,
    )


def q_mul_all(*qs: np.ndarray) -> np.ndarray:
    """Left-to-right Hamilton product of all arguments."""
    out = IDENTITY
    for q in qs:
        out = q_mul(out, q)
    return out


def q_rotate_vec(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate vector v by unit quaternion q: v' = q*(0,v)*q^{-1}."""
    q = q_normalize(q)
    vq = np.array([0.0, float(v[0]), float(v[1]), float(v[2])], dtype=np.float64)
    return q_mul(q_mul(q, vq), q_conj(q))[1:]


def axis_angle_to_q(axis: np.ndarray, angle_rad: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=np.float64)
    axis = axis / (np.linalg.norm(axis) + 1e-12)
    s = math.sin(angle_rad / 2.0)
    return q_normalize(
        np.array(
            [math.cos(angle_rad / 2.0), axis[0] * s, axis[1] * s, axis[2] * s],
            dtype=np.float64,
        )
    )


def yaw_to_q(yaw_rad: float) -> np.ndarray:
    h = 0.5 * float(yaw_rad)
    return np.array([math.cos(h), 0.0, math.sin(h), 0.0], dtype=np.float64)


def euler_yzx_to_q(pitch_rad: float, yaw_rad: float, roll_rad: float) -> np.ndarray:
    """
    YZX Euler angles to quaternion.

    pitch around +x, yaw around +y, roll around +z.
    Composition: q = q_yaw * q_roll * q_pitch
    """
    q_yaw = yaw_to_q(yaw_rad)
    q_roll = axis_angle_to_q(np.array([0.0, 0.0, 1.0]), roll_rad)
    q_pitch = axis_angle_to_q(np.array([1.0, 0.0, 0.0]), pitch_rad)
    return q_normalize(q_mul(q_mul(q_yaw, q_roll), q_pitch))


def q_to_euler_yzx(q: np.ndarray) -> tuple[float, float, float]:
    """Inverse of euler_yzx_to_q, returns (pitch, yaw, roll) in radians.

    At the gimbal pole pitch is reported as 0 and the whole coupled
    rotation is folded into yaw.
    """
    w, x, y, z = q_normalize(q)
    r10 = 2.0 * (x * y + w * z)
    sin_roll = max(-1.0, min(1.0, r10))
    roll = math.asin(sin_roll)
    if abs(sin_roll) >= _GIMBAL_THRESHOLD:
        return 0.0, _pole_yaw(w, x, y, z), roll
    pitch = math.atan2(-2.0 * (y * z - w * x), 1.0 - 2.0 * (x * x + z * z))
    yaw = math.atan2(-2.0 * (x * z - w * y), 1.0 - 2.0 * (y * y + z * z))
    return pitch, yaw, roll


def _pole_yaw(w: float, x: float, y: float, z: float) -> float:
    # Third rotation-matrix column, valid when pitch is taken as zero.
    return math.atan2(2.0 * (x * z + w * y), 1.0 - 2.0 * (x * x + y * y))


def q_yaw(q: np.ndarray) -> float:
    """Yaw in radians, range (-pi, pi].

    Degrades to a best-effort value near the YZX poles instead of failing.
    """
    w, x, y, z = q_normalize(q)
    r10 = 2.0 * (x * y + w * z)
    if abs(r10) >= _GIMBAL_THRESHOLD:
        return _pole_yaw(w, x, y, z)
    return math.atan2(-2.0 * (x * z - w * y), 1.0 - 2.0 * (y * y + z * z))


def q_yaw_only(q: np.ndarray) -> np.ndarray:
    """Pure yaw rotation carrying the YZX yaw of q."""
    return yaw_to_q(q_yaw(q))


def is_valid_quaternion(q: np.ndarray, norm_tolerance: float = 1e-3) -> bool:
    q = np.asarray(q, dtype=np.float64).reshape(-1)
    if q.size != 4 or not np.isfinite(q).all():
        return False
    return abs(float(np.linalg.norm(q)) - 1.0) <= norm_tolerance
