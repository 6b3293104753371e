"""Tracker: latest raw orientation plus its calibration state."""

from __future__ import annotations

import logging
import threading
from typing import Optional

import numpy as np

from ..math3d.angles import ANGLE_TOLERANCE_RAD
from ..math3d.quaternion import q_normalize
from . import resets
from .calibration import CalibrationState, apply_correction, is_mounting_overridden
from .errors import NoRawOrientationAvailable

logger = logging.getLogger(__name__)


def parse_raw_rotation(q) -> np.ndarray:
    """Validate an incoming sample and return it normalized.

    Raises ValueError for wrong length, NaN/inf or zero-length input.
    """
    arr = np.asarray(q, dtype=np.float64).reshape(-1)
    if arr.size != 4:
        raise ValueError(f"raw rotation must have 4 components, got {arr.size}")
    if not np.isfinite(arr).all():
        raise ValueError(f"raw rotation must be finite, got {arr.tolist()}")
    if float(np.linalg.norm(arr)) < 1e-12:
        raise ValueError("raw rotation must be non-zero")
    return q_normalize(arr)


class Tracker:
    """One body-worn sensor.

    The (raw, calibration) pair is guarded by a lock: the ingestion path calls
    set_raw_rotation, the command path calls the reset methods, readers call
    corrected_rotation. Resets compute a new state from a snapshot and swap it
    in, so readers never see a partially updated state.
    """

    def __init__(
        self,
        tracker_id: str,
        name: str = "",
        reference_norm_tolerance: float = 1e-3,
    ):
        self.tracker_id = str(tracker_id)
        self.name = name or self.tracker_id
        self.reference_norm_tolerance = float(reference_norm_tolerance)
        self._lock = threading.Lock()
        self._raw: Optional[np.ndarray] = None
        self._calibration = CalibrationState()

    @property
    def calibration(self) -> CalibrationState:
        """Current state; its arrays are read-only."""
        with self._lock:
            return self._calibration

    @property
    def needs_reset(self) -> bool:
        return self.calibration.needs_reset

    @property
    def needs_mounting(self) -> bool:
        return self.calibration.needs_mounting

    def is_mounting_overridden(self, tolerance: float = ANGLE_TOLERANCE_RAD) -> bool:
        return is_mounting_overridden(self.calibration, tolerance)

    def has_rotation(self) -> bool:
        with self._lock:
            return self._raw is not None

    def set_raw_rotation(self, q) -> None:
        raw = parse_raw_rotation(q)
        with self._lock:
            self._raw = raw

    def get_raw_rotation(self) -> Optional[np.ndarray]:
        with self._lock:
            return None if self._raw is None else self._raw.copy()

    def corrected_rotation(self) -> Optional[np.ndarray]:
        """Latest raw sample through the current corrections, None before any sample."""
        with self._lock:
            raw, state = self._raw, self._calibration
        if raw is None:
            return None
        return apply_correction(raw, state)

    def _apply_reset(self, op, reference, label: str) -> CalibrationState:
        ref = resets.validate_reference(reference, self.reference_norm_tolerance)
        with self._lock:
            if self._raw is None:
                raise NoRawOrientationAvailable(self.tracker_id)
            self._calibration = op(self._raw, self._calibration, ref)
            state = self._calibration
        logger.debug("[RESET] %s reset applied to tracker %s", label, self.tracker_id)
        return state

    def reset_full(self, reference=None) -> CalibrationState:
        return self._apply_reset(resets.reset_full, reference, "full")

    def reset_yaw(self, reference=None) -> CalibrationState:
        return self._apply_reset(resets.reset_yaw, reference, "yaw")

    def reset_mounting(self, reference=None) -> CalibrationState:
        return self._apply_reset(resets.reset_mounting, reference, "mounting")

    def assign_mounting(self, orientation) -> CalibrationState:
        q = resets.validate_reference(orientation, self.reference_norm_tolerance)
        with self._lock:
            self._calibration = resets.assign_mounting(self._calibration, q)
            return self._calibration

    def clear_mounting(self) -> CalibrationState:
        with self._lock:
            self._calibration = resets.clear_mounting(self._calibration)
            return self._calibration
