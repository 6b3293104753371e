"""Registry of live trackers keyed by id."""

from __future__ import annotations

import logging
import threading

import numpy as np

from .errors import UnknownTracker
from .tracker import Tracker

logger = logging.getLogger(__name__)


class TrackerRegistry:
    def __init__(self, reference_norm_tolerance: float = 1e-3):
        self.reference_norm_tolerance = float(reference_norm_tolerance)
        self._lock = threading.Lock()
        self._trackers: dict[str, Tracker] = {}

    def register(self, tracker_id: str, name: str = "") -> Tracker:
        """Create a tracker with fresh calibration; returns the existing one if known."""
        key = str(tracker_id)
        with self._lock:
            tracker = self._trackers.get(key)
            if tracker is not None:
                return tracker
            tracker = Tracker(
                key,
                name=name,
                reference_norm_tolerance=self.reference_norm_tolerance,
            )
            self._trackers[key] = tracker
        logger.info("[TRACKER] registered %s (%s)", key, tracker.name)
        return tracker

    def deregister(self, tracker_id: str) -> None:
        key = str(tracker_id)
        with self._lock:
            if self._trackers.pop(key, None) is None:
                raise UnknownTracker(key)
        logger.info("[TRACKER] deregistered %s", key)

    def get(self, tracker_id: str) -> Tracker:
        key = str(tracker_id)
        with self._lock:
            tracker = self._trackers.get(key)
        if tracker is None:
            raise UnknownTracker(key)
        return tracker

    def __contains__(self, tracker_id: object) -> bool:
        with self._lock:
            return str(tracker_id) in self._trackers

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)

    def trackers(self) -> list[Tracker]:
        with self._lock:
            return list(self._trackers.values())

    def corrected_rotations(self) -> dict[str, np.ndarray]:
        """Corrected orientation per tracker that has received a sample."""
        out: dict[str, np.ndarray] = {}
        for tracker in self.trackers():
            q = tracker.corrected_rotation()
            if q is not None:
                out[tracker.tracker_id] = q
        return out
