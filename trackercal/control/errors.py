"""Errors reported by the calibration engine."""

from __future__ import annotations


class CalibrationError(Exception):
    """A reset request was rejected; tracker state is unchanged."""

    reason = "calibration_error"


class NoRawOrientationAvailable(CalibrationError, RuntimeError):
    reason = "no_raw_orientation"

    def __init__(self, tracker_id: str):
        super().__init__(f"tracker {tracker_id!r} has not received a sample yet")
        self.tracker_id = tracker_id


class InvalidReferenceOrientation(CalibrationError, ValueError):
    reason = "invalid_reference"


class UnknownTracker(CalibrationError, KeyError):
    reason = "unknown_tracker"

    def __init__(self, tracker_id: str):
        super().__init__(tracker_id)
        self.tracker_id = tracker_id

    def __str__(self) -> str:
        return f"tracker {self.tracker_id!r} is not registered"
