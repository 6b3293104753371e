"""Per-tracker reset and mounting calibration engine."""

from .calibration import CalibrationState, apply_correction
from .commands import CalibrationCommandHandler, ResetCommand, ResetKind, ResetResult
from .errors import (
    CalibrationError,
    InvalidReferenceOrientation,
    NoRawOrientationAvailable,
    UnknownTracker,
)
from .registry import TrackerRegistry
from .tracker import Tracker

__all__ = [
    "CalibrationCommandHandler",
    "CalibrationError",
    "CalibrationState",
    "InvalidReferenceOrientation",
    "NoRawOrientationAvailable",
    "ResetCommand",
    "ResetKind",
    "ResetResult",
    "Tracker",
    "TrackerRegistry",
    "UnknownTracker",
    "apply_correction",
]
