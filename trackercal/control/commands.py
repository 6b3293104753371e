"""Calibration trigger interface used by the UI/RPC layer.

Expected JSON command schema:
{
  "tracker": "<id>",
  "kind": "full" | "yaw" | "mounting",
  "reference_wxyz": [w, x, y, z]        (optional)
  "reference": "<direction name>"        (optional, e.g. "right")
}
A missing reference means identity.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..math3d.directions import direction_q
from .errors import CalibrationError
from .registry import TrackerRegistry

logger = logging.getLogger(__name__)


class ResetKind(enum.Enum):
    FULL = "full"
    YAW = "yaw"
    MOUNTING = "mounting"


_KIND_ALIASES = {
    "full": ResetKind.FULL,
    "fullreset": ResetKind.FULL,
    "yaw": ResetKind.YAW,
    "yawreset": ResetKind.YAW,
    "quick": ResetKind.YAW,
    "mounting": ResetKind.MOUNTING,
    "mountingreset": ResetKind.MOUNTING,
}


@dataclass(slots=True)
class ResetCommand:
    tracker_id: str
    kind: ResetKind
    reference: Optional[np.ndarray] = None


@dataclass(slots=True)
class ResetResult:
    tracker_id: str
    kind: ResetKind
    ok: bool
    reason: str = ""


def parse_reset_kind(raw: str) -> Optional[ResetKind]:
    key = str(raw).strip().lower().replace("_", "").replace("-", "")
    return _KIND_ALIASES.get(key)


def parse_command_payload(payload: dict) -> Optional[ResetCommand]:
    tracker_id = payload.get("tracker", payload.get("tracker_id"))
    kind = parse_reset_kind(payload.get("kind", ""))
    if tracker_id is None or kind is None:
        return None

    reference = None
    ref_q = payload.get("reference_wxyz")
    ref_name = payload.get("reference")
    if ref_q is not None:
        try:
            q = np.asarray(ref_q, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError):
            return None
        if q.size != 4:
            return None
        # Finiteness and norm are checked by the reset itself.
        reference = q
    elif ref_name is not None:
        try:
            reference = direction_q(str(ref_name))
        except ValueError:
            return None

    return ResetCommand(tracker_id=str(tracker_id), kind=kind, reference=reference)


def parse_command_packet(data: bytes) -> Optional[ResetCommand]:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return parse_command_payload(payload)


class CalibrationCommandHandler:
    """Runs reset commands synchronously and reports success or a rejection reason."""

    def __init__(self, registry: TrackerRegistry, default_reference: Optional[np.ndarray] = None):
        self.registry = registry
        self.default_reference = default_reference

    def handle(self, command: ResetCommand) -> ResetResult:
        reference = command.reference if command.reference is not None else self.default_reference
        try:
            tracker = self.registry.get(command.tracker_id)
            if command.kind is ResetKind.FULL:
                tracker.reset_full(reference)
            elif command.kind is ResetKind.YAW:
                tracker.reset_yaw(reference)
            else:
                tracker.reset_mounting(reference)
        except CalibrationError as exc:
            logger.warning(
                "[RESET] %s reset rejected for tracker %s: %s",
                command.kind.value,
                command.tracker_id,
                exc,
            )
            return ResetResult(
                tracker_id=command.tracker_id,
                kind=command.kind,
                ok=False,
                reason=f"{exc.reason}: {exc}",
            )

        logger.info("[RESET] %s reset done for tracker %s", command.kind.value, command.tracker_id)
        return ResetResult(tracker_id=command.tracker_id, kind=command.kind, ok=True)

    def handle_all(self, kind: ResetKind, reference: Optional[np.ndarray] = None) -> list[ResetResult]:
        """Apply one reset to every registered tracker (the usual UI button)."""
        return [
            self.handle(ResetCommand(tracker_id=t.tracker_id, kind=kind, reference=reference))
            for t in self.registry.trackers()
        ]
