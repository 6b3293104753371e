"""
Tracker calibration session replay:
- JSON-lines session file (one record per line)
  {"type": "register", "tracker": "<id>", "name": "<label>"}
  {"type": "sample",   "tracker": "<id>", "quaternion_wxyz": [w, x, y, z]}
  {"type": "command",  "tracker": "<id>", "kind": "full|yaw|mounting", ...}
- Samples update the tracker's latest raw orientation
- Commands go through the calibration trigger interface
- Corrected yaw and mounting direction are logged per tracker

Deps:
  pip install numpy pyyaml
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Iterator

from .config import parse_args
from .control.calibration import is_mounting_overridden, mounting_direction
from .control.commands import CalibrationCommandHandler, parse_command_payload
from .control.registry import TrackerRegistry
from .control.tracker import Tracker
from .math3d.angles import yaw_rad
from .math3d.directions import direction_q

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def iter_session_records(path: str) -> Iterator[tuple[int, dict]]:
    """Yield (line number, record) for every non-empty line; bad lines are skipped."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("[SESSION] %s:%d: invalid JSON, skipped", p, lineno)
                continue
            if not isinstance(record, dict):
                logger.warning("[SESSION] %s:%d: record must be an object, skipped", p, lineno)
                continue
            yield lineno, record


class SessionReplay:
    def __init__(self, registry: TrackerRegistry, handler: CalibrationCommandHandler, report_every: int = 0):
        self.registry = registry
        self.handler = handler
        self.report_every = int(report_every)
        self.samples = 0
        self.commands = 0
        self.rejected = 0
        self._per_tracker: dict[str, int] = {}

    def _tracker_for(self, record: dict) -> Tracker:
        tracker_id = str(record.get("tracker", record.get("tracker_id", "")))
        if not tracker_id:
            raise ValueError("record has no tracker id")
        return self.registry.register(tracker_id, name=str(record.get("name", "")))

    def _on_sample(self, record: dict) -> None:
        tracker = self._tracker_for(record)
        tracker.set_raw_rotation(record.get("quaternion_wxyz", record.get("quaternion")))
        self.samples += 1
        n = self._per_tracker.get(tracker.tracker_id, 0) + 1
        self._per_tracker[tracker.tracker_id] = n
        if self.report_every > 0 and n % self.report_every == 0:
            log_tracker(tracker)

    def _on_command(self, record: dict) -> None:
        command = parse_command_payload(record)
        if command is None:
            raise ValueError("malformed command")
        result = self.handler.handle(command)
        self.commands += 1
        if not result.ok:
            self.rejected += 1

    def feed(self, record: dict) -> None:
        kind = str(record.get("type", "")).strip().lower()
        if kind == "register":
            self._tracker_for(record)
        elif kind == "sample":
            self._on_sample(record)
        elif kind == "command":
            self._on_command(record)
        elif kind == "deregister":
            self.registry.deregister(str(record.get("tracker", "")))
        else:
            raise ValueError(f"unsupported record type {kind!r}")


def log_tracker(tracker: Tracker, angle_tolerance_rad: float = math.radians(0.1)) -> None:
    corrected = tracker.corrected_rotation()
    state = tracker.calibration
    mounting = mounting_direction(state, tolerance=angle_tolerance_rad)
    logger.info(
        "[TRACKER] %s yaw=%s mounting=%s%s (%.1f deg) needs_reset=%s needs_mounting=%s",
        tracker.tracker_id,
        "n/a" if corrected is None else f"{math.degrees(yaw_rad(corrected)):.2f} deg",
        mounting or "custom",
        " (overridden)" if is_mounting_overridden(state, angle_tolerance_rad) else "",
        math.degrees(yaw_rad(state.effective_mounting)),
        state.needs_reset,
        state.needs_mounting,
    )


def main(argv=None):
    cfg = parse_args(argv)
    configure_logging(cfg.log_level)

    registry = TrackerRegistry(reference_norm_tolerance=cfg.unit_norm_tolerance)
    handler = CalibrationCommandHandler(
        registry, default_reference=direction_q(cfg.default_reference)
    )
    replay = SessionReplay(registry, handler, report_every=cfg.report_every)

    logger.info("[SESSION] replaying %s", cfg.session)
    try:
        for lineno, record in iter_session_records(cfg.session):
            try:
                replay.feed(record)
            except (ValueError, KeyError) as exc:
                logger.warning("[SESSION] line %d skipped: %s", lineno, exc)
    except OSError as exc:
        raise SystemExit(f"failed to read session {cfg.session}: {exc}") from exc

    logger.info(
        "[SESSION] samples=%d commands=%d rejected=%d trackers=%d",
        replay.samples,
        replay.commands,
        replay.rejected,
        len(registry),
    )
    tol = math.radians(cfg.angle_tolerance_deg)
    for tracker in registry.trackers():
        log_tracker(tracker, angle_tolerance_rad=tol)
    return replay


if __name__ == "__main__":
    main()
