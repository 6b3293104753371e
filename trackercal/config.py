"""CLI config and defaults."""

from __future__ import annotations

import argparse
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .math3d.directions import DIRECTION_NAMES


@dataclass(frozen=True)
class AppConfig:
    session: str
    log_level: str = "info"
    default_reference: str = "front"
    unit_norm_tolerance: float = 1e-3
    angle_tolerance_deg: float = 0.1
    report_every: int = 0


_APP_CONFIG_FIELDS = {f.name for f in fields(AppConfig)}
_INT_FIELDS = {"report_every"}
_FLOAT_FIELDS = {"unit_norm_tolerance", "angle_tolerance_deg"}
_STRING_FIELDS = {"session", "log_level", "default_reference"}
_LOG_LEVELS = ("debug", "info", "warning", "error")


def _coerce_config_value(key: str, value: Any) -> Any:
    try:
        if key in _INT_FIELDS:
            return int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
        if key in _STRING_FIELDS:
            return "" if value is None else str(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid value for config key '{key}': {value!r}") from exc
    raise ValueError(f"unsupported config key '{key}'")


def _normalize_config_key(raw_key: Any) -> str:
    if not isinstance(raw_key, str):
        raise ValueError(f"config key must be string, got {type(raw_key).__name__}")
    key = raw_key.strip().replace("-", "_")
    if not key:
        raise ValueError("config key cannot be empty")
    return key


def _load_yaml_config(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ValueError(f"--config file not found: {p}")
    if not p.is_file():
        raise ValueError(f"--config must point to a file: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"failed to read --config file {p}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse YAML config {p}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"--config root must be a mapping/object, got {type(loaded).__name__}")

    normalized: dict[str, Any] = {}
    for raw_key, raw_value in loaded.items():
        key = _normalize_config_key(raw_key)
        if key not in _APP_CONFIG_FIELDS:
            raise ValueError(f"unknown config key in {p}: {raw_key!r}")
        normalized[key] = _coerce_config_value(key, raw_value)
    return normalized


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Replay tracker samples and reset commands through the calibration engine."
    )
    ap.add_argument(
        "--config",
        type=str,
        default="",
        help="YAML config file path. CLI args override YAML values.",
    )
    ap.add_argument(
        "--session",
        required=False,
        default=None,
        help="JSON-lines session file with sample/command/register records.",
    )
    ap.add_argument(
        "--log-level",
        choices=list(_LOG_LEVELS),
        default="info",
        help="Global log level.",
    )
    ap.add_argument(
        "--default-reference",
        type=str,
        default="front",
        help=f"Reference direction for commands without one ({'|'.join(DIRECTION_NAMES)}).",
    )
    ap.add_argument(
        "--unit-norm-tolerance",
        type=float,
        default=1e-3,
        help="Allowed |norm-1| of reference quaternions.",
    )
    ap.add_argument(
        "--angle-tolerance-deg",
        type=float,
        default=0.1,
        help="Tolerance when labelling mounting yaw with a canonical direction.",
    )
    ap.add_argument(
        "--report-every",
        type=int,
        default=0,
        help="Log corrected yaw every N samples per tracker (0=off).",
    )
    return ap


def validate_config(cfg: AppConfig) -> None:
    if not str(cfg.session).strip():
        raise ValueError("--session must be provided (CLI or --config)")
    if cfg.log_level not in _LOG_LEVELS:
        raise ValueError(f"--log-level must be one of {'|'.join(_LOG_LEVELS)}, got {cfg.log_level}")
    key = cfg.default_reference.strip().lower().replace("-", "_")
    if key not in DIRECTION_NAMES:
        raise ValueError(
            f"--default-reference must be one of {'|'.join(DIRECTION_NAMES)}, "
            f"got {cfg.default_reference}"
        )
    if not (0.0 < cfg.unit_norm_tolerance < 1.0):
        raise ValueError(
            f"--unit-norm-tolerance must be in (0,1), got {cfg.unit_norm_tolerance}"
        )
    if not math.isfinite(cfg.angle_tolerance_deg) or not (0.0 < cfg.angle_tolerance_deg <= 22.5):
        raise ValueError(
            f"--angle-tolerance-deg must be in (0,22.5], got {cfg.angle_tolerance_deg}"
        )
    if cfg.report_every < 0:
        raise ValueError(f"--report-every must be >= 0, got {cfg.report_every}")


def parse_args(argv=None) -> AppConfig:
    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument("--config", type=str, default="")
    bootstrap_ns, _ = bootstrap.parse_known_args(argv)

    yaml_cfg: dict[str, Any] = {}
    yaml_error: Optional[str] = None
    if bootstrap_ns.config:
        try:
            yaml_cfg = _load_yaml_config(bootstrap_ns.config)
        except ValueError as exc:
            yaml_error = str(exc)

    ap = build_arg_parser()
    if yaml_error is not None:
        ap.error(yaml_error)
    if yaml_cfg:
        ap.set_defaults(**yaml_cfg)
    args = ap.parse_args(argv)

    cfg = AppConfig(
        session=str(args.session or ""),
        log_level=args.log_level,
        default_reference=args.default_reference,
        unit_norm_tolerance=float(args.unit_norm_tolerance),
        angle_tolerance_deg=float(args.angle_tolerance_deg),
        report_every=args.report_every,
    )
    try:
        validate_config(cfg)
    except ValueError as exc:
        ap.error(str(exc))
    return cfg
