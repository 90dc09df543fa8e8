import copy
import json
import os
from typing import Any, Dict, Tuple

DEFAULT_CONFIG: Dict[str, Any] = {
    "project_name": "face-grid",
    "input": {
        "pattern": "*.jpg",
    },
    "grid": {
        "cell_size": "100x100",
        "columns": 0,
        "max_images": 0,
    },
    "alignment": {
        "face_scale": 1.0,
        "typical_face_size": [75.0, 100.0],
        "face_fill": 0.6,
    },
    "detector": {
        "backend": "yunet",
        "model": "face_detection_yunet_2023mar",
        "score_threshold": 0.6,
        "nms_threshold": 0.3,
        "max_side": 640,
    },
    "runtime": {
        "workers": 1,
    },
    "output": {
        "path": "face-grid-output.png",
        "report": True,
    },
}

DETECTOR_BACKENDS = ("yunet", "haar")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: str = "config.json") -> Dict[str, Any]:
    """Load the global configuration from JSON, layered over DEFAULT_CONFIG.

    Exits the program with a clear message if the file is missing or invalid.
    """
    if not os.path.isfile(path):
        raise SystemExit(f"[CONFIG] config file not found at: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except json.JSONDecodeError as e:
        raise SystemExit(f"[CONFIG] Failed to parse JSON at {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise SystemExit(f"[CONFIG] Top-level JSON value at {path} must be an object.")

    return _deep_merge(DEFAULT_CONFIG, cfg)


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Layer section-keyed overrides (e.g. CLI flags) on top of config.

    Values that are None are treated as "not given" and leave config untouched.
    """
    cleaned = {
        section: {k: v for k, v in values.items() if v is not None}
        for section, values in overrides.items()
    }
    return _deep_merge(config, cleaned)


def parse_dimensions(src: str) -> Tuple[int, int]:
    """Parse a "WIDTHxHEIGHT" string (e.g. "800x600") into a (width, height) tuple."""
    parts = str(src).strip().lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"Dimensions should use WIDTHxHEIGHT, got '{src}'")
    try:
        width, height = (int(p) for p in parts)
    except ValueError as e:
        raise ValueError(f"Could not parse integer value in '{src}'") from e
    return width, height


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Check the values the pipeline relies on and normalise their types.

    Returns the same dict with grid.cell_size normalised to a (w, h) tuple.
    Raises SystemExit with a [CONFIG] message on the first violation.
    """
    grid = config["grid"]
    cell = grid["cell_size"]
    if isinstance(cell, str):
        try:
            cell = parse_dimensions(cell)
        except ValueError as e:
            raise SystemExit(f"[CONFIG] grid.cell_size: {e}") from e
    try:
        cell_w, cell_h = (int(v) for v in cell)
    except (TypeError, ValueError) as e:
        raise SystemExit(f"[CONFIG] grid.cell_size must be WIDTHxHEIGHT, got {cell!r}") from e
    if cell_w <= 0 or cell_h <= 0:
        raise SystemExit(f"[CONFIG] grid.cell_size must be positive, got {cell_w}x{cell_h}")
    grid["cell_size"] = (cell_w, cell_h)

    for key in ("columns", "max_images"):
        value = int(grid[key])
        if value < 0:
            raise SystemExit(f"[CONFIG] grid.{key} must be >= 0, got {value}")
        grid[key] = value

    alignment = config["alignment"]
    face_scale = float(alignment["face_scale"])
    if face_scale <= 0:
        raise SystemExit(f"[CONFIG] alignment.face_scale must be > 0, got {face_scale}")
    alignment["face_scale"] = face_scale

    face_fill = float(alignment["face_fill"])
    if face_fill <= 0:
        raise SystemExit(f"[CONFIG] alignment.face_fill must be > 0, got {face_fill}")
    alignment["face_fill"] = face_fill

    typical = alignment["typical_face_size"]
    if len(typical) != 2 or float(typical[0]) <= 0 or float(typical[1]) <= 0:
        raise SystemExit(f"[CONFIG] alignment.typical_face_size must be two positive numbers, got {typical!r}")
    alignment["typical_face_size"] = (float(typical[0]), float(typical[1]))

    workers = int(config["runtime"]["workers"])
    if workers < 1:
        raise SystemExit(f"[CONFIG] runtime.workers must be >= 1, got {workers}")
    config["runtime"]["workers"] = workers

    backend = config["detector"]["backend"]
    if backend not in DETECTOR_BACKENDS:
        raise SystemExit(
            f"[CONFIG] detector.backend must be one of {', '.join(DETECTOR_BACKENDS)}, got '{backend}'"
        )

    return config
