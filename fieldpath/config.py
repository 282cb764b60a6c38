# fieldpath/config.py
from __future__ import annotations
import json, os
from typing import Optional

# Field (inches) and window
FIELD_SIZE_IN    = 144.0
FIELD_MIN_IN     = 0.0
FIELD_MAX_IN     = FIELD_SIZE_IN
CENTER_LINE_X_IN = 72.0
PPI              = 5.0
WINDOW_WIDTH     = int(FIELD_SIZE_IN * PPI)
WINDOW_HEIGHT    = int(FIELD_SIZE_IN * PPI)

# Colors (RGB)
BG_COLOR        = (30, 30, 30)
GRID_COLOR      = (50, 50, 50)
PATH_COLOR      = (100, 200, 255)
NODE_COLOR      = (50, 255, 50)
CONTROL_COLOR   = (255, 150, 0)
ROBOT_COLOR     = (252, 3, 248)
FOOTPRINT_COLOR = (252, 3, 248)
SWEEP_COLOR     = (120, 60, 140)
CENTER_COLOR    = (90, 90, 90)
TEXT_COLOR      = (255, 255, 255)
RED             = (255, 0, 0)
ORANGE          = (255, 165, 0)
GOLD            = (255, 215, 0)
WHITE           = (255, 255, 255)
GREY            = (130, 130, 130)

DEFAULT_SEGMENT_COLOR = "#60a5fa"

CONFIG_FILENAME = "config.json"

DEFAULT_CONFIG = {
    "robot": {
        "width":  {"value": 18.0},
        "length": {"value": 18.0},
    },
    "playback": {
        "speed": {"value": 1.0},
    },
    "collision": {
        "samples_per_segment":          {"value": 20},
        "crossing_samples_per_segment": {"value": 100},
        "next_segment_only":            {"value": 0},
        "center_line_warning":          {"value": 1},
        "center_line_x":                {"value": CENTER_LINE_X_IN},
        "show_all":                     {"value": 0},
        "trail_color_mode":             {"value": "different"},
    },
    "history": {
        "capacity": {"value": 200},
    },
    "optimizer": {
        "url":                  {"value": "http://localhost:8000"},
        "poll_attempts":        {"value": 60},
        "poll_interval_s":      {"value": 1.0},
        "request_timeout_s":    {"value": 10.0},
        "x_velocity":           {"value": 60.0},
        "y_velocity":           {"value": 60.0},
        "angular_velocity":     {"value": 180.0},
        "friction_coefficient": {"value": 0.9},
        "interpolation":        {"value": "cubic"},
    },
    "ui": {
        "show_grid":           {"value": 0},
        "grid_size_in":        {"value": 12.0},
        "show_collision_path": {"value": 0},
        "show_corner_dots":    {"value": 1},
    },
}

def _flatten(section: dict) -> dict:
    """Extract 'value' from nested dict structure."""
    flat = {}
    for k, v in section.items():
        flat[k] = v.get("value", v) if isinstance(v, dict) and "value" in v else v
    return flat

def _section(cfg: dict, name: str) -> dict:
    """Flatten a section, filling keys missing from cfg with defaults."""
    merged = _flatten(DEFAULT_CONFIG.get(name, {}))
    merged.update(_flatten(cfg.get(name, {}) or {}))
    return merged

def _load_json(path: str) -> Optional[dict]:
    """Load JSON file, return None on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:
        return None

def _save_json(path: str, data: dict) -> None:
    """Save JSON file with error handling."""
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
    except Exception:
        pass
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

def _config_candidates():
    """Root config first, package copy second."""
    here = os.path.dirname(__file__)
    return [
        os.path.normpath(os.path.join(here, os.pardir, CONFIG_FILENAME)),
        os.path.normpath(os.path.join(here, CONFIG_FILENAME)),
    ]

def load_config() -> dict:
    """Load config from root or package directory, create default if missing."""
    root_candidate, pkg_candidate = _config_candidates()
    data = _load_json(root_candidate) or _load_json(pkg_candidate)
    if data is None:
        data = json.loads(json.dumps(DEFAULT_CONFIG))
        try:
            _save_json(root_candidate, data)
        except OSError as e:
            print(f"Could not write default config: {e}")
    return data

def save_config(cfg_dict: dict) -> bool:
    """Save flat section dicts back in value-wrapped form."""
    try:
        def wrap(v): return {"value": v}
        raw = {}
        for name in DEFAULT_CONFIG:
            raw[name] = {k: wrap(v) for k, v in _section(cfg_dict, name).items()}
        for path in _config_candidates():
            _save_json(path, raw)
        print(f"Config saved to {_config_candidates()[0]}")
        return True
    except Exception as e:
        print(f"Failed to save config: {e}")
        return False

def robot_flat(cfg: dict) -> dict:
    """Flatten robot section."""
    return _section(cfg, "robot")

def playback_flat(cfg: dict) -> dict:
    """Flatten playback section."""
    return _section(cfg, "playback")

def collision_flat(cfg: dict) -> dict:
    """Flatten collision section."""
    return _section(cfg, "collision")

def history_flat(cfg: dict) -> dict:
    """Flatten history section."""
    return _section(cfg, "history")

def optimizer_flat(cfg: dict) -> dict:
    """Flatten optimizer section."""
    return _section(cfg, "optimizer")

def ui_flat(cfg: dict) -> dict:
    """Flatten ui section."""
    return _section(cfg, "ui")
