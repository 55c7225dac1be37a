"""Timeline configuration: loaded from config/camera_timeline.yaml with .env overrides.

Environment overrides (all optional):
  CAMERA_TARGET_BEHAVIOR    "zoom" or "cut"
  CAMERA_SCENE_DURATION_MS  per-scene duration
  CAMERA_TRANSITION_MS      gap between scenes
  CAMERA_START_DELAY_MS     delay before the first scene
  CAMERA_CENTER_DISTANCE    whole-plane camera distance
"""

import logging
import os
from dataclasses import dataclass, field, replace

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "config")
CONFIG_FILE = os.path.join(CONFIG_DIR, "camera_timeline.yaml")

TARGET_BEHAVIORS = ("zoom", "cut")

_ENV_OVERRIDES = {
    "CAMERA_SCENE_DURATION_MS": "scene_duration_ms",
    "CAMERA_TRANSITION_MS": "transition_ms",
    "CAMERA_START_DELAY_MS": "start_delay_ms",
    "CAMERA_CENTER_DISTANCE": "center_distance",
}


@dataclass(frozen=True)
class TimelineConfig:
    """Everything needed to compile and play a camera timeline."""

    target_behavior: str = "zoom"
    overrides: dict = field(default_factory=dict)  # source id -> bool
    center_distance: float = 2.25
    focus_base_distance: float = 2.0
    plane_width: float = 3.555
    plane_height: float = 2.0
    canvas_width: int = 1920
    canvas_height: int = 1080
    display_channel: str = "horizontal"
    scene_duration_ms: float = 5000
    transition_ms: float = 1000
    start_delay_ms: float = 0
    fps: int = 60
    cancel_reset_ms: float = 100


def _coerce_number(key, value, default, positive=False):
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"[Timeline Config] Invalid value for {key}: {value!r}; using {default}")
        return default
    if number < 0:
        logger.warning(f"[Timeline Config] Negative value for {key}: {value!r}; using {default}")
        return default
    if positive and number == 0:
        logger.warning(f"[Timeline Config] Zero value for {key}; using {default}")
        return default
    return number


def config_from_dict(data):
    """Build a TimelineConfig from a plain dict, falling back to defaults for bad values."""
    defaults = TimelineConfig()
    values = {}

    for name in ("scene_duration_ms", "transition_ms", "start_delay_ms", "cancel_reset_ms"):
        if name in data:
            values[name] = _coerce_number(name, data[name], getattr(defaults, name))

    # Zero is invalid for divisors and distances
    for name in ("center_distance", "focus_base_distance", "plane_width", "plane_height"):
        if name in data:
            values[name] = _coerce_number(name, data[name], getattr(defaults, name), positive=True)

    for name in ("canvas_width", "canvas_height", "fps"):
        if name in data:
            number = _coerce_number(name, data[name], getattr(defaults, name), positive=True)
            values[name] = int(number) if number >= 1 else getattr(defaults, name)

    if "display_channel" in data:
        values["display_channel"] = str(data["display_channel"])

    behavior = data.get("target_behavior", defaults.target_behavior)
    if behavior not in TARGET_BEHAVIORS:
        logger.warning(f"[Timeline Config] Unknown target_behavior {behavior!r}; using zoom")
        behavior = "zoom"
    values["target_behavior"] = behavior

    overrides = data.get("source_targets") or data.get("overrides") or {}
    values["overrides"] = {str(k): bool(v) for k, v in overrides.items()}

    return replace(defaults, **values)


def _apply_env(config):
    values = {}
    behavior = os.getenv("CAMERA_TARGET_BEHAVIOR", "").strip().lower()
    if behavior:
        if behavior in TARGET_BEHAVIORS:
            values["target_behavior"] = behavior
        else:
            logger.warning(f"[Timeline Config] Ignoring CAMERA_TARGET_BEHAVIOR={behavior!r}")
    for env_key, name in _ENV_OVERRIDES.items():
        raw = os.getenv(env_key)
        if raw is not None and raw.strip():
            values[name] = _coerce_number(env_key, raw, getattr(config, name), positive=name == "center_distance")
    return replace(config, **values) if values else config


def load_timeline_config(path=None):
    """Load timeline settings.

    Args:
        path: YAML file to read. Defaults to config/camera_timeline.yaml.

    Returns:
        TimelineConfig. Defaults are used when the file is missing.
    """
    path = path or CONFIG_FILE
    data = {}
    if os.path.exists(path):
        with open(path, "r") as f:
            data = (yaml.safe_load(f) or {}).get("camera_timeline", {}) or {}
    return _apply_env(config_from_dict(data))
