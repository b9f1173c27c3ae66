# snow_settings.py — JSON settings for the festive snow runner
#
# conf/festive_snow.conf schema (every key optional):
# {
#   "tier": "light" | "medium" | "heavy" | <custom tier name>,
#   "enabled": bool,
#   "width": int, "height": int, "refresh_hz": float,
#   "spawn_rates": {"sleigh": float, "elf": float},
#   "snow_chance": float,
#   "storage_path": "path/to/prefs.json", "storage_prefix": "festive-snow",
#   "log_file": "logs/festive_snow.log",
#   "season_only": bool,
#   "custom_tiers": {"blizzard": {"count": 500, "speed_range": [1.5, 4.0],
#                                 "size_range": [1, 5], "trees": 12, "wreaths": 6}}
# }

from __future__ import annotations
import copy
import json
import logging
import os
from typing import Any, Dict

from snow_intensity import DEFAULT_TIER, INTENSITY_PROFILES, IntensityProfile, make_profile
from snow_physics import DEFAULT_SPAWN_RATES, SNOW_CHANCE
from snow_storage import DEFAULT_PATH, DEFAULT_PREFIX

logger = logging.getLogger("festive_snow.settings")

SETTINGS_FILE = "./conf/festive_snow.conf"

DEFAULTS: Dict[str, Any] = {
    "tier": DEFAULT_TIER,
    "enabled": True,
    "width": 320,
    "height": 240,
    "refresh_hz": 60,
    "spawn_rates": dict(DEFAULT_SPAWN_RATES),
    "snow_chance": SNOW_CHANCE,
    "storage_path": DEFAULT_PATH,
    "storage_prefix": DEFAULT_PREFIX,
    "log_file": "logs/festive_snow.log",
    "season_only": False,
    "custom_tiers": {},
}


def load_settings(path: str = SETTINGS_FILE) -> Dict[str, Any]:
    cfg = copy.deepcopy(DEFAULTS)
    try:
        if os.path.exists(path):
            with open(path, "r") as f:
                disk = json.load(f)
            if not isinstance(disk, dict):
                raise ValueError("top level is not an object")
            for k in DEFAULTS:
                if k in disk:
                    cfg[k] = disk[k]
            unknown = sorted(set(disk) - set(DEFAULTS))
            if unknown:
                logger.warning("[Settings] Ignoring unknown keys in %s: %s", path, ", ".join(unknown))
            if isinstance(disk.get("spawn_rates"), dict):
                cfg["spawn_rates"] = {**DEFAULTS["spawn_rates"], **disk["spawn_rates"]}
    except Exception as e:
        logger.warning("[Settings] load_settings error (%s): %s; using defaults", path, e)
        cfg = copy.deepcopy(DEFAULTS)
    return cfg


def save_settings(cfg: Dict[str, Any], path: str = SETTINGS_FILE) -> bool:
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(cfg, f, indent=2)
        logger.info("[Settings] %s saved.", path)
        return True
    except Exception as e:
        logger.warning("[Settings] save_settings error: %s", e)
        return False


def profiles_from_settings(cfg: Dict[str, Any]) -> Dict[str, IntensityProfile]:
    """Built-in tiers plus every valid entry of cfg["custom_tiers"]."""
    profiles = dict(INTENSITY_PROFILES)
    custom = cfg.get("custom_tiers") or {}
    if not isinstance(custom, dict):
        logger.warning("[Settings] custom_tiers must be an object; ignoring")
        return profiles
    for name, fields in custom.items():
        try:
            profiles[str(name)] = make_profile(
                fields["count"],
                tuple(fields["speed_range"]),
                tuple(fields["size_range"]),
                fields.get("trees", 0),
                fields.get("wreaths", 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("[Settings] Skipping custom tier %r: %s", name, e)
    return profiles
