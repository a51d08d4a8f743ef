import copy
import json
import os
from typing import Any, Dict, Optional

SUPPORTED_EXERCISES = ("squat", "pushup", "plank")

_CONFIG_CACHE: Dict[str, Dict[str, Any]] = {}


def load_exercise_config(exercise: str, config_path: str = None) -> Dict[str, Any]:
    """
    Load the configuration table for one exercise from JSON.

    Args:
        exercise: Exercise name ("squat", "pushup" or "plank")
        config_path: Optional explicit path; defaults to ``<exercise>_config.json`` next to this module

    Returns:
        A fresh copy of the config dict, safe to mutate
    """
    if exercise not in SUPPORTED_EXERCISES:
        raise ValueError(f"Unsupported exercise type: {exercise}")
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), f"{exercise}_config.json")
    if config_path not in _CONFIG_CACHE:
        with open(config_path, "r", encoding="utf-8") as f:
            _CONFIG_CACHE[config_path] = json.load(f)
    return copy.deepcopy(_CONFIG_CACHE[config_path])


def merge_config(base: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged
