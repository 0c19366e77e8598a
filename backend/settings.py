from __future__ import annotations

"""Utility functions for loading and saving user settings.

The settings are stored as a list of dictionaries to preserve order.
Each dictionary contains ``key``, ``value`` and ``type`` entries.
"""

from pathlib import Path
import json
import logging
from typing import Any, List, Dict

from backend import CHAIN_CATEGORIES, CHAINING_METHODS, TIMER_TICK_INTERVAL

# Path to the JSON file where settings are persisted.
SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"

# Default settings to initialize the file on first run.
DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {"key": "default_category", "value": "daily-living", "type": "choice"},
    {"key": "default_chaining_method", "value": "forward", "type": "choice"},
    {"key": "timer_tick_interval", "value": TIMER_TICK_INTERVAL, "type": "float"},
]

# Internal cache so settings are only read from disk once.
_settings_cache: List[Dict[str, Any]] | None = None


def load_settings() -> List[Dict[str, Any]]:
    """Load settings from :data:`SETTINGS_PATH` or create defaults."""
    if SETTINGS_PATH.exists():
        try:
            with SETTINGS_PATH.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
                if isinstance(data, list):
                    return data
        except (OSError, ValueError):
            logging.exception("Unreadable settings file %s, using defaults", SETTINGS_PATH)
    defaults = [dict(item) for item in DEFAULT_SETTINGS]
    save_settings(defaults)
    return defaults


def save_settings(settings: List[Dict[str, Any]]) -> None:
    """Persist ``settings`` to :data:`SETTINGS_PATH`."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with SETTINGS_PATH.open("w", encoding="utf-8") as fh:
        json.dump(settings, fh)


def get_settings() -> List[Dict[str, Any]]:
    """Return the cached settings list, loading from disk if needed."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def clear_cache() -> None:
    global _settings_cache
    _settings_cache = None


def get_value(key: str, default: Any = None) -> Any:
    """Fetch the value associated with ``key``."""
    for item in get_settings():
        if item.get("key") == key:
            return item.get("value")
    return default


def set_value(key: str, value: Any) -> None:
    """Update ``key`` with ``value`` and persist the change."""
    if key == "default_category" and value not in CHAIN_CATEGORIES:
        raise ValueError(f"Unknown category '{value}'")
    if key == "default_chaining_method" and value not in CHAINING_METHODS:
        raise ValueError(f"Unknown chaining method '{value}'")
    settings = get_settings()
    for item in settings:
        if item.get("key") == key:
            item["value"] = value
            break
    else:
        settings.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(settings)


def default_category() -> str:
    value = get_value("default_category")
    return value if value in CHAIN_CATEGORIES else "daily-living"


def default_chaining_method() -> str:
    value = get_value("default_chaining_method")
    return value if value in CHAINING_METHODS else "forward"


def timer_tick_interval() -> float:
    try:
        value = float(get_value("timer_tick_interval", TIMER_TICK_INTERVAL))
    except (TypeError, ValueError):
        return TIMER_TICK_INTERVAL
    return value if value > 0 else TIMER_TICK_INTERVAL
