"""
User-tunable runtime settings — persisted to <data_dir>/settings.json.

Read with get_settings(); change with update_settings(patch). Values always
keep the type of their default, so a hand-edited file cannot turn the snooze
length into a string.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import config

logger = logging.getLogger(__name__)

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, Any] = {
    "default_snooze_seconds":  config.default_snooze_s,   # 3 min exemption
    "extend_seconds":          config.extend_step_s,      # "+5 min" button
    "notify_cooldown_seconds": config.notify_cooldown_s,  # per-target notice gap
    "notifications_enabled":   1,                         # 0 = silent blocking
}

_current: dict[str, Any] = {}


def _merge(target: dict[str, Any], patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if key in DEFAULTS:
            target[key] = type(DEFAULTS[key])(value)


def _load() -> None:
    global _current
    loaded = dict(DEFAULTS)
    if _FILE.exists():
        try:
            _merge(loaded, json.loads(_FILE.read_text()))
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring malformed settings file %s: %s", _FILE, exc)
            loaded = dict(DEFAULTS)
    _current = loaded


def _ensure_loaded() -> dict[str, Any]:
    if not _current:
        _load()
    return _current


def get_settings() -> dict[str, Any]:
    """Return a copy of the current settings."""
    return dict(_ensure_loaded())


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist it, and return the full settings."""
    current = _ensure_loaded()
    _merge(current, patch)
    try:
        _FILE.parent.mkdir(parents=True, exist_ok=True)
        _FILE.write_text(json.dumps(current, indent=2))
    except OSError as exc:
        # memory stays authoritative; the next update writes again
        logger.warning("Could not persist settings to %s: %s", _FILE, exc)
    return dict(current)


_load()
