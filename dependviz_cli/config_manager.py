"""Persisted control defaults stored in a TOML file."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import toml

from . import config
from .controls import ANALYZER_PROFILES, DEFAULT_ANALYZER, DEFAULT_CONTROLS, Controls

logger = logging.getLogger(__name__)

CONTROLS_SECTION = "controls"
ANALYZER_KEY = "analyzer"

# Keys whose values are not booleans; everything else is stored as bool.
_INT_KEYS = {"sliceDepth"}
_STR_KEYS = {"search", "focusedNode"}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(payload: Dict[str, Any]) -> None:
    config.ensure_base_dirs()
    with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
        toml.dump(payload, f)


def load_control_settings() -> Dict[str, Any]:
    """Flat camelCase control map: built-in defaults overlaid by the config file.

    Returns:
        Control map plus the ``analyzer`` profile name.
    """
    section = load_full_config().get(CONTROLS_SECTION, {})
    settings: Dict[str, Any] = {**DEFAULT_CONTROLS, ANALYZER_KEY: DEFAULT_ANALYZER}
    settings.update(section)
    return settings


def load_controls(overrides: Optional[Dict[str, Any]] = None) -> Controls:
    """Build :class:`Controls` from persisted settings and per-call overrides."""
    settings = load_control_settings()
    if overrides:
        settings.update(overrides)
    analyzer = settings.pop(ANALYZER_KEY, DEFAULT_ANALYZER)
    if analyzer not in ANALYZER_PROFILES:
        logger.warning("Unknown analyzer profile %r, using %s", analyzer, DEFAULT_ANALYZER)
        analyzer = DEFAULT_ANALYZER
    try:
        return Controls.from_mapping(settings, analyzer=analyzer)
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring invalid control settings in %s: %s", config.CONFIG_FILE, exc)
    fallback: Dict[str, Any] = dict(DEFAULT_CONTROLS)
    if overrides:
        fallback.update({k: v for k, v in overrides.items() if k != ANALYZER_KEY})
    return Controls.from_mapping(fallback, analyzer=analyzer)


def coerce_setting(key: str, raw: str) -> Any:
    """Convert a CLI string into the value type stored for *key*.

    Raises:
        ValueError: if the value does not fit the key.
    """
    if key == ANALYZER_KEY:
        if raw not in ANALYZER_PROFILES:
            raise ValueError(f"analyzer must be one of: {', '.join(sorted(ANALYZER_PROFILES))}")
        return raw
    if key in _STR_KEYS:
        return raw
    if key in _INT_KEYS:
        value = int(raw)
        if value < 0:
            raise ValueError(f"{key} must be >= 0")
        return value
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{key} expects a boolean, got {raw!r}")


def save_control_setting(key: str, value: Any) -> None:
    """Persist one control default, preserving other sections."""
    payload = load_full_config()
    section = payload.setdefault(CONTROLS_SECTION, {})
    section[key] = value
    _save_full_config(payload)


def reset_controls() -> None:
    """Remove the ``[controls]`` section, restoring built-in defaults."""
    payload = load_full_config()
    payload.pop(CONTROLS_SECTION, None)
    _save_full_config(payload)
