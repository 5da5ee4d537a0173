"""Configuration paths for local DependViz settings."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("DEPENDVIZ_HOME", str(Path.home() / ".dependviz"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
EXPORT_FORMATS = {"dot", "html", "json"}


def ensure_base_dirs() -> None:
    """Create the settings directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
