"""
config_paths.py
Central helpers for resolving user-writable config directories.

Follows the XDG Base Directory Specification:
  Config lives in $XDG_CONFIG_HOME/UKMerge  (default: ~/.config/UKMerge)
"""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "UKMerge"


def get_config_dir() -> Path:
    """Return the app config directory, creating it if it doesn't exist.

    Respects $XDG_CONFIG_HOME; falls back to ~/.config/UKMerge.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    config_dir = base / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_settings_path() -> Path:
    """Return the path to settings.json in the config directory.

    Result: ~/.config/UKMerge/settings.json
    """
    return get_config_dir() / "settings.json"


def get_merged_dir() -> Path:
    """Return the directory merged output is written to, creating it if needed.

    Result: ~/.config/UKMerge/merged/
    """
    d = get_config_dir() / "merged"
    d.mkdir(parents=True, exist_ok=True)
    return d
