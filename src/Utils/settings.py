"""
settings.py
User settings, persisted as settings.json in the config directory.

    {
      "platform": "switch",
      "dump_content_dir": "/path/to/romfs",
      "dump_aoc_dir": "/path/to/aoc/romfs",
      "workers": 4,
      "skip_missing": false
    }

Unknown keys are ignored so older and newer versions can share one file.
A file that cannot be read or parsed yields the defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from Utils.config_paths import get_settings_path
from Utils.endian import Endian, Platform

log = logging.getLogger(__name__)


@dataclass
class Settings:
    platform: Platform = Platform.SWITCH
    dump_content_dir: str | None = None
    dump_aoc_dir: str | None = None
    # None lets the executor pick its default
    workers: int | None = None
    skip_missing: bool = False

    @property
    def endian(self) -> Endian:
        return self.platform.endian

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "platform" in values:
            values["platform"] = Platform(values["platform"])
        return cls(**values)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["platform"] = self.platform.value
        return data

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Read settings from *path* (default: the config dir's settings.json)."""
        path = path or get_settings_path()
        if not path.is_file():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings root is not an object")
            return cls.from_dict(data)
        except (OSError, ValueError, TypeError) as exc:
            log.warning("Could not read settings from %s, using defaults: %s", path, exc)
            return cls()

    def save(self, path: Path | None = None) -> Path:
        path = path or get_settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return path
