"""
manifest.py
Which top-level files a mod (or a merged set of mods) changes.

Paths are stored relative to their root, exactly as the files are named on
disk (compression 's' included), split by root:

    {"content": ["Actor/Pack/Foo.sbactorpack", ...],
     "aoc":     ["Map/CDungeon/Static.smubin", ...]}

resources() turns them into canonical table keys.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from Content.paths import AOC_PREFIX, canonical_path, split_root

log = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"


@dataclass
class Manifest:
    content_files: set[str] = field(default_factory=set)
    aoc_files: set[str] = field(default_factory=set)

    # -----------------------------------------------------------------------
    # Set operations
    # -----------------------------------------------------------------------

    def extend(self, other: Manifest) -> None:
        self.content_files |= other.content_files
        self.aoc_files |= other.aoc_files

    def clear(self) -> None:
        self.content_files.clear()
        self.aoc_files.clear()

    def is_empty(self) -> bool:
        return not self.content_files and not self.aoc_files

    def resources(self) -> Iterator[str]:
        """Canonical keys of every listed file, add-on content last."""
        for path in sorted(self.content_files):
            yield canonical_path(path)
        for path in sorted(self.aoc_files):
            yield AOC_PREFIX + canonical_path(path)

    def files(self) -> Iterator[tuple[bool, str]]:
        """(is_aoc, path relative to its root) for every listed file."""
        for path in sorted(self.content_files):
            yield False, path
        for path in sorted(self.aoc_files):
            yield True, path

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> Manifest:
        """Classify mod-relative paths by their content/ or aoc/ root.

        Paths under neither root (readme files, metadata) are not resources
        and are left out.
        """
        manifest = cls()
        for path in paths:
            norm = path.replace("\\", "/").lstrip("/")
            is_aoc, rel = split_root(norm)
            if not rel or rel == norm:
                log.debug("Not under a content root, ignored: %s", path)
                continue
            (manifest.aoc_files if is_aoc else manifest.content_files).add(rel)
        return manifest

    # -----------------------------------------------------------------------
    # Serialisation
    # -----------------------------------------------------------------------

    @classmethod
    def from_json(cls, text: str) -> Manifest:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("manifest root is not an object")
        return cls(set(data.get("content", [])), set(data.get("aoc", [])))

    def to_json(self) -> str:
        return json.dumps(
            {"content": sorted(self.content_files), "aoc": sorted(self.aoc_files)},
            indent=2,
        )

    @classmethod
    def from_file(cls, path: Path) -> Manifest:
        return cls.from_json(path.read_text(encoding="utf-8"))

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")
