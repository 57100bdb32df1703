"""
mod_reader.py
Locate the resource files inside a mod, whatever it is packaged as.

A mod is a folder, a .zip or a .7z whose root holds content/ and/or
aoc/0010/ (or the Switch romfs layout).  A single wrapping folder around
that root is skipped.  Archives are extracted to a temporary directory that
is removed on close().

When the mod ships a manifest.json it decides which files count; otherwise
one is derived from the files found under the content roots.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Iterator

import py7zr

from Content.archive import ResourceTable
from Utils.dump import DumpProvider
from Utils.errors import MissingResource
from Utils.manifest import MANIFEST_NAME, Manifest
from Utils.merge import output_path

log = logging.getLogger(__name__)

_ROOT_NAMES = frozenset({"content", "aoc", "01007ef00011e000", "01007ef00011f001"})


def _find_root(path: Path) -> Path:
    """Descend through single wrapping folders until a content root shows up."""
    while True:
        children = [c for c in path.iterdir() if not c.name.startswith(".")]
        if any(c.is_dir() and c.name.lower() in _ROOT_NAMES for c in children):
            return path
        if (path / MANIFEST_NAME).is_file():
            return path
        dirs = [c for c in children if c.is_dir()]
        if len(dirs) != 1 or len(children) != 1:
            return path
        path = dirs[0]


class ModReader:

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.name = self.path.stem if self.path.is_file() else self.path.name
        self._extract_dir: str | None = None
        self.root = _find_root(self._open())
        self.manifest = self._read_manifest()

    def __enter__(self) -> ModReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _open(self) -> Path:
        if self.path.is_dir():
            return self.path
        ext = self.path.name.lower()
        if not (ext.endswith(".zip") or ext.endswith(".7z")):
            raise ValueError(f"Unsupported mod package: {self.path.name}")
        self._extract_dir = tempfile.mkdtemp(prefix="ukmerge_")
        try:
            if ext.endswith(".zip"):
                with zipfile.ZipFile(self.path, "r") as z:
                    z.extractall(self._extract_dir)
            else:
                with py7zr.SevenZipFile(self.path, "r") as z:
                    z.extractall(self._extract_dir)
        except Exception:
            self.close()
            raise
        log.debug("Extracted %s to %s", self.path, self._extract_dir)
        return Path(self._extract_dir)

    def close(self) -> None:
        if self._extract_dir is not None:
            shutil.rmtree(self._extract_dir, ignore_errors=True)
            self._extract_dir = None

    def _all_files(self) -> list[str]:
        found: list[str] = []
        for dirpath, _dirnames, filenames in os.walk(self.root):
            for fname in filenames:
                full = Path(dirpath) / fname
                found.append(full.relative_to(self.root).as_posix())
        return sorted(found)

    def _read_manifest(self) -> Manifest:
        path = self.root / MANIFEST_NAME
        if path.is_file():
            try:
                return Manifest.from_file(path)
            except (OSError, ValueError) as exc:
                log.warning("%s: unreadable %s, deriving one (%s)", self.name, MANIFEST_NAME, exc)
        return Manifest.from_paths(self._all_files())

    def _locate(self, is_aoc: bool, rel: str) -> Path | None:
        """On-disk file for a manifest entry, trying every root spelling."""
        if is_aoc:
            candidates = ("aoc/0010", "aoc", "01007ef00011f001/romfs")
        else:
            candidates = ("content", "01007ef00011e000/romfs")
        for prefix in candidates:
            file = self.root / prefix / rel
            if file.is_file():
                return file
        return None

    def iter_resources(self) -> Iterator[tuple[str, bytes]]:
        """(output path, stored bytes) for every file the manifest lists."""
        for is_aoc, rel in self.manifest.files():
            file = self._locate(is_aoc, rel)
            path = output_path(is_aoc, rel)
            if file is None:
                raise MissingResource(path, self.name)
            yield path, file.read_bytes()


def build_mod_table(
    reader: ModReader,
    dump: DumpProvider,
    log_fn=None,
) -> tuple[ResourceTable, ResourceTable]:
    """Load a mod's files and the dump files they replace.

    Returns (base table, mod table).  Files the dump does not have are new
    and only appear in the mod table.
    """
    _log = log_fn or (lambda _: None)
    base = ResourceTable()
    mod = ResourceTable()
    for path, data in reader.iter_resources():
        mod.add(path, data)
        try:
            base.add(path, dump.read_file(path))
        except MissingResource:
            log.debug("%s: %s is not in the dump", reader.name, path)
            _log(f"{reader.name}: new file {path}")
    return base, mod
