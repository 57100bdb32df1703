"""
dump.py
Read-only access to an unpacked game dump.

The dump is a content root (the "romfs" of the base game and update) plus an
optional add-on content root.  Paths may reach into archives with "//":

    Pack/Bootup.pack//Ecosystem/AreaData.sbyml
    Aoc/0010/Pack/AocMainField.pack//Map/MainField/Static.smubin

Every archive on the way is Yaz0-decompressed as needed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from Content.paths import split_root
from Content.resource import ResourceData
from ukformats.sarc import SarcReader, yaz0
from Utils.errors import MergeError, MissingResource, with_path

log = logging.getLogger(__name__)


class DumpProvider:

    def __init__(self, content_dir: Path | str, aoc_dir: Path | str | None = None) -> None:
        self.content_dir = Path(content_dir)
        self.aoc_dir = Path(aoc_dir) if aoc_dir is not None else None

    def _file(self, path: str) -> Path:
        is_aoc, rel = split_root(path)
        root = self.aoc_dir if is_aoc else self.content_dir
        if root is None:
            raise MissingResource(path)
        return root / rel

    def read_file(self, path: str) -> bytes:
        """Stored bytes of a top-level file, compression untouched."""
        file = self._file(path)
        if not file.is_file():
            raise MissingResource(path)
        return file.read_bytes()

    def has_file(self, path: str) -> bool:
        try:
            return self._file(path).is_file()
        except MissingResource:
            return False

    def get_data(self, path: str) -> bytes:
        """Decompressed bytes of a file or a (nested) archive member."""
        outer, *members = path.replace("\\", "/").split("//")
        data = self.read_file(outer)
        archive = outer
        try:
            for member in members:
                reader = SarcReader(yaz0.decompress_if(data))
                found = reader.get_file(member)
                if found is None:
                    found = reader.get_file("/" + member)
                if found is None:
                    raise MissingResource(member, archive)
                data = found
                archive = f"{archive}//{member}"
            return yaz0.decompress_if(data)
        except MissingResource:
            raise
        except MergeError as exc:
            raise with_path(exc, archive)

    def get_from_sarc(self, primary_path: str, fallback_path: str) -> bytes:
        """Loose *primary_path* if the dump has one, else the archived *fallback_path*."""
        if self.has_file(primary_path):
            return yaz0.decompress_if(self.read_file(primary_path))
        log.debug("%s not loose, reading %s", primary_path, fallback_path)
        return self.get_data(fallback_path)

    def get_resource(self, path: str) -> ResourceData:
        return ResourceData.from_binary(path, self.get_data(path))
