"""
reader.py — SARC archive reader.

SARC is the container used for packs (.pack, .sbactorpack, .ssarc, ...).
Layout (scalars use the archive's byte order, given by the BOM):
  - 0x14 bytes header: "SARC", header size (0x14), BOM (0xFEFF), file size,
    data offset, version (0x0100), reserved
  - 0x0C bytes SFAT header: "SFAT", header size (0x0C), node count, hash key
  - node count * 0x10 bytes: name hash, attributes, data start, data end
      attributes = 0x01000000 | (name offset / 4); data offsets are relative
      to the data offset in the header
  - 0x08 bytes SFNT header: "SFNT", header size (0x08), reserved
  - NUL-terminated names, each padded to 4 bytes
  - File data
"""

from __future__ import annotations

import struct
from typing import Iterator, NamedTuple

from Utils.endian import Endian
from Utils.errors import ParseError

MAGIC = b"SARC"
HASH_KEY = 0x65
_HEADER_SIZE = 0x14
_SFAT_HEADER_SIZE = 0x0C
_NODE_SIZE = 0x10
_SFNT_HEADER_SIZE = 0x08


class SarcEntry(NamedTuple):
    """Single file entry in a SARC archive (directory only)."""
    name: str
    name_hash: int
    data_start: int
    data_end: int

    @property
    def size(self) -> int:
        return self.data_end - self.data_start


def name_hash(name: str, key: int = HASH_KEY) -> int:
    """Hash an entry name the way the SFAT table does (bytes as signed chars)."""
    h = 0
    for b in name.encode("utf-8"):
        if b >= 0x80:
            b -= 0x100
        h = (h * key + b) & 0xFFFFFFFF
    return h


def detect_endian(data: bytes) -> Endian:
    if len(data) < 8:
        raise ParseError.eof("SARC header truncated")
    bom = data[6:8]
    if bom == b"\xfe\xff":
        return Endian.BIG
    if bom == b"\xff\xfe":
        return Endian.LITTLE
    raise ParseError.bad_magic(f"invalid SARC byte order mark {bom.hex()}")


def is_sarc(data: bytes) -> bool:
    return len(data) >= _HEADER_SIZE and data[:4] == MAGIC


class SarcReader:
    """Read a SARC archive held in memory: list entries and get file data."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._entries: list[SarcEntry] = []
        self._by_name: dict[str, SarcEntry] = {}
        self.endian = Endian.LITTLE
        self._data_offset = 0
        self._parse()

    def _parse(self) -> None:
        data = self._data
        if len(data) < _HEADER_SIZE:
            raise ParseError.eof("SARC header truncated")
        if data[:4] != MAGIC:
            raise ParseError.bad_magic(f"expected SARC, found {data[:4]!r}")
        self.endian = detect_endian(data)
        p = self.endian.prefix
        _hdr_size, _bom, _file_size, data_offset, _version, _ = struct.unpack_from(
            p + "HHIIHH", data, 4
        )
        try:
            sfat_magic, _sfat_size, node_count, _key = struct.unpack_from(
                p + "4sHHI", data, _HEADER_SIZE
            )
            if sfat_magic != b"SFAT":
                raise ParseError.bad_magic(f"expected SFAT, found {sfat_magic!r}")
            nodes_start = _HEADER_SIZE + _SFAT_HEADER_SIZE
            sfnt_start = nodes_start + node_count * _NODE_SIZE
            (sfnt_magic,) = struct.unpack_from("4s", data, sfnt_start)
            if sfnt_magic != b"SFNT":
                raise ParseError.bad_magic(f"expected SFNT, found {sfnt_magic!r}")
            names_start = sfnt_start + _SFNT_HEADER_SIZE
            for i in range(node_count):
                h, attrs, start, end = struct.unpack_from(
                    p + "IIII", data, nodes_start + i * _NODE_SIZE
                )
                if attrs >> 24 == 0:
                    raise ParseError.type_mismatch(
                        "name", f"SARC node {i} (hash {h:08X}) has no name"
                    )
                name_off = names_start + (attrs & 0xFFFFFF) * 4
                nul = data.find(b"\x00", name_off)
                if nul < 0:
                    raise ParseError.eof("SARC name table truncated")
                name = data[name_off:nul].decode("utf-8")
                if data_offset + end > len(data) or start > end:
                    raise ParseError.eof(f"SARC entry {name!r} extends past end of archive")
                entry = SarcEntry(name=name, name_hash=h, data_start=start, data_end=end)
                self._entries.append(entry)
                self._by_name[name] = entry
        except struct.error as exc:
            raise ParseError.eof(f"SARC tables truncated ({exc})") from None
        self._data_offset = data_offset

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def list_entries(self) -> list[SarcEntry]:
        """Return directory entries in node (hash) order."""
        return list(self._entries)

    def _read(self, entry: SarcEntry) -> bytes:
        base = self._data_offset
        return self._data[base + entry.data_start:base + entry.data_end]

    def get_file(self, name: str) -> bytes | None:
        """Return the stored bytes of *name* (leading '/' tolerated), or None."""
        entry = self._by_name.get(name)
        if entry is None and name.startswith("/"):
            entry = self._by_name.get(name[1:])
        if entry is None:
            return None
        return self._read(entry)

    def iter_files(self) -> Iterator[tuple[str, bytes]]:
        for entry in self._entries:
            yield entry.name, self._read(entry)

    def files(self) -> dict[str, bytes]:
        """Return {name: stored bytes} in node order."""
        return dict(self.iter_files())
