"""
writer.py — Build SARC archives.

Writes the layout the reader expects.  Entry order and alignment depend only
on the entry names and contents, so an archive produced here and read back
serialises to the same bytes.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Iterator

from Utils.endian import Endian
from ukformats.aamp import is_aamp
from ukformats.sarc import yaz0
from ukformats.sarc.reader import HASH_KEY, MAGIC, SarcReader, name_hash

_HEADER_SIZE = 0x14
_SFAT_HEADER_SIZE = 0x0C
_NODE_SIZE = 0x10
_SFNT_HEADER_SIZE = 0x08
_VERSION = 0x0100
_NESTED_ALIGNMENT = 0x2000


def _align(value: int, alignment: int) -> int:
    return (value + alignment - 1) // alignment * alignment


def alignment_for(data: bytes) -> int:
    """Choose the data alignment for one entry from its content."""
    if data[:4] in (MAGIC, yaz0.MAGIC):
        return _NESTED_ALIGNMENT
    if is_aamp(data) or data[:2] in (b"BY", b"YB"):
        return 8
    return 4


class SarcWriter:
    """Collect named files and serialise them as a SARC archive."""

    def __init__(
        self,
        endian: Endian = Endian.LITTLE,
        files: dict[str, bytes] | None = None,
    ) -> None:
        self.endian = endian
        self.files: dict[str, bytes] = dict(files or {})

    @classmethod
    def from_reader(cls, reader: SarcReader) -> SarcWriter:
        return cls(reader.endian, reader.files())

    def add_file(self, name: str, data: bytes) -> None:
        self.files[name] = bytes(data)

    def to_binary(self) -> bytes:
        p = self.endian.prefix
        names = sorted(self.files, key=lambda n: (name_hash(n), n))

        # Name table
        name_table = bytearray()
        name_offsets: list[int] = []
        for name in names:
            name_offsets.append(len(name_table))
            name_table += name.encode("utf-8") + b"\x00"
            name_table += bytes(_align(len(name_table), 4) - len(name_table))

        tables_end = (
            _HEADER_SIZE + _SFAT_HEADER_SIZE + _NODE_SIZE * len(names)
            + _SFNT_HEADER_SIZE + len(name_table)
        )
        max_align = max((alignment_for(self.files[n]) for n in names), default=4)
        data_offset = _align(tables_end, max_align)

        # File data, each entry aligned for its own content
        blob = bytearray()
        ranges: list[tuple[int, int]] = []
        for name in names:
            data = self.files[name]
            start = _align(len(blob), alignment_for(data))
            blob += bytes(start - len(blob))
            blob += data
            ranges.append((start, start + len(data)))

        out = bytearray()
        out += struct.pack(
            p + "4sHHIIHH", MAGIC, _HEADER_SIZE, 0xFEFF,
            data_offset + len(blob), data_offset, _VERSION, 0,
        )
        out += struct.pack(p + "4sHHI", b"SFAT", _SFAT_HEADER_SIZE, len(names), HASH_KEY)
        for name, name_off, (start, end) in zip(names, name_offsets, ranges):
            attrs = 0x01000000 | (name_off // 4)
            out += struct.pack(p + "IIII", name_hash(name), attrs, start, end)
        out += struct.pack(p + "4sHH", b"SFNT", _SFNT_HEADER_SIZE, 0)
        out += name_table
        out += bytes(data_offset - len(out))
        out += blob
        return bytes(out)


def _iter_files(source_dir: Path) -> Iterator[tuple[Path, str]]:
    """Yield (absolute path, archive name with forward slashes) for each file under source_dir."""
    source = source_dir.resolve()
    for f in sorted(source.rglob("*")):
        if f.is_file():
            yield f, f.relative_to(source).as_posix()


def pack_sarc(
    source_dir: Path | str,
    output_path: Path | str,
    *,
    endian: Endian = Endian.LITTLE,
    compress: bool = False,
    progress_fn=None,
) -> int:
    """Pack a directory into a SARC file.

    compress: if True, Yaz0-compress the whole archive (for .s* names).
    progress_fn: optional callable(done: int, total: int) called after each file.

    Returns the number of files written.
    """
    source = Path(source_dir).resolve()
    output = Path(output_path).resolve()
    if not source.is_dir():
        raise NotADirectoryError(f"Source is not a directory: {source}")

    files = list(_iter_files(source))
    total = len(files)
    writer = SarcWriter(endian)
    for done, (path, name) in enumerate(files, 1):
        writer.add_file(name, path.read_bytes())
        if progress_fn:
            progress_fn(done, total)

    data = writer.to_binary()
    if compress:
        data = yaz0.compress(data)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    return total
