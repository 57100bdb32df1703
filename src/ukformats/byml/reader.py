"""
reader.py — decode BYML v2-v4 documents.

Header (0x10 bytes, scalars in the document's byte order):
    2B  magic           "BY" big endian, "YB" little endian
    2B  version         2..4
    4B  hash key table offset   (0 when the document has no hashes)
    4B  string table offset     (0 when the document has no strings)
    4B  root node offset        (0 for an empty document)

Container nodes start with a type byte and a u24 entry count.
  array:  count type bytes (padded to 4), then count u32 values
  hash:   count entries of (u24 key index, u8 type, u32 value)
  string table: count + 1 u32 offsets relative to the node, then the strings
Scalar values are stored inline; 64-bit values and binary blobs are stored
behind an offset.
"""

from __future__ import annotations

import struct
from typing import Any

from Utils.endian import Endian
from Utils.errors import ParseError
from ukformats.byml.types import BymlDocument, Double, Int64, NodeType, UInt, UInt64

SUPPORTED_VERSIONS = (2, 3, 4)
HEADER_SIZE = 0x10


def detect_endian(data: bytes) -> Endian:
    if len(data) < HEADER_SIZE:
        raise ParseError.eof("BYML header truncated")
    magic = data[:2]
    if magic == b"BY":
        return Endian.BIG
    if magic == b"YB":
        return Endian.LITTLE
    raise ParseError.bad_magic(f"expected BY or YB, found {magic!r}")


def is_byml(data: bytes) -> bool:
    return len(data) >= HEADER_SIZE and data[:2] in (b"BY", b"YB")


class _Reader:
    def __init__(self, data: bytes, endian: Endian) -> None:
        self.data = data
        self.endian = endian
        self.p = endian.prefix
        self.keys: list[str] = []
        self.strings: list[str] = []

    def unpack(self, fmt: str, offset: int) -> tuple:
        try:
            return struct.unpack_from(self.p + fmt, self.data, offset)
        except struct.error:
            raise ParseError.eof(f"read of {fmt!r} at 0x{offset:X}") from None

    def u24(self, offset: int) -> int:
        raw = self.data[offset:offset + 3]
        if len(raw) < 3:
            raise ParseError.eof(f"u24 at 0x{offset:X}")
        return int.from_bytes(raw, self.endian.value)

    def node_header(self, offset: int, expected: NodeType) -> int:
        if offset >= len(self.data):
            raise ParseError.eof(f"node at 0x{offset:X}")
        if self.data[offset] != expected:
            raise ParseError.type_mismatch(
                expected.name.lower(),
                f"node at 0x{offset:X} has type 0x{self.data[offset]:02X}",
            )
        return self.u24(offset + 1)

    def string_table(self, offset: int) -> list[str]:
        if offset == 0:
            return []
        count = self.node_header(offset, NodeType.STRING_TABLE)
        offsets = self.unpack(f"{count + 1}I", offset + 4)
        out = []
        for i in range(count):
            start = offset + offsets[i]
            end = self.data.find(b"\x00", start)
            if end < 0:
                raise ParseError.eof(f"unterminated string at 0x{start:X}")
            out.append(self.data[start:end].decode("utf-8"))
        return out

    def _indexed(self, table: list[str], index: int, what: str) -> str:
        if index >= len(table):
            raise ParseError.type_mismatch(what, f"index {index} outside table of {len(table)}")
        return table[index]

    def value(self, type_id: int, raw: int) -> Any:
        """Resolve one entry given its type byte and its u32 slot."""
        try:
            ntype = NodeType(type_id)
        except ValueError:
            raise ParseError.type_mismatch(
                "node", f"unknown node type 0x{type_id:02X}"
            ) from None
        if ntype is NodeType.NULL:
            return None
        if ntype is NodeType.BOOL:
            return raw != 0
        if ntype is NodeType.INT:
            return struct.unpack("<i", struct.pack("<I", raw))[0]
        if ntype is NodeType.UINT:
            return UInt(raw)
        if ntype is NodeType.FLOAT:
            return struct.unpack("<f", struct.pack("<I", raw))[0]
        if ntype is NodeType.STRING:
            return self._indexed(self.strings, raw, "string")
        if ntype is NodeType.INT64:
            return Int64(self.unpack("q", raw)[0])
        if ntype is NodeType.UINT64:
            return UInt64(self.unpack("Q", raw)[0])
        if ntype is NodeType.DOUBLE:
            return Double(self.unpack("d", raw)[0])
        if ntype is NodeType.BINARY:
            (size,) = self.unpack("I", raw)
            blob = self.data[raw + 4:raw + 4 + size]
            if len(blob) < size:
                raise ParseError.eof(f"binary node at 0x{raw:X}")
            return bytes(blob)
        if ntype is NodeType.ARRAY:
            return self.array(raw)
        if ntype is NodeType.HASH:
            return self.hash(raw)
        raise ParseError.type_mismatch("node", f"string table used as a value at 0x{raw:X}")

    def array(self, offset: int) -> list:
        count = self.node_header(offset, NodeType.ARRAY)
        types = self.data[offset + 4:offset + 4 + count]
        if len(types) < count:
            raise ParseError.eof(f"array at 0x{offset:X}")
        values_off = offset + 4 + (count + 3) // 4 * 4
        raws = self.unpack(f"{count}I", values_off)
        return [self.value(t, r) for t, r in zip(types, raws)]

    def hash(self, offset: int) -> dict:
        count = self.node_header(offset, NodeType.HASH)
        out: dict[str, Any] = {}
        for i in range(count):
            entry = offset + 4 + i * 8
            key = self._indexed(self.keys, self.u24(entry), "hash key")
            if entry + 3 >= len(self.data):
                raise ParseError.eof(f"hash entry at 0x{entry:X}")
            (raw,) = self.unpack("I", entry + 4)
            out[key] = self.value(self.data[entry + 3], raw)
        return out


def read_document(data: bytes) -> BymlDocument:
    """Parse a document, keeping its byte order and version."""
    data = bytes(data)
    endian = detect_endian(data)
    r = _Reader(data, endian)
    version, keys_off, strings_off, root_off = r.unpack("HIII", 2)
    if version not in SUPPORTED_VERSIONS:
        raise ParseError.bad_magic(f"unsupported BYML version {version}")
    r.keys = r.string_table(keys_off)
    r.strings = r.string_table(strings_off)
    if root_off == 0:
        return BymlDocument(None, endian, version)
    if root_off >= len(data):
        raise ParseError.eof(f"root node at 0x{root_off:X}")
    return BymlDocument(r.value(data[root_off], root_off), endian, version)


def from_binary(data: bytes) -> Any:
    """Parse a document and return its root node."""
    return read_document(data).root
