"""
writer.py — encode BYML documents.

Output is a pure function of the tree: the key and string tables are
sorted, hash entries are written in key order and container nodes are laid
out depth first after their parent, so identical trees give identical bytes
regardless of dict insertion order.
"""

from __future__ import annotations

import struct
from typing import Any

from Utils.endian import Endian
from ukformats.byml.reader import HEADER_SIZE
from ukformats.byml.types import BymlDocument, NodeType, node_type

_INLINE = frozenset({
    NodeType.NULL, NodeType.BOOL, NodeType.INT, NodeType.UINT,
    NodeType.FLOAT, NodeType.STRING,
})


def _collect(value: Any, keys: set[str], strings: set[str]) -> None:
    if isinstance(value, dict):
        for k, v in value.items():
            keys.add(k)
            _collect(v, keys, strings)
    elif isinstance(value, list):
        for v in value:
            _collect(v, keys, strings)
    elif isinstance(value, str):
        strings.add(value)


class _Writer:
    def __init__(self, endian: Endian, keys: list[str], strings: list[str]) -> None:
        self.p = endian.prefix
        self.endian = endian
        self.buf = bytearray()
        self.key_index = {k: i for i, k in enumerate(keys)}
        self.string_index = {s: i for i, s in enumerate(strings)}

    def pack(self, fmt: str, *values) -> bytes:
        return struct.pack(self.p + fmt, *values)

    def align(self) -> None:
        self.buf += bytes(-len(self.buf) % 4)

    def u24(self, value: int) -> bytes:
        return value.to_bytes(3, self.endian.value)

    def patch(self, at: int, value: int) -> None:
        self.buf[at:at + 4] = self.pack("I", value)

    def string_table(self, items: list[str]) -> int:
        if not items:
            return 0
        self.align()
        start = len(self.buf)
        encoded = [s.encode("utf-8") + b"\x00" for s in items]
        pos = 4 + 4 * (len(items) + 1)
        offsets = []
        for e in encoded:
            offsets.append(pos)
            pos += len(e)
        offsets.append(pos)
        self.buf += bytes([NodeType.STRING_TABLE]) + self.u24(len(items))
        self.buf += self.pack(f"{len(offsets)}I", *offsets)
        for e in encoded:
            self.buf += e
        self.align()
        return start

    def inline(self, ntype: NodeType, value: Any) -> int:
        """u32 slot for a value stored inside its parent."""
        if ntype is NodeType.NULL:
            return 0
        if ntype is NodeType.BOOL:
            return 1 if value else 0
        if ntype is NodeType.INT:
            return struct.unpack("<I", struct.pack("<i", value))[0]
        if ntype is NodeType.UINT:
            return int(value)
        if ntype is NodeType.FLOAT:
            return struct.unpack("<I", struct.pack("<f", value))[0]
        return self.string_index[value]

    def node(self, ntype: NodeType, value: Any) -> int:
        """Write a value that lives behind an offset; return that offset."""
        self.align()
        start = len(self.buf)
        if ntype is NodeType.INT64:
            self.buf += self.pack("q", value)
        elif ntype is NodeType.UINT64:
            self.buf += self.pack("Q", value)
        elif ntype is NodeType.DOUBLE:
            self.buf += self.pack("d", value)
        elif ntype is NodeType.BINARY:
            self.buf += self.pack("I", len(value)) + bytes(value)
            self.align()
        elif ntype is NodeType.ARRAY:
            self.container(ntype, [(None, v) for v in value])
        else:
            self.container(ntype, [(k, value[k]) for k in sorted(value)])
        return start

    def container(self, ntype: NodeType, items: list[tuple[str | None, Any]]) -> None:
        types = [node_type(v) for _k, v in items]
        self.buf += bytes([ntype]) + self.u24(len(items))
        pending: list[tuple[int, NodeType, Any]] = []
        if ntype is NodeType.ARRAY:
            self.buf += bytes(types)
            self.align()
            for t, (_k, v) in zip(types, items):
                pending.append((len(self.buf), t, v))
                self.buf += bytes(4)
        else:
            for t, (k, v) in zip(types, items):
                self.buf += self.u24(self.key_index[k]) + bytes([t])
                pending.append((len(self.buf), t, v))
                self.buf += bytes(4)
        for at, t, v in pending:
            self.patch(at, self.inline(t, v) if t in _INLINE else self.node(t, v))


def to_binary(root: Any, endian: Endian = Endian.LITTLE, version: int = 2) -> bytes:
    """Serialise *root* (a hash, an array or None)."""
    keys: set[str] = set()
    strings: set[str] = set()
    _collect(root, keys, strings)
    key_list = sorted(keys)
    string_list = sorted(strings)

    w = _Writer(endian, key_list, string_list)
    w.buf += bytes(HEADER_SIZE)
    keys_off = w.string_table(key_list)
    strings_off = w.string_table(string_list)
    root_off = 0
    if root is not None:
        rtype = node_type(root)
        if rtype not in (NodeType.ARRAY, NodeType.HASH):
            raise TypeError(f"BYML root must be an array or hash, not {rtype.name.lower()}")
        root_off = w.node(rtype, root)
    magic = b"BY" if endian is Endian.BIG else b"YB"
    w.buf[:HEADER_SIZE] = magic + w.pack("HIII", version, keys_off, strings_off, root_off)
    return bytes(w.buf)


def write_document(doc: BymlDocument) -> bytes:
    return to_binary(doc.root, doc.endian, doc.version)
