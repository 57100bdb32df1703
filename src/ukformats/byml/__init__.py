"""
byml — BYML v2-v4 typed binary trees (.byml, .bgdata, .mubin, ...).
"""

from __future__ import annotations

from ukformats.byml.reader import from_binary, is_byml, read_document
from ukformats.byml.types import (
    Byml, BymlDocument, Double, Int64, NodeType, UInt, UInt64,
    as_array, as_hash, as_int, as_string,
)
from ukformats.byml.writer import to_binary, write_document

__all__ = [
    "Byml", "BymlDocument", "Double", "Int64", "NodeType", "UInt", "UInt64",
    "as_array", "as_hash", "as_int", "as_string",
    "from_binary", "is_byml", "read_document", "to_binary", "write_document",
]
