"""
types.py — Python values for BYML nodes.

Plain Python types cover the common nodes:
    None → null, bool → bool, int → s32, float → f32, str → string,
    bytes → binary, list → array, dict → hash
The wrappers below keep the remaining scalar widths apart so a value read
as u32 or f64 is written back with the same node type.  They compare equal
only to values of the same wrapper type, so a diff notices a width change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

from Utils.endian import Endian
from Utils.errors import ParseError


class NodeType(IntEnum):
    STRING = 0xA0
    BINARY = 0xA1
    ARRAY = 0xC0
    HASH = 0xC1
    STRING_TABLE = 0xC2
    BOOL = 0xD0
    INT = 0xD1
    FLOAT = 0xD2
    UINT = 0xD3
    INT64 = 0xD4
    UINT64 = 0xD5
    DOUBLE = 0xD6
    NULL = 0xFF


class UInt(int):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return type(other) is UInt and int(self) == int(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = int.__hash__

    def __repr__(self) -> str:
        return f"UInt({int(self)})"


class Int64(int):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return type(other) is Int64 and int(self) == int(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = int.__hash__

    def __repr__(self) -> str:
        return f"Int64({int(self)})"


class UInt64(int):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return type(other) is UInt64 and int(self) == int(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = int.__hash__

    def __repr__(self) -> str:
        return f"UInt64({int(self)})"


class Double(float):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return type(other) is Double and float(self) == float(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = float.__hash__

    def __repr__(self) -> str:
        return f"Double({float(self)!r})"


Byml = Union[None, bool, int, float, str, bytes, list, dict]


@dataclass
class BymlDocument:
    """A parsed file: the root node plus the header fields needed to rewrite it."""
    root: Any
    endian: Endian = Endian.LITTLE
    version: int = 2


def node_type(value: Any) -> NodeType:
    """Node type a Python value is written as."""
    if value is None:
        return NodeType.NULL
    if isinstance(value, bool):
        return NodeType.BOOL
    if isinstance(value, UInt):
        return NodeType.UINT
    if isinstance(value, Int64):
        return NodeType.INT64
    if isinstance(value, UInt64):
        return NodeType.UINT64
    if isinstance(value, int):
        return NodeType.INT
    if isinstance(value, Double):
        return NodeType.DOUBLE
    if isinstance(value, float):
        return NodeType.FLOAT
    if isinstance(value, str):
        return NodeType.STRING
    if isinstance(value, (bytes, bytearray)):
        return NodeType.BINARY
    if isinstance(value, list):
        return NodeType.ARRAY
    if isinstance(value, dict):
        return NodeType.HASH
    raise TypeError(f"cannot store {type(value).__name__} in a BYML document")


def as_hash(value: Any, field: str = "root") -> dict:
    """Return *value* if it is a hash node, else raise a type mismatch."""
    if not isinstance(value, dict):
        raise ParseError.type_mismatch(field, f"expected hash, found {type(value).__name__}")
    return value


def as_array(value: Any, field: str = "root") -> list:
    if not isinstance(value, list):
        raise ParseError.type_mismatch(field, f"expected array, found {type(value).__name__}")
    return value


def as_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ParseError.type_mismatch(field, f"expected string, found {type(value).__name__}")
    return value


def as_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError.type_mismatch(field, f"expected integer, found {type(value).__name__}")
    return int(value)
