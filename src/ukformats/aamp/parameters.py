"""
parameters.py — in-memory tree for AAMP parameter archives.

A ParameterIO is a root ParameterList plus a version and a type name.
Lists hold named child lists and named objects; objects hold named typed
parameters.  Names are stored as CRC32 hashes because the binary format keeps
only the hash; every lookup accepts either the hash or the plain name.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterator, Union

from Utils.endian import Endian
from Utils.errors import ParseError

Name = Union[str, int]


def name_hash(key: Name) -> int:
    """CRC32 of a parameter name; ints are taken as already-hashed names."""
    if isinstance(key, int):
        return key
    return zlib.crc32(key.encode("utf-8"))


ROOT_KEY = name_hash("param_root")


class ParamType(IntEnum):
    BOOL = 0
    F32 = 1
    INT = 2
    VEC2 = 3
    VEC3 = 4
    VEC4 = 5
    COLOR = 6
    STRING32 = 7
    STRING64 = 8
    CURVE1 = 9
    CURVE2 = 10
    CURVE3 = 11
    CURVE4 = 12
    BUFFER_INT = 13
    BUFFER_F32 = 14
    STRING256 = 15
    QUAT = 16
    U32 = 17
    BUFFER_U32 = 18
    BUFFER_BINARY = 19
    STRING_REF = 20


STRING_TYPES = frozenset({
    ParamType.STRING32, ParamType.STRING64, ParamType.STRING256, ParamType.STRING_REF,
})
VECTOR_SIZES = {
    ParamType.VEC2: 2, ParamType.VEC3: 3, ParamType.VEC4: 4,
    ParamType.COLOR: 4, ParamType.QUAT: 4,
}
CURVE_COUNTS = {
    ParamType.CURVE1: 1, ParamType.CURVE2: 2, ParamType.CURVE3: 3, ParamType.CURVE4: 4,
}
# struct item codes for numeric buffers; BUFFER_BINARY is raw bytes
BUFFER_FORMATS = {
    ParamType.BUFFER_INT: "i", ParamType.BUFFER_F32: "f", ParamType.BUFFER_U32: "I",
}
CURVE_FLOATS = 30


@dataclass(frozen=True)
class Curve:
    a: int
    b: int
    floats: tuple[float, ...]


@dataclass(frozen=True)
class Parameter:
    """One typed value.  Vectors, curves and buffers are stored as tuples."""
    type: ParamType
    value: Any

    # -- constructors --------------------------------------------------------

    @classmethod
    def bool(cls, value: bool) -> Parameter:
        return cls(ParamType.BOOL, bool(value))

    @classmethod
    def f32(cls, value: float) -> Parameter:
        return cls(ParamType.F32, float(value))

    @classmethod
    def int(cls, value: int) -> Parameter:
        return cls(ParamType.INT, value)

    @classmethod
    def u32(cls, value: int) -> Parameter:
        return cls(ParamType.U32, value)

    @classmethod
    def vec3(cls, x: float, y: float, z: float) -> Parameter:
        return cls(ParamType.VEC3, (float(x), float(y), float(z)))

    @classmethod
    def string32(cls, value: str) -> Parameter:
        return cls(ParamType.STRING32, value)

    @classmethod
    def string64(cls, value: str) -> Parameter:
        return cls(ParamType.STRING64, value)

    @classmethod
    def string256(cls, value: str) -> Parameter:
        return cls(ParamType.STRING256, value)

    @classmethod
    def string_ref(cls, value: str) -> Parameter:
        return cls(ParamType.STRING_REF, value)

    # -- accessors -----------------------------------------------------------

    def _expect(self, types, wanted: str) -> Any:
        if self.type not in types:
            raise ParseError.type_mismatch(
                wanted, f"parameter is {self.type.name}, expected {wanted}"
            )
        return self.value

    def as_bool(self) -> bool:
        return self._expect((ParamType.BOOL,), "bool")

    def as_int(self) -> int:
        return self._expect((ParamType.INT, ParamType.U32), "int")

    def as_float(self) -> float:
        return self._expect((ParamType.F32,), "f32")

    def as_string(self) -> str:
        return self._expect(STRING_TYPES, "string")


class ParameterObject:
    """Ordered mapping of name hash → Parameter."""

    __slots__ = ("params",)

    def __init__(self, params: dict[int, Parameter] | None = None) -> None:
        self.params: dict[int, Parameter] = dict(params or {})

    def __getitem__(self, key: Name) -> Parameter:
        return self.params[name_hash(key)]

    def __setitem__(self, key: Name, value: Parameter) -> None:
        self.params[name_hash(key)] = value

    def __delitem__(self, key: Name) -> None:
        del self.params[name_hash(key)]

    def __contains__(self, key: Name) -> bool:
        return name_hash(key) in self.params

    def __iter__(self) -> Iterator[int]:
        return iter(self.params)

    def __len__(self) -> int:
        return len(self.params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterObject):
            return NotImplemented
        return self.params == other.params

    def __repr__(self) -> str:
        return f"ParameterObject({self.params!r})"

    def get(self, key: Name, default: Parameter | None = None) -> Parameter | None:
        return self.params.get(name_hash(key), default)

    def require(self, key: Name) -> Parameter:
        """Return the parameter or raise ParseError naming the missing field."""
        param = self.params.get(name_hash(key))
        if param is None:
            raise ParseError.type_mismatch(str(key), "missing parameter")
        return param

    def items(self):
        return self.params.items()

    def with_param(self, key: Name, value: Parameter) -> ParameterObject:
        self[key] = value
        return self

    def copy(self) -> ParameterObject:
        return ParameterObject(self.params)


class ParameterList:
    """Ordered child lists and objects, both keyed by name hash."""

    def __init__(
        self,
        lists: dict[int, ParameterList] | None = None,
        objects: dict[int, ParameterObject] | None = None,
    ) -> None:
        self.lists: dict[int, ParameterList] = dict(lists or {})
        self.objects: dict[int, ParameterObject] = dict(objects or {})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterList):
            return NotImplemented
        return self.lists == other.lists and self.objects == other.objects

    def __repr__(self) -> str:
        return f"{type(self).__name__}(lists={self.lists!r}, objects={self.objects!r})"

    def object(self, key: Name) -> ParameterObject | None:
        return self.objects.get(name_hash(key))

    def list(self, key: Name) -> ParameterList | None:
        return self.lists.get(name_hash(key))

    def require_object(self, key: Name) -> ParameterObject:
        obj = self.object(key)
        if obj is None:
            raise ParseError.type_mismatch(str(key), "missing parameter object")
        return obj

    def require_list(self, key: Name) -> ParameterList:
        plist = self.list(key)
        if plist is None:
            raise ParseError.type_mismatch(str(key), "missing parameter list")
        return plist

    def set_object(self, key: Name, obj: ParameterObject) -> None:
        self.objects[name_hash(key)] = obj

    def set_list(self, key: Name, plist: ParameterList) -> None:
        self.lists[name_hash(key)] = plist

    def with_object(self, key: Name, obj: ParameterObject) -> ParameterList:
        self.set_object(key, obj)
        return self

    def with_list(self, key: Name, plist: ParameterList) -> ParameterList:
        self.set_list(key, plist)
        return self


class ParameterIO(ParameterList):
    """Root of a parameter archive."""

    def __init__(
        self,
        lists: dict[int, ParameterList] | None = None,
        objects: dict[int, ParameterObject] | None = None,
        version: int = 0,
        data_type: str = "xml",
    ) -> None:
        super().__init__(lists, objects)
        self.version = version
        self.data_type = data_type
        # Byte order the archive was read with; carried forward on write
        self.endian = Endian.LITTLE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterList):
            return NotImplemented
        if isinstance(other, ParameterIO) and (
            self.version != other.version or self.data_type != other.data_type
        ):
            return False
        return super().__eq__(other)

    @classmethod
    def from_binary(cls, data: bytes) -> ParameterIO:
        from ukformats.aamp.reader import read_pio
        return read_pio(data)

    def to_binary(self, endian: Endian | None = None) -> bytes:
        from ukformats.aamp.writer import write_pio
        return write_pio(self, endian or self.endian)
