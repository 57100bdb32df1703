"""
reader.py — decode AAMP v2 parameter archives.

Header layout (0x30 bytes):
    4B  magic            "AAMP"
    4B  version          2
    4B  flags            bit 0 = little endian, bit 1 = UTF-8
    4B  file size
    4B  pio version
    4B  pio offset       root list offset, relative to the end of the header
    4B  list count
    4B  object count
    4B  parameter count
    4B  data section size
    4B  string section size
    4B  unknown section size
Then the NUL-terminated type name ("xml"), the root list and the tables.

List (12 bytes):   name crc32, u16 lists offset/4, u16 list count,
                   u16 objects offset/4, u16 object count
Object (8 bytes):  name crc32, u16 params offset/4, u16 param count
Parameter (8 bytes): name crc32, u24 data offset/4, u8 type
Offsets are relative to the start of the entry holding them.
"""

from __future__ import annotations

import struct

from Utils.endian import Endian
from Utils.errors import ParseError
from ukformats.aamp.parameters import (
    BUFFER_FORMATS, CURVE_COUNTS, CURVE_FLOATS, STRING_TYPES, VECTOR_SIZES,
    Curve, Parameter, ParameterIO, ParameterList, ParameterObject, ParamType,
)

MAGIC = b"AAMP"
HEADER_SIZE = 0x30
FLAG_LITTLE_ENDIAN = 1
FLAG_UTF8 = 2


def detect_endian(data: bytes) -> Endian:
    if len(data) < HEADER_SIZE:
        raise ParseError.eof("parameter archive header truncated")
    if data[:4] != MAGIC:
        raise ParseError.bad_magic(f"expected AAMP, found {data[:4]!r}")
    # flags is read little-endian first; a big-endian file never has bit 0
    # set in its low byte.
    (flags,) = struct.unpack_from("<I", data, 8)
    return Endian.LITTLE if flags & FLAG_LITTLE_ENDIAN else Endian.BIG


class _Reader:
    def __init__(self, data: bytes, endian: Endian) -> None:
        self.data = data
        self.p = endian.prefix
        self.endian = endian

    def unpack(self, fmt: str, offset: int) -> tuple:
        try:
            return struct.unpack_from(self.p + fmt, self.data, offset)
        except struct.error:
            raise ParseError.eof(f"read of {fmt!r} at 0x{offset:X}") from None

    def u24(self, offset: int) -> int:
        raw = self.data[offset:offset + 3]
        if len(raw) < 3:
            raise ParseError.eof(f"u24 at 0x{offset:X}")
        order = "big" if self.endian is Endian.BIG else "little"
        return int.from_bytes(raw, order)

    def cstring(self, offset: int) -> str:
        end = self.data.find(b"\x00", offset)
        if end < 0:
            raise ParseError.eof(f"unterminated string at 0x{offset:X}")
        return self.data[offset:end].decode("utf-8")

    def parameter(self, offset: int) -> tuple[int, Parameter]:
        (crc,) = self.unpack("I", offset)
        rel = self.u24(offset + 4)
        if offset + 7 >= len(self.data):
            raise ParseError.eof(f"parameter at 0x{offset:X}")
        type_id = self.data[offset + 7]
        try:
            ptype = ParamType(type_id)
        except ValueError:
            raise ParseError.type_mismatch(
                f"{crc:08X}", f"unknown parameter type {type_id}"
            ) from None
        addr = offset + rel * 4
        return crc, Parameter(ptype, self.value(ptype, addr))

    def value(self, ptype: ParamType, addr: int):
        if ptype is ParamType.BOOL:
            return self.unpack("I", addr)[0] != 0
        if ptype is ParamType.F32:
            return self.unpack("f", addr)[0]
        if ptype is ParamType.INT:
            return self.unpack("i", addr)[0]
        if ptype is ParamType.U32:
            return self.unpack("I", addr)[0]
        if ptype in VECTOR_SIZES:
            return self.unpack(f"{VECTOR_SIZES[ptype]}f", addr)
        if ptype in STRING_TYPES:
            return self.cstring(addr)
        if ptype in CURVE_COUNTS:
            curves = []
            for i in range(CURVE_COUNTS[ptype]):
                fields = self.unpack(f"II{CURVE_FLOATS}f", addr + i * 128)
                curves.append(Curve(fields[0], fields[1], tuple(fields[2:])))
            return tuple(curves)
        (count,) = self.unpack("I", addr - 4)
        if ptype is ParamType.BUFFER_BINARY:
            raw = self.data[addr:addr + count]
            if len(raw) < count:
                raise ParseError.eof(f"binary buffer at 0x{addr:X}")
            return bytes(raw)
        return self.unpack(f"{count}{BUFFER_FORMATS[ptype]}", addr)

    def pobject(self, offset: int) -> tuple[int, ParameterObject]:
        crc, rel, count = self.unpack("IHH", offset)
        start = offset + rel * 4
        obj = ParameterObject()
        for i in range(count):
            key, param = self.parameter(start + i * 8)
            obj.params[key] = param
        return crc, obj

    def plist(self, offset: int, into: ParameterList) -> ParameterList:
        _crc, lists_rel, list_count, objs_rel, obj_count = self.unpack("IHHHH", offset)
        lists_start = offset + lists_rel * 4
        for i in range(list_count):
            child_off = lists_start + i * 12
            (child_crc,) = self.unpack("I", child_off)
            into.lists[child_crc] = self.plist(child_off, ParameterList())
        objs_start = offset + objs_rel * 4
        for i in range(obj_count):
            key, obj = self.pobject(objs_start + i * 8)
            into.objects[key] = obj
        return into


def read_pio(data: bytes) -> ParameterIO:
    """Parse a parameter archive, detecting its byte order from the header."""
    data = bytes(data)
    endian = detect_endian(data)
    r = _Reader(data, endian)
    (version, _flags, _size, pio_version, pio_offset) = r.unpack("IIIII", 4)
    if version != 2:
        raise ParseError.bad_magic(f"unsupported parameter archive version {version}")
    data_type = r.cstring(HEADER_SIZE)
    pio = ParameterIO(version=pio_version, data_type=data_type)
    r.plist(HEADER_SIZE + pio_offset, pio)
    pio.endian = endian
    return pio
