"""
writer.py — encode a ParameterIO as an AAMP v2 archive.

The tree is flattened before anything is written:
  - lists breadth first, so the children of every list are contiguous
  - objects grouped by owning list, in list order
  - parameters grouped by owning object, in object order
followed by the data section (scalars, vectors, curves, buffers) and the
string section (each distinct string stored once).

Iteration follows dict order throughout, so a tree read by reader.py writes
back to the bytes it came from.
"""

from __future__ import annotations

import struct

from Utils.endian import Endian
from ukformats.aamp.parameters import (
    BUFFER_FORMATS, CURVE_COUNTS, ROOT_KEY, STRING_TYPES, VECTOR_SIZES,
    Parameter, ParameterIO, ParameterList, ParameterObject, ParamType,
)
from ukformats.aamp.reader import FLAG_LITTLE_ENDIAN, FLAG_UTF8, HEADER_SIZE, MAGIC

_LIST_SIZE = 12
_OBJECT_SIZE = 8
_PARAM_SIZE = 8


def _pad4(buf: bytearray) -> None:
    buf += bytes(-len(buf) % 4)


def _rel16(target: int, origin: int) -> int:
    rel = (target - origin) // 4
    if not 0 <= rel <= 0xFFFF:
        raise ValueError(f"parameter archive too large: offset {rel * 4:#x} exceeds u16")
    return rel


class _Flattened:
    """Tables of the tree in write order, with the start index of each group."""

    def __init__(self, pio: ParameterIO) -> None:
        self.lists: list[tuple[int, ParameterList]] = [(ROOT_KEY, pio)]
        self.child_start: list[int] = []
        i = 0
        while i < len(self.lists):
            self.child_start.append(len(self.lists))
            self.lists.extend(self.lists[i][1].lists.items())
            i += 1

        self.objects: list[tuple[int, ParameterObject]] = []
        self.obj_start: list[int] = []
        for _crc, plist in self.lists:
            self.obj_start.append(len(self.objects))
            self.objects.extend(plist.objects.items())

        self.params: list[tuple[int, Parameter]] = []
        self.param_start: list[int] = []
        for _crc, obj in self.objects:
            self.param_start.append(len(self.params))
            self.params.extend(obj.params.items())


class _Packer:
    def __init__(self, endian: Endian) -> None:
        self.p = endian.prefix
        self.endian = endian
        self.data = bytearray()
        self.strings = bytearray()
        self.string_offsets: dict[str, int] = {}

    def pack(self, fmt: str, *values) -> bytes:
        return struct.pack(self.p + fmt, *values)

    def string(self, value: str) -> int:
        """Offset of *value* inside the string section."""
        offset = self.string_offsets.get(value)
        if offset is None:
            offset = len(self.strings)
            self.string_offsets[value] = offset
            self.strings += value.encode("utf-8") + b"\x00"
            _pad4(self.strings)
        return offset

    def value(self, param: Parameter) -> int:
        """Append the value to the data section and return its offset there."""
        ptype, value = param.type, param.value
        buf = self.data
        if ptype in (ParamType.BUFFER_INT, ParamType.BUFFER_F32,
                     ParamType.BUFFER_U32, ParamType.BUFFER_BINARY):
            buf += self.pack("I", len(value))
        offset = len(buf)
        if ptype is ParamType.BOOL:
            buf += self.pack("I", 1 if value else 0)
        elif ptype is ParamType.F32:
            buf += self.pack("f", value)
        elif ptype is ParamType.INT:
            buf += self.pack("i", value)
        elif ptype is ParamType.U32:
            buf += self.pack("I", value)
        elif ptype in VECTOR_SIZES:
            buf += self.pack(f"{VECTOR_SIZES[ptype]}f", *value)
        elif ptype in CURVE_COUNTS:
            for curve in value:
                buf += self.pack(f"II{len(curve.floats)}f", curve.a, curve.b, *curve.floats)
        elif ptype is ParamType.BUFFER_BINARY:
            buf += bytes(value)
            _pad4(buf)
        else:
            buf += self.pack(f"{len(value)}{BUFFER_FORMATS[ptype]}", *value)
        return offset

    def u24(self, value: int) -> bytes:
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"parameter archive too large: data offset {value * 4:#x} exceeds u24")
        return value.to_bytes(3, self.endian.value)


def write_pio(pio: ParameterIO, endian: Endian | None = None) -> bytes:
    """Serialise *pio*.  Parameter archives default to little endian."""
    endian = endian or Endian.LITTLE
    flat = _Flattened(pio)
    packer = _Packer(endian)

    type_name = bytearray(pio.data_type.encode("utf-8") + b"\x00")
    _pad4(type_name)

    lists_off = HEADER_SIZE + len(type_name)
    objs_off = lists_off + _LIST_SIZE * len(flat.lists)
    params_off = objs_off + _OBJECT_SIZE * len(flat.objects)
    data_off = params_off + _PARAM_SIZE * len(flat.params)

    # Values first: the parameter table needs every data address.
    addresses: list[int | None] = []
    for _crc, param in flat.params:
        if param.type in STRING_TYPES:
            addresses.append(None)
            packer.string(param.value)
        else:
            addresses.append(packer.value(param))
    strings_off = data_off + len(packer.data)

    out = bytearray()
    for i, (crc, plist) in enumerate(flat.lists):
        here = lists_off + i * _LIST_SIZE
        out += packer.pack(
            "IHHHH", crc,
            _rel16(lists_off + flat.child_start[i] * _LIST_SIZE, here), len(plist.lists),
            _rel16(objs_off + flat.obj_start[i] * _OBJECT_SIZE, here), len(plist.objects),
        )
    for j, (crc, obj) in enumerate(flat.objects):
        here = objs_off + j * _OBJECT_SIZE
        out += packer.pack(
            "IHH", crc,
            _rel16(params_off + flat.param_start[j] * _PARAM_SIZE, here), len(obj),
        )
    for k, (crc, param) in enumerate(flat.params):
        here = params_off + k * _PARAM_SIZE
        if addresses[k] is None:
            target = strings_off + packer.string_offsets[param.value]
        else:
            target = data_off + addresses[k]
        out += packer.pack("I", crc) + packer.u24((target - here) // 4)
        out.append(int(param.type))

    flags = FLAG_UTF8 | (FLAG_LITTLE_ENDIAN if endian is Endian.LITTLE else 0)
    file_size = data_off + len(packer.data) + len(packer.strings)
    header = packer.pack(
        "4sIIIIIIIIIII", MAGIC, 2, flags, file_size, pio.version, len(type_name),
        len(flat.lists), len(flat.objects), len(flat.params),
        len(packer.data), len(packer.strings), 0,
    )
    return bytes(header + type_name + out + packer.data + packer.strings)
