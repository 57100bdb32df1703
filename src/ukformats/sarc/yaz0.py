"""
yaz0.py — Yaz0 compression used for ".s"-prefixed game files (.sbactorpack,
.smubin, .ssarc, ...).

Layout:
  - 4 bytes: magic "Yaz0"
  - 4 bytes: decompressed size (uint32 BE)
  - 8 bytes: reserved / alignment hint (written as zero)
  - Data: groups of one code byte followed by up to eight chunks.  Code bits
    are read MSB first; a set bit copies one literal byte, a clear bit is a
    back-reference:
        2 bytes  NR RR   N = length - 2, R = distance - 1
        3 bytes  0R RR NN  when N == 0, length = NN + 0x12
"""

from __future__ import annotations

import struct

from Utils.errors import ParseError

MAGIC = b"Yaz0"
_HEADER_SIZE = 16
_WINDOW = 0x1000
_MIN_MATCH = 3
_MAX_MATCH = 0x111
# How many earlier positions with the same 3-byte prefix are tried per match
_MAX_CANDIDATES = 32


def is_compressed(data: bytes) -> bool:
    return len(data) >= _HEADER_SIZE and data[:4] == MAGIC


def decompressed_size(data: bytes) -> int:
    if not is_compressed(data):
        raise ParseError.bad_magic("not a Yaz0 stream")
    return struct.unpack_from(">I", data, 4)[0]


def decompress(data: bytes) -> bytes:
    """Decompress a complete Yaz0 stream."""
    size = decompressed_size(data)
    out = bytearray()
    src = _HEADER_SIZE
    try:
        while len(out) < size:
            code = data[src]
            src += 1
            for bit in range(7, -1, -1):
                if len(out) >= size:
                    break
                if code & (1 << bit):
                    out.append(data[src])
                    src += 1
                    continue
                b0, b1 = data[src], data[src + 1]
                src += 2
                dist = (((b0 & 0x0F) << 8) | b1) + 1
                length = b0 >> 4
                if length == 0:
                    length = data[src] + 0x12
                    src += 1
                else:
                    length += 2
                start = len(out) - dist
                if start < 0:
                    raise ParseError.type_mismatch(
                        "back-reference", f"distance {dist} before start of output"
                    )
                if dist >= length:
                    out += out[start:start + length]
                else:
                    # Overlapping run: bytes produced by this copy feed the copy
                    for i in range(length):
                        out.append(out[start + i])
    except IndexError:
        raise ParseError.eof(
            f"Yaz0 stream ended after {len(out)} of {size} bytes"
        ) from None
    return bytes(out[:size])


def decompress_if(data: bytes) -> bytes:
    """Return *data* decompressed when it carries the Yaz0 magic, else unchanged."""
    return decompress(data) if is_compressed(data) else data


def _find_match(data: bytes, pos: int, table: dict[bytes, list[int]]) -> tuple[int, int]:
    """Return (length, distance) of the longest earlier match at pos."""
    end = len(data)
    if end - pos < _MIN_MATCH:
        return 0, 0
    candidates = table.get(data[pos:pos + _MIN_MATCH])
    if not candidates:
        return 0, 0
    limit = min(_MAX_MATCH, end - pos)
    best_len, best_dist = 0, 0
    tried = 0
    for cand in reversed(candidates):
        dist = pos - cand
        if dist > _WINDOW or tried >= _MAX_CANDIDATES:
            break
        tried += 1
        length = _MIN_MATCH
        while length < limit and data[cand + length] == data[pos + length]:
            length += 1
        if length > best_len:
            best_len, best_dist = length, dist
            if length == limit:
                break
    return best_len, best_dist


def compress(data: bytes) -> bytes:
    """Compress *data* with a greedy LZ77 search.

    Output is deterministic for a given input; it is not byte-identical to
    Nintendo's encoder, which is why pristine archive members are copied
    through rather than recompressed.
    """
    data = bytes(data)
    out = bytearray(MAGIC)
    out += struct.pack(">I", len(data))
    out += bytes(8)
    table: dict[bytes, list[int]] = {}
    pos = 0
    end = len(data)
    while pos < end:
        code_pos = len(out)
        out.append(0)
        code = 0
        for bit in range(7, -1, -1):
            if pos >= end:
                break
            length, dist = _find_match(data, pos, table)
            if length >= _MIN_MATCH:
                rel = dist - 1
                if length >= 0x12:
                    out += bytes((rel >> 8, rel & 0xFF, length - 0x12))
                else:
                    out += bytes((((length - 2) << 4) | (rel >> 8), rel & 0xFF))
            else:
                length = 1
                code |= 1 << bit
                out.append(data[pos])
            for p in range(pos, min(pos + length, end - _MIN_MATCH + 1)):
                table.setdefault(data[p:p + _MIN_MATCH], []).append(p)
            pos += length
        out[code_pos] = code
    return bytes(out)
