"""
aamp — AAMP v2 parameter archives (.bxml, .bdrop, .bgparamlist, ...).
"""

from __future__ import annotations

from ukformats.aamp.parameters import (
    ROOT_KEY, Curve, Name, Parameter, ParameterIO, ParameterList,
    ParameterObject, ParamType, name_hash,
)
from ukformats.aamp.reader import MAGIC, read_pio
from ukformats.aamp.writer import write_pio


def is_aamp(data: bytes) -> bool:
    return data[:4] == MAGIC


__all__ = [
    "ROOT_KEY", "Curve", "Name", "Parameter", "ParameterIO", "ParameterList",
    "ParameterObject", "ParamType", "name_hash", "is_aamp", "read_pio", "write_pio",
]
