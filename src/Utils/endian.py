"""
endian.py
Byte order and target platform shared by every codec and resource.

Wii U builds use big-endian scalars, Switch builds little-endian. Some files
(parameter archives) are little-endian on both; the codecs take the byte
order as an explicit argument and never read it from global state.
"""

from __future__ import annotations

from enum import Enum


class Endian(Enum):
    BIG = "big"
    LITTLE = "little"

    @property
    def prefix(self) -> str:
        """struct format prefix for this byte order."""
        return ">" if self is Endian.BIG else "<"


class Platform(Enum):
    WII_U = "wiiu"
    SWITCH = "switch"

    @property
    def endian(self) -> Endian:
        return Endian.BIG if self is Platform.WII_U else Endian.LITTLE

    def __str__(self) -> str:
        return "Wii U" if self is Platform.WII_U else "Switch"
