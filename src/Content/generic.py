"""
generic.py
Fallback for parameter archives no schema claims: the whole ParameterIO is
diffed and merged recursively, list by list and object by object.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ukformats.aamp import ParameterIO
from Content.base_resource import ParamsResource
from Content.params import diff_pio, merge_pio
from Utils.endian import Endian


@dataclass
class GenericParams(ParamsResource):
    pio: ParameterIO = field(default_factory=ParameterIO)

    @classmethod
    def from_pio(cls, pio: ParameterIO) -> GenericParams:
        return cls(pio=pio)

    def to_pio(self) -> ParameterIO:
        return self.pio

    def to_binary(self, endian: Endian) -> bytes:
        return self.pio.to_binary()

    def diff(self, other: GenericParams) -> GenericParams:
        self._check_kind(other, "diff")
        return GenericParams(diff_pio(self.pio, other.pio))

    def merge(self, diff: GenericParams) -> GenericParams:
        self._check_kind(diff, "merge")
        return GenericParams(merge_pio(self.pio, diff.pio))
