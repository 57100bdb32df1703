"""
area_data.py
Ecosystem area table (Ecosystem/AreaData.byml): an array of area hashes,
keyed here by their AreaNumber and written back in area order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ukformats.byml import as_array, as_hash, as_int
from Content.base_resource import BymlResource
from Content.delete_map import SortedDeleteMap


@dataclass
class AreaData(BymlResource):
    areas: SortedDeleteMap[int, dict] = field(default_factory=SortedDeleteMap)

    PATH_PATTERNS = ("Ecosystem/AreaData.byml",)

    @classmethod
    def from_byml(cls, root: Any) -> AreaData:
        areas = SortedDeleteMap()
        for area in as_array(root):
            area = as_hash(area, "AreaData")
            areas[as_int(area.get("AreaNumber"), "AreaNumber")] = area
        return cls(areas=areas)

    def to_byml(self) -> list:
        return list(self.areas.values())

    def diff(self, other: AreaData) -> AreaData:
        self._check_kind(other, "diff")
        return AreaData(areas=self.areas.diff(other.areas))

    def merge(self, diff: AreaData) -> AreaData:
        self._check_kind(diff, "merge")
        return AreaData(areas=self.areas.merge(diff.areas))
