"""
resident_actors.py
Actors kept loaded at all times (Actor/ResidentActors.byml): an array of
{"name": str, "only_res": bool}, keyed here by actor name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ukformats.byml import as_array, as_hash, as_string
from Content.base_resource import BymlResource
from Content.delete_map import DeleteMap


@dataclass
class ResidentActors(BymlResource):
    actors: DeleteMap[str, dict] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Actor/ResidentActors.byml",)

    @classmethod
    def from_byml(cls, root: Any) -> ResidentActors:
        actors = DeleteMap()
        for entry in as_array(root):
            entry = as_hash(entry, "ResidentActors")
            actors[as_string(entry.get("name"), "name")] = entry
        return cls(actors=actors)

    def to_byml(self) -> list:
        return list(self.actors.values())

    def diff(self, other: ResidentActors) -> ResidentActors:
        self._check_kind(other, "diff")
        return ResidentActors(actors=self.actors.diff(other.actors))

    def merge(self, diff: ResidentActors) -> ResidentActors:
        self._check_kind(diff, "merge")
        return ResidentActors(actors=self.actors.merge(diff.actors))
