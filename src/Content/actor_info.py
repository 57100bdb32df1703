"""
actor_info.py
Actor information table (Actor/ActorInfo.product.byml).

On disk: {"Actors": [entry, ...], "Hashes": [crc32(name), ...]}, both
sorted by the CRC32 of the actor name.  In memory the two arrays are one
map from that hash to the actor's entry, which is how they stay in step.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass, field
from typing import Any

from ukformats.byml import UInt, as_array, as_hash, as_string
from Content.base_resource import BymlResource
from Content.delete_map import SortedDeleteMap


def actor_hash(name: str) -> int:
    return zlib.crc32(name.encode("utf-8"))


@dataclass
class ActorInfo(BymlResource):
    actors: SortedDeleteMap[int, dict] = field(default_factory=SortedDeleteMap)

    PATH_PATTERNS = ("Actor/ActorInfo.product.byml",)

    @classmethod
    def from_byml(cls, root: Any) -> ActorInfo:
        actors = SortedDeleteMap()
        for entry in as_array(as_hash(root).get("Actors", []), "Actors"):
            entry = as_hash(entry, "Actors")
            actors[actor_hash(as_string(entry.get("name"), "name"))] = entry
        return cls(actors=actors)

    def to_byml(self) -> dict:
        # Hashes that do not fit in s32 are stored as u32 nodes
        return {
            "Actors": list(self.actors.values()),
            "Hashes": [UInt(h) if h > 0x7FFFFFFF else h for h in self.actors],
        }

    def diff(self, other: ActorInfo) -> ActorInfo:
        self._check_kind(other, "diff")
        return ActorInfo(actors=self.actors.diff(other.actors))

    def merge(self, diff: ActorInfo) -> ActorInfo:
        self._check_kind(diff, "merge")
        return ActorInfo(actors=self.actors.merge(diff.actors))
