"""
resident_events.py
Events kept loaded at all times (Event/ResidentEvent.byml): an array of
event hashes, keyed here by their "file" field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ukformats.byml import as_array, as_hash, as_string
from Content.base_resource import BymlResource
from Content.delete_map import DeleteMap


@dataclass
class ResidentEvents(BymlResource):
    events: DeleteMap[str, dict] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Event/ResidentEvent.byml",)

    @classmethod
    def from_byml(cls, root: Any) -> ResidentEvents:
        events = DeleteMap()
        for entry in as_array(root):
            entry = as_hash(entry, "ResidentEvent")
            events[as_string(entry.get("file"), "file")] = entry
        return cls(events=events)

    def to_byml(self) -> list:
        return list(self.events.values())

    def diff(self, other: ResidentEvents) -> ResidentEvents:
        self._check_kind(other, "diff")
        return ResidentEvents(events=self.events.diff(other.events))

    def merge(self, diff: ResidentEvents) -> ResidentEvents:
        self._check_kind(diff, "merge")
        return ResidentEvents(events=self.events.merge(diff.events))
