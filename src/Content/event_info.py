"""
event_info.py
Event information (Event/EventInfo.product.byml): a hash of
"<EventFlow><<Entry>" names to event parameter hashes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ukformats.byml import as_hash
from Content.base_resource import BymlResource
from Content.delete_map import DeleteMap


@dataclass
class EventInfo(BymlResource):
    events: DeleteMap[str, dict] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Event/EventInfo.product.byml",)

    @classmethod
    def from_byml(cls, root: Any) -> EventInfo:
        return cls(events=DeleteMap(as_hash(root).items()))

    def to_byml(self) -> dict:
        return dict(self.events.items())

    def diff(self, other: EventInfo) -> EventInfo:
        self._check_kind(other, "diff")
        return EventInfo(events=self.events.diff(other.events))

    def merge(self, diff: EventInfo) -> EventInfo:
        self._check_kind(diff, "merge")
        return EventInfo(events=self.events.merge(diff.events))
