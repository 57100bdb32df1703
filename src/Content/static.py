"""
static.py
Map static data (Map/MainField/Static.mubin, Map/CDungeon/Static.mubin).

StartPos entries are grouped by map and keyed by position name, so a mod
moving one entry point does not clobber another mod adding a different
one.  Every other top-level array is an unkeyed list of objects matched by
content.  StartPos entries without a PosName cannot be keyed and are kept
in the general lists under "StartPos".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ukformats.byml import as_array, as_hash, as_string
from Content.base_resource import BymlResource
from Content.delete_map import DeleteList, DeleteMap
from Utils.errors import ParseError

START_POS = "StartPos"


@dataclass
class EntryPos:
    rotate: Any
    translate: Any
    player_state: str | None = None


@dataclass
class Static(BymlResource):
    general: dict[str, DeleteList] = field(default_factory=dict)
    # map name → position name → entry point
    start_pos: DeleteMap[str, DeleteMap[str, EntryPos]] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Map/MainField/Static.mubin", "Map/CDungeon/Static.mubin")

    @classmethod
    def from_byml(cls, root: Any) -> Static:
        root = as_hash(root)
        start_pos: DeleteMap[str, DeleteMap[str, EntryPos]] = DeleteMap()
        unnamed: list[dict] = []
        for entry in as_array(root.get(START_POS, []), START_POS):
            entry = as_hash(entry, START_POS)
            if "PosName" not in entry:
                unnamed.append(entry)
                continue
            map_name = as_string(entry.get("Map"), "Map")
            if "Rotate" not in entry or "Translate" not in entry:
                missing = "Rotate" if "Rotate" not in entry else "Translate"
                raise ParseError.type_mismatch(f"{START_POS}.{missing}", "missing key")
            state = entry.get("PlayerState")
            pos = EntryPos(
                rotate=entry["Rotate"],
                translate=entry["Translate"],
                player_state=None if state is None else as_string(state, "PlayerState"),
            )
            if map_name not in start_pos:
                start_pos[map_name] = DeleteMap()
            start_pos[map_name][as_string(entry["PosName"], "PosName")] = pos

        general = {
            key: DeleteList(as_array(value, key))
            for key, value in root.items() if key != START_POS
        }
        if unnamed:
            general[START_POS] = DeleteList(unnamed)
        return cls(general=general, start_pos=start_pos)

    def to_byml(self) -> dict:
        entries = []
        for map_name, positions in self.start_pos.items():
            for pos_name, pos in positions.items():
                entry = {
                    "Map": map_name,
                    "PosName": pos_name,
                    "Rotate": pos.rotate,
                    "Translate": pos.translate,
                }
                if pos.player_state is not None:
                    entry["PlayerState"] = pos.player_state
                entries.append(entry)
        out = {key: list(values) for key, values in self.general.items()}
        out[START_POS] = entries + out.get(START_POS, [])
        return out

    def diff(self, other: Static) -> Static:
        self._check_kind(other, "diff")
        general = {}
        for key, entries in other.general.items():
            base = self.general.get(key)
            if base is None:
                general[key] = entries
            elif base != entries:
                general[key] = base.diff(entries)
        return Static(general=general, start_pos=self.start_pos.deep_diff(other.start_pos))

    def merge(self, diff: Static) -> Static:
        self._check_kind(diff, "merge")
        general = dict(self.general)
        for key, entries in diff.general.items():
            base = general.get(key)
            general[key] = entries.without_deletes() if base is None else base.merge(entries)
        return Static(general=general, start_pos=self.start_pos.deep_merge(diff.start_pos))
