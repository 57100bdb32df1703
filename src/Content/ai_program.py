"""
ai_program.py
Actor AI programs (Actor/AIProgram/*.baiprog).

The root holds four lists, AI, Action, Behavior and Query, whose children
are numbered lists "<category>_<i>".  Entries refer to each other by index
(ChildIdx, BehaviorIdx, ...), so they are keyed by index and written back
under the same numbers; a mod that adds an AI at index 40 keeps it there.
Root objects such as DemoAIActionIdx merge parameter by parameter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ukformats.aamp import ParameterIO, ParameterList, ParameterObject, name_hash
from Content.base_resource import ParamsResource
from Content.delete_map import DeleteMap, SortedDeleteMap
from Content.params import diff_plist, diff_pobj, merge_plist, merge_pobj
from Utils.errors import ParseError

CATEGORIES = ("AI", "Action", "Behavior", "Query")


def _read_category(pio: ParameterIO, category: str) -> SortedDeleteMap[int, ParameterList]:
    plist = pio.list(category)
    entries = SortedDeleteMap()
    if plist is None:
        return entries
    while (child := plist.list(f"{category}_{len(entries)}")) is not None:
        entries[len(entries)] = child
    if len(plist.lists) != len(entries) or plist.objects:
        raise ParseError.type_mismatch(
            category, f"child lists must be numbered {category}_0 upwards"
        )
    return entries


@dataclass
class AIProgram(ParamsResource):
    ais: SortedDeleteMap[int, ParameterList] = field(default_factory=SortedDeleteMap)
    actions: SortedDeleteMap[int, ParameterList] = field(default_factory=SortedDeleteMap)
    behaviors: SortedDeleteMap[int, ParameterList] = field(default_factory=SortedDeleteMap)
    queries: SortedDeleteMap[int, ParameterList] = field(default_factory=SortedDeleteMap)
    objects: DeleteMap[int, ParameterObject] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Actor/AIProgram/*.baiprog",)

    def _categories(self) -> tuple[SortedDeleteMap[int, ParameterList], ...]:
        return self.ais, self.actions, self.behaviors, self.queries

    @classmethod
    def from_pio(cls, pio: ParameterIO) -> AIProgram:
        known = {name_hash(c) for c in CATEGORIES}
        unknown = [key for key in pio.lists if key not in known]
        if unknown:
            raise ParseError.type_mismatch("param_root", f"unexpected list hash {unknown[0]:#010x}")
        return cls(
            *(_read_category(pio, c) for c in CATEGORIES),
            objects=DeleteMap((key, obj.copy()) for key, obj in pio.objects.items()),
        )

    def to_pio(self) -> ParameterIO:
        pio = ParameterIO(objects=dict(self.objects.items()))
        for category, entries in zip(CATEGORIES, self._categories()):
            plist = ParameterList()
            for index, entry in entries.items():
                plist.set_list(f"{category}_{index}", entry)
            pio.set_list(category, plist)
        return pio

    def diff(self, other: AIProgram) -> AIProgram:
        self._check_kind(other, "diff")
        return AIProgram(
            *(mine.deep_diff(theirs, diff_plist)
              for mine, theirs in zip(self._categories(), other._categories())),
            objects=self.objects.deep_diff(other.objects, diff_pobj),
        )

    def merge(self, diff: AIProgram) -> AIProgram:
        self._check_kind(diff, "merge")
        return AIProgram(
            *(mine.deep_merge(theirs, merge_plist)
              for mine, theirs in zip(self._categories(), diff._categories())),
            objects=self.objects.deep_merge(diff.objects, merge_pobj),
        )
