"""
general_param_list.py
General parameter lists (Actor/GeneralParamList/*.bgparamlist): a flat set
of root objects keyed by name hash, merged parameter by parameter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ukformats.aamp import ParameterIO, ParameterObject
from Content.base_resource import ParamsResource
from Content.delete_map import DeleteMap
from Content.params import diff_pobj, merge_pobj


@dataclass
class GeneralParamList(ParamsResource):
    objects: DeleteMap[int, ParameterObject] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Actor/GeneralParamList/*.bgparamlist",)

    @classmethod
    def from_pio(cls, pio: ParameterIO) -> GeneralParamList:
        return cls(objects=DeleteMap(
            (key, obj.copy()) for key, obj in pio.objects.items()
        ))

    def to_pio(self) -> ParameterIO:
        return ParameterIO(objects=dict(self.objects.items()))

    def diff(self, other: GeneralParamList) -> GeneralParamList:
        self._check_kind(other, "diff")
        return GeneralParamList(objects=self.objects.deep_diff(other.objects, diff_pobj))

    def merge(self, diff: GeneralParamList) -> GeneralParamList:
        self._check_kind(diff, "merge")
        return GeneralParamList(objects=self.objects.deep_merge(diff.objects, merge_pobj))
