"""
actor_link.py
Actor link files (Actor/ActorLink/*.bxml): which parameter files an actor
uses, plus its tags.

    LinkTarget   object of string parameters, one per linked file kind
    Tags         optional object, Tag0..TagN string parameters
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ukformats.aamp import Parameter, ParameterIO, ParameterObject
from Content.base_resource import ParamsResource
from Content.delete_map import DeleteSet
from Content.params import diff_pobj, merge_pobj


@dataclass
class ActorLink(ParamsResource):
    targets: ParameterObject = field(default_factory=ParameterObject)
    tags: DeleteSet[str] = field(default_factory=DeleteSet)

    PATH_PATTERNS = ("Actor/ActorLink/*.bxml",)

    @classmethod
    def from_pio(cls, pio: ParameterIO) -> ActorLink:
        tags = DeleteSet()
        tag_obj = pio.object("Tags")
        if tag_obj is not None:
            for param in tag_obj.params.values():
                tags.add(param.as_string())
        return cls(targets=pio.require_object("LinkTarget").copy(), tags=tags)

    def to_pio(self) -> ParameterIO:
        pio = ParameterIO().with_object("LinkTarget", self.targets)
        if len(self.tags):
            tag_obj = ParameterObject()
            for i, tag in enumerate(self.tags):
                tag_obj[f"Tag{i}"] = Parameter.string64(tag)
            pio.set_object("Tags", tag_obj)
        return pio

    def diff(self, other: ActorLink) -> ActorLink:
        self._check_kind(other, "diff")
        return ActorLink(
            targets=diff_pobj(self.targets, other.targets),
            tags=self.tags.diff(other.tags),
        )

    def merge(self, diff: ActorLink) -> ActorLink:
        self._check_kind(diff, "merge")
        return ActorLink(
            targets=merge_pobj(self.targets, diff.targets),
            tags=self.tags.merge(diff.tags),
        )
