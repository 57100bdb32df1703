"""
att_client_list.py
Attention client lists (Actor/AttClientList/*.batcllist).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ukformats.aamp import Parameter, ParameterIO, ParameterList, ParameterObject
from Content.base_resource import ParamsResource
from Content.delete_map import DeleteMap
from Content.params import diff_pobj, merge_pobj


@dataclass
class AttClientList(ParamsResource):
    att_pos: ParameterObject = field(default_factory=ParameterObject)
    # client name → attention client file name
    att_clients: DeleteMap[str, str] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Actor/AttClientList/*.batcllist",)

    @classmethod
    def from_pio(cls, pio: ParameterIO) -> AttClientList:
        clients = DeleteMap()
        for obj in pio.require_list("AttClients").objects.values():
            clients[obj.require("Name").as_string()] = obj.require("FileName").as_string()
        return cls(att_pos=pio.require_object("AttPos").copy(), att_clients=clients)

    def to_pio(self) -> ParameterIO:
        clients = ParameterList()
        for i, (name, file_name) in enumerate(self.att_clients.items()):
            clients.set_object(
                f"AttClient_{i}",
                ParameterObject()
                .with_param("Name", Parameter.string64(name))
                .with_param("FileName", Parameter.string64(file_name)),
            )
        return ParameterIO().with_object("AttPos", self.att_pos).with_list("AttClients", clients)

    def diff(self, other: AttClientList) -> AttClientList:
        self._check_kind(other, "diff")
        return AttClientList(
            att_pos=diff_pobj(self.att_pos, other.att_pos),
            att_clients=self.att_clients.diff(other.att_clients),
        )

    def merge(self, diff: AttClientList) -> AttClientList:
        self._check_kind(diff, "merge")
        return AttClientList(
            att_pos=merge_pobj(self.att_pos, diff.att_pos),
            att_clients=self.att_clients.merge(diff.att_clients),
        )
