"""
drop_table.py
Drop tables (Actor/DropTable/*.bdrop).

The Header object counts the tables and names them (Table01, Table02, ...);
each table is a root object under its own name.  Tables are merged
parameter by parameter, so two mods that touch different items of the same
table both apply.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ukformats.aamp import Parameter, ParameterIO, ParameterObject
from Content.base_resource import ParamsResource
from Content.delete_map import DeleteMap
from Content.params import diff_pobj, merge_pobj


@dataclass
class DropTable(ParamsResource):
    tables: DeleteMap[str, ParameterObject] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("Actor/DropTable/*.bdrop",)

    @classmethod
    def from_pio(cls, pio: ParameterIO) -> DropTable:
        header = pio.require_object("Header")
        count = header.require("TableNum").as_int()
        tables = DeleteMap()
        for i in range(1, count + 1):
            name = header.require(f"Table{i:02}").as_string()
            tables[name] = pio.require_object(name).copy()
        return cls(tables=tables)

    def to_pio(self) -> ParameterIO:
        header = ParameterObject().with_param("TableNum", Parameter.int(len(self.tables)))
        for i, name in enumerate(self.tables, 1):
            header[f"Table{i:02}"] = Parameter.string64(name)
        pio = ParameterIO().with_object("Header", header)
        for name, table in self.tables.items():
            pio.set_object(name, table)
        return pio

    def diff(self, other: DropTable) -> DropTable:
        self._check_kind(other, "diff")
        return DropTable(tables=self.tables.deep_diff(other.tables, diff_pobj))

    def merge(self, diff: DropTable) -> DropTable:
        self._check_kind(diff, "merge")
        return DropTable(tables=self.tables.deep_merge(diff.tables, merge_pobj))
