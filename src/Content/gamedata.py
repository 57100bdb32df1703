"""
gamedata.py
Game flag pack (GameData/gamedata.sarc, stored in Bootup.pack as .ssarc).

The pack holds one family of .bgdata documents per flag type.  Each family
is split into shards of at most 4096 flags, named /<type>_<i>.bgdata:

    {"<data type>": [ {"HashValue": int, "DataName": str, ...}, ... ]}

Reading a pack folds every shard of a family into one map keyed by
HashValue; writing splits that map again, so sharding never shows up in a
diff.  The data type is the family name except for string32_data (stored as
"string_data") and the revival_* families (stored without the prefix).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from typing import Any

from ukformats import byml
from ukformats.byml import as_array, as_hash, as_int
from Content.base_resource import Resource
from Content.delete_map import SortedDeleteMap
from ukformats.sarc import SarcReader, SarcWriter, yaz0
from Utils.endian import Endian
from Utils.errors import ParseError, SchemaMismatch

log = logging.getLogger(__name__)

SHARD_SIZE = 4096


def data_type_for(family: str) -> str:
    if family == "string32_data":
        return "string_data"
    return family.removeprefix("revival_")


@dataclass
class GameData:
    data_type: str
    flags: SortedDeleteMap[int, dict] = field(default_factory=SortedDeleteMap)

    @classmethod
    def from_byml(cls, root: Any) -> GameData:
        root = as_hash(root)
        if len(root) != 1:
            raise ParseError.type_mismatch(
                "data type", f"bgdata document has {len(root)} top-level keys, expected 1"
            )
        ((data_type, entries),) = root.items()
        flags = SortedDeleteMap()
        for entry in as_array(entries, data_type):
            entry = as_hash(entry, data_type)
            flags[as_int(entry.get("HashValue"), "HashValue") & 0xFFFFFFFF] = entry
        return cls(data_type=data_type, flags=flags)

    def to_byml(self) -> dict:
        return {self.data_type: list(self.flags.values())}

    def divide(self) -> list[GameData]:
        """Split into ceil(n / 4096) shards, in hash order."""
        items = list(self.flags.items())
        return [
            GameData(self.data_type, SortedDeleteMap(items[i * SHARD_SIZE:(i + 1) * SHARD_SIZE]))
            for i in range(math.ceil(len(items) / SHARD_SIZE))
        ]

    def _check_type(self, other: GameData, action: str) -> None:
        if self.data_type != other.data_type:
            raise SchemaMismatch(
                f"Attempted to {action} different gamedata types: "
                f"{self.data_type} and {other.data_type}"
            )

    def diff(self, other: GameData) -> GameData:
        self._check_type(other, "diff")
        return GameData(self.data_type, self.flags.diff(other.flags))

    def merge(self, diff: GameData) -> GameData:
        self._check_type(diff, "merge")
        return GameData(self.data_type, self.flags.merge(diff.flags))


def _family(family: str) -> GameData:
    return field(default_factory=lambda: GameData(data_type_for(family)))


@dataclass
class GameDataPack(Resource):
    bool_array_data: GameData = _family("bool_array_data")
    bool_data: GameData = _family("bool_data")
    f32_array_data: GameData = _family("f32_array_data")
    f32_data: GameData = _family("f32_data")
    revival_bool_data: GameData = _family("revival_bool_data")
    revival_s32_data: GameData = _family("revival_s32_data")
    s32_array_data: GameData = _family("s32_array_data")
    s32_data: GameData = _family("s32_data")
    string32_data: GameData = _family("string32_data")
    string64_array_data: GameData = _family("string64_array_data")
    string64_data: GameData = _family("string64_data")
    string256_array_data: GameData = _family("string256_array_data")
    string256_data: GameData = _family("string256_data")
    vector2f_array_data: GameData = _family("vector2f_array_data")
    vector2f_data: GameData = _family("vector2f_data")
    vector3f_array_data: GameData = _family("vector3f_array_data")
    vector3f_data: GameData = _family("vector3f_data")
    vector4f_data: GameData = _family("vector4f_data")

    PATH_PATTERNS = ("GameData/gamedata.sarc",)

    @classmethod
    def families(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_files(cls, files: dict[str, bytes]) -> GameDataPack:
        """Defragment the shards of every family from {name: bgdata bytes}."""
        pack = cls()
        for family in cls.families():
            prefix = f"{family}_"
            acc = getattr(pack, family)
            for name, data in files.items():
                if name.lstrip("/").startswith(prefix):
                    acc = acc.merge(GameData.from_byml(byml.from_binary(data)))
            setattr(pack, family, acc)
        return pack

    @classmethod
    def from_sarc(cls, reader: SarcReader) -> GameDataPack:
        return cls.from_files(reader.files())

    def to_sarc(self, endian: Endian) -> SarcWriter:
        writer = SarcWriter(endian)
        for family in self.families():
            for i, shard in enumerate(getattr(self, family).divide()):
                writer.add_file(f"/{family}_{i}.bgdata", byml.to_binary(shard.to_byml(), endian))
        return writer

    @classmethod
    def from_binary(cls, data: bytes) -> GameDataPack:
        return cls.from_sarc(SarcReader(yaz0.decompress_if(data)))

    def to_binary(self, endian: Endian) -> bytes:
        return self.to_sarc(endian).to_binary()

    def diff(self, other: GameDataPack) -> GameDataPack:
        self._check_kind(other, "diff")
        return GameDataPack(**{
            family: getattr(self, family).diff(getattr(other, family))
            for family in self.families()
        })

    def merge(self, diff: GameDataPack) -> GameDataPack:
        self._check_kind(diff, "merge")
        log.debug("Merging game data pack")
        return GameDataPack(**{
            family: getattr(self, family).merge(getattr(diff, family))
            for family in self.families()
        })
