"""
save_data.py
Save file layout pack (GameData/savedataformat.sarc, stored in Bootup.pack
as .ssarc).

The pack holds numbered documents /saveformat_<i>.bgsvdata, each one shard
of the flag list for one save file:

    {"file_list": [ {"file_name": str, "IsCommon": bool, ...},
                    [ {"HashValue": int, "DataName": str}, ... ] ],
     "save_info": [ {"directory_num": int, "revision": int, ...} ]}

Reading groups the shards by file_name (game_data.sav, caption.sav) and
folds their flags into one map keyed by HashValue.  Writing splits every
file into shards of at most 8192 flags again and numbers them in a single
run, file after file.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from ukformats import byml
from ukformats.byml import as_array, as_hash, as_int, as_string
from Content.base_resource import Resource
from Content.delete_map import DeleteMap, SortedDeleteMap, same
from ukformats.sarc import SarcReader, SarcWriter, yaz0
from Utils.endian import Endian
from Utils.errors import ParseError

log = logging.getLogger(__name__)

SHARD_SIZE = 8192
SHARD_NAME = re.compile(r"/?saveformat_(\d+)\.bgsvdata")


@dataclass
class SaveData:
    # None in a diff means "unchanged"
    header: dict | None = None
    save_info: dict | None = None
    flags: SortedDeleteMap[int, dict] = field(default_factory=SortedDeleteMap)

    @property
    def file_name(self) -> str:
        return as_string((self.header or {}).get("file_name"), "file_name")

    @classmethod
    def from_byml(cls, root: Any) -> SaveData:
        root = as_hash(root)
        file_list = as_array(root.get("file_list"), "file_list")
        if len(file_list) != 2:
            raise ParseError.type_mismatch(
                "file_list", f"expected header and flag list, found {len(file_list)} entries"
            )
        header, entries = file_list
        save_info = as_array(root.get("save_info"), "save_info")
        if len(save_info) != 1:
            raise ParseError.type_mismatch("save_info", f"expected 1 entry, found {len(save_info)}")
        flags = SortedDeleteMap()
        for entry in as_array(entries, "file_list"):
            entry = as_hash(entry, "file_list")
            flags[as_int(entry.get("HashValue"), "HashValue") & 0xFFFFFFFF] = entry
        return cls(as_hash(header, "file_list"), as_hash(save_info[0], "save_info"), flags)

    def to_byml(self) -> dict:
        return {
            "file_list": [self.header, list(self.flags.values())],
            "save_info": [self.save_info],
        }

    def divide(self) -> list[SaveData]:
        """Split into shards of SHARD_SIZE flags, in hash order; at least one."""
        items = list(self.flags.items())
        return [
            SaveData(self.header, self.save_info,
                     SortedDeleteMap(items[i * SHARD_SIZE:(i + 1) * SHARD_SIZE]))
            for i in range(max(1, math.ceil(len(items) / SHARD_SIZE)))
        ]

    def diff(self, other: SaveData) -> SaveData:
        return SaveData(
            header=None if same(self.header, other.header) else other.header,
            save_info=None if same(self.save_info, other.save_info) else other.save_info,
            flags=self.flags.diff(other.flags),
        )

    def merge(self, diff: SaveData) -> SaveData:
        return SaveData(
            header=self.header if diff.header is None else diff.header,
            save_info=self.save_info if diff.save_info is None else diff.save_info,
            flags=self.flags.merge(diff.flags),
        )


@dataclass
class SaveDataPack(Resource):
    files: DeleteMap[str, SaveData] = field(default_factory=DeleteMap)

    PATH_PATTERNS = ("GameData/savedataformat.sarc",)

    @classmethod
    def from_files(cls, files: dict[str, bytes]) -> SaveDataPack:
        """Group the shards by save file, in shard number order."""
        shards = []
        for name, data in files.items():
            match = SHARD_NAME.fullmatch(name)
            if match is None:
                log.debug("savedataformat: skipping %s", name)
                continue
            shards.append((int(match.group(1)), data))
        out: DeleteMap[str, SaveData] = DeleteMap()
        for _index, data in sorted(shards):
            shard = SaveData.from_byml(byml.from_binary(data))
            name = shard.file_name
            out[name] = out[name].merge(SaveData(flags=shard.flags)) if name in out else shard
        return cls(files=out)

    def to_sarc(self, endian: Endian) -> SarcWriter:
        writer = SarcWriter(endian)
        index = 0
        for save in self.files.values():
            for shard in save.divide():
                writer.add_file(f"/saveformat_{index}.bgsvdata", byml.to_binary(shard.to_byml(), endian))
                index += 1
        return writer

    @classmethod
    def from_binary(cls, data: bytes) -> SaveDataPack:
        return cls.from_files(SarcReader(yaz0.decompress_if(data)).files())

    def to_binary(self, endian: Endian) -> bytes:
        return self.to_sarc(endian).to_binary()

    def diff(self, other: SaveDataPack) -> SaveDataPack:
        self._check_kind(other, "diff")
        return SaveDataPack(files=self.files.deep_diff(other.files))

    def merge(self, diff: SaveDataPack) -> SaveDataPack:
        self._check_kind(diff, "merge")
        log.debug("Merging save data pack")
        return SaveDataPack(files=self.files.deep_merge(diff.files))
