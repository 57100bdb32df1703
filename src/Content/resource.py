"""
resource.py
Resource dispatch: decide what a file is and wrap it for merging.

ResourceData.from_binary(path, data):
  1. strip Yaz0 compression
  2. try every schema in SCHEMAS, in order, against the path
  3. otherwise sniff the header:
       AAMP      → GenericParams
       BY / YB   → BinaryResource, kept per platform
       SARC      → SarcMap (member resources are added by the archive layer)
  4. anything else raises UnsupportedFormat; nothing is guessed

The kind set is closed.  MergeableResource pairs a ResourceKind with its
value and refuses to diff or merge two different kinds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from Content.actor_info import ActorInfo
from Content.actor_link import ActorLink
from Content.ai_program import AIProgram
from Content.area_data import AreaData
from Content.att_client_list import AttClientList
from Content.base_resource import Resource
from Content.drop_table import DropTable
from Content.event_info import EventInfo
from Content.gamedata import GameDataPack
from Content.general_param_list import GeneralParamList
from Content.generic import GenericParams
from Content.paths import canonical_path
from Content.resident_actors import ResidentActors
from Content.resident_events import ResidentEvents
from Content.save_data import SaveDataPack
from Content.static import Static
from ukformats.aamp import is_aamp
from ukformats.sarc import yaz0
from Utils.endian import Endian
from Utils.errors import MergeError, MissingResource, SchemaMismatch, UnsupportedFormat, with_path

if TYPE_CHECKING:
    from Content.archive import ResourceTable, SarcMap

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Mergeable resources
# ---------------------------------------------------------------------------

class ResourceKind(Enum):
    ACTOR_INFO = "ActorInfo"
    ACTOR_LINK = "ActorLink"
    AI_PROGRAM = "AIProgram"
    AREA_DATA = "AreaData"
    ATT_CLIENT_LIST = "AttClientList"
    DROP_TABLE = "DropTable"
    EVENT_INFO = "EventInfo"
    GAME_DATA_PACK = "GameDataPack"
    GENERAL_PARAM_LIST = "GeneralParamList"
    RESIDENT_ACTORS = "ResidentActors"
    RESIDENT_EVENTS = "ResidentEvents"
    SAVE_DATA_PACK = "SaveDataPack"
    STATIC = "Static"
    GENERIC_PARAMS = "GenericParams"


# Tried in order; the first kind whose path pattern matches wins.
SCHEMAS: tuple[tuple[ResourceKind, type[Resource]], ...] = (
    (ResourceKind.ACTOR_INFO, ActorInfo),
    (ResourceKind.ACTOR_LINK, ActorLink),
    (ResourceKind.AI_PROGRAM, AIProgram),
    (ResourceKind.AREA_DATA, AreaData),
    (ResourceKind.ATT_CLIENT_LIST, AttClientList),
    (ResourceKind.DROP_TABLE, DropTable),
    (ResourceKind.EVENT_INFO, EventInfo),
    (ResourceKind.GAME_DATA_PACK, GameDataPack),
    (ResourceKind.GENERAL_PARAM_LIST, GeneralParamList),
    (ResourceKind.RESIDENT_ACTORS, ResidentActors),
    (ResourceKind.RESIDENT_EVENTS, ResidentEvents),
    (ResourceKind.SAVE_DATA_PACK, SaveDataPack),
    (ResourceKind.STATIC, Static),
)

KIND_TYPES: dict[ResourceKind, type[Resource]] = {
    **dict(SCHEMAS), ResourceKind.GENERIC_PARAMS: GenericParams,
}


def schema_for(path: str) -> ResourceKind | None:
    for kind, cls in SCHEMAS:
        if cls.path_matches(path):
            return kind
    return None


@dataclass(frozen=True)
class MergeableResource:
    kind: ResourceKind
    value: Resource

    @classmethod
    def parse(cls, kind: ResourceKind, data: bytes) -> MergeableResource:
        return cls(kind, KIND_TYPES[kind].from_binary(data))

    def _check(self, other: MergeableResource, action: str) -> None:
        if other.kind is not self.kind:
            raise SchemaMismatch(
                f"Tried to {action} incompatible resources: {self.kind.value} and {other.kind.value}"
            )

    def diff(self, other: MergeableResource) -> MergeableResource:
        self._check(other, "diff")
        return MergeableResource(self.kind, self.value.diff(other.value))

    def merge(self, diff: MergeableResource) -> MergeableResource:
        self._check(diff, "merge")
        return MergeableResource(self.kind, self.value.merge(diff.value))

    def to_binary(self, endian: Endian) -> bytes:
        return self.value.to_binary(endian)


# ---------------------------------------------------------------------------
# Opaque binaries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BinaryResource:
    """Bytes the engine does not look inside.

    Platform-specific files keep a Wii U and a Switch copy side by side,
    since the same content differs byte for byte between the two.
    """
    data: bytes | None = None
    wiiu: bytes | None = None
    nx: bytes | None = None
    per_platform: bool = False

    @classmethod
    def agnostic(cls, data: bytes) -> BinaryResource:
        return cls(data=bytes(data))

    @classmethod
    def platform(cls, wiiu: bytes | None = None, nx: bytes | None = None) -> BinaryResource:
        return cls(wiiu=wiiu, nx=nx, per_platform=True)

    @classmethod
    def from_byml_bytes(cls, data: bytes) -> BinaryResource:
        if data[:2] == b"BY":
            return cls.platform(wiiu=bytes(data))
        return cls.platform(nx=bytes(data))

    def _check(self, other: BinaryResource, action: str) -> None:
        if other.per_platform != self.per_platform:
            raise SchemaMismatch(f"Attempted to {action} incompatible binary resource types")

    def diff(self, other: BinaryResource) -> BinaryResource:
        self._check(other, "diff")
        if not self.per_platform:
            return other
        return BinaryResource.platform(
            wiiu=other.wiiu if other.wiiu != self.wiiu else None,
            nx=other.nx if other.nx != self.nx else None,
        )

    def merge(self, diff: BinaryResource) -> BinaryResource:
        self._check(diff, "merge")
        if not self.per_platform:
            return diff
        return BinaryResource.platform(
            wiiu=diff.wiiu if diff.wiiu is not None else self.wiiu,
            nx=diff.nx if diff.nx is not None else self.nx,
        )

    def to_binary(self, endian: Endian) -> bytes:
        if not self.per_platform:
            return self.data
        data = self.wiiu if endian is Endian.BIG else self.nx
        if data is None:
            platform = "Wii U" if endian is Endian.BIG else "Switch"
            raise MissingResource(f"{platform} copy of binary resource")
        return data


# ---------------------------------------------------------------------------
# Resource data
# ---------------------------------------------------------------------------

class DataKind(Enum):
    BINARY = "binary"
    MERGEABLE = "mergeable"
    SARC = "sarc"


@dataclass(frozen=True)
class ResourceData:
    kind: DataKind
    value: Any

    @classmethod
    def binary(cls, value: BinaryResource) -> ResourceData:
        return cls(DataKind.BINARY, value)

    @classmethod
    def mergeable(cls, value: MergeableResource) -> ResourceData:
        return cls(DataKind.MERGEABLE, value)

    @classmethod
    def sarc(cls, value: SarcMap) -> ResourceData:
        return cls(DataKind.SARC, value)

    @classmethod
    def from_binary(cls, path: str, data: bytes) -> ResourceData:
        """Identify and parse one file or archive member."""
        try:
            data = yaz0.decompress_if(data)
            kind = schema_for(path)
            if kind is not None:
                log.debug("%s: %s", path, kind.value)
                return cls.mergeable(MergeableResource.parse(kind, data))
            magic = bytes(data[:4])
            if is_aamp(data):
                log.debug("%s: generic parameter archive", path)
                return cls.mergeable(MergeableResource.parse(ResourceKind.GENERIC_PARAMS, data))
            if magic[:2] in (b"BY", b"YB"):
                return cls.binary(BinaryResource.from_byml_bytes(data))
            if magic == b"SARC":
                from Content.archive import SarcMap
                return cls.sarc(SarcMap.from_binary(data))
        except MergeError as exc:
            raise with_path(exc, path)
        raise UnsupportedFormat(path, bytes(data[:4]))

    def _check(self, other: ResourceData, action: str) -> None:
        if other.kind is not self.kind:
            raise SchemaMismatch(
                f"Tried to {action} {self.kind.value} resource with {other.kind.value} resource"
            )

    def diff(self, other: ResourceData) -> ResourceData:
        self._check(other, "diff")
        return ResourceData(self.kind, self.value.diff(other.value))

    def merge(self, diff: ResourceData) -> ResourceData:
        self._check(diff, "merge")
        return ResourceData(self.kind, self.value.merge(diff.value))

    def to_binary(self, endian: Endian, table: ResourceTable) -> bytes:
        if self.kind is DataKind.SARC:
            return self.value.to_binary(endian, table)
        return self.value.to_binary(endian)


__all__ = [
    "BinaryResource", "DataKind", "KIND_TYPES", "MergeableResource", "ResourceData",
    "ResourceKind", "SCHEMAS", "canonical_path", "schema_for",
]
