"""
base_resource.py
Abstract base class that every mergeable resource kind subclasses.

To add support for a new resource kind:
  1. Create a new .py file in the Content/ directory
  2. Subclass ParamsResource (parameter archives) or BymlResource (binary
     trees) and implement the conversion and diff/merge methods
  3. Add the class to ResourceKind and the dispatch table in Content/resource.py

Resources are values: diff() and merge() return new objects and never touch
their inputs, so one base can be merged with many diffs on different threads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Any, ClassVar, TypeVar

from ukformats import byml
from ukformats.aamp import ParameterIO
from Content.paths import schema_path
from Utils.endian import Endian
from Utils.errors import SchemaMismatch

R = TypeVar("R", bound="Resource")


class Resource(ABC):

    # -----------------------------------------------------------------------
    # Identity
    # -----------------------------------------------------------------------

    # Glob patterns, relative to the content root, with the Yaz0 's' removed
    PATH_PATTERNS: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def path_matches(cls, name: str) -> bool:
        """
        Whether a file at *name* belongs to this kind.  *name* may be a plain
        path, an AOC path or a nested "Outer.pack//Inner" member path.
        """
        key = schema_path(name)
        return any(fnmatchcase(key, pattern) for pattern in cls.PATH_PATTERNS)

    # -----------------------------------------------------------------------
    # Binary conversion
    # -----------------------------------------------------------------------

    @classmethod
    @abstractmethod
    def from_binary(cls: type[R], data: bytes) -> R:
        """Parse decompressed file bytes."""

    @abstractmethod
    def to_binary(self, endian: Endian) -> bytes:
        """Serialise for the platform with byte order *endian*."""

    # -----------------------------------------------------------------------
    # Diff / merge
    # -----------------------------------------------------------------------

    @abstractmethod
    def diff(self: R, other: R) -> R:
        """Resource-shaped value holding what *other* changes relative to self."""

    @abstractmethod
    def merge(self: R, diff: R) -> R:
        """Apply a value produced by diff() on top of self."""

    def _check_kind(self, other: Any, action: str) -> None:
        if type(other) is not type(self):
            raise SchemaMismatch(
                f"Attempted to {action} {type(self).__name__} with {type(other).__name__}"
            )


class ParamsResource(Resource):
    """A resource stored as an AAMP parameter archive.

    Parameter archives are little endian on both platforms, so to_binary()
    ignores the platform byte order.
    """

    @classmethod
    @abstractmethod
    def from_pio(cls: type[R], pio: ParameterIO) -> R:
        ...

    @abstractmethod
    def to_pio(self) -> ParameterIO:
        ...

    @classmethod
    def from_binary(cls: type[R], data: bytes) -> R:
        return cls.from_pio(ParameterIO.from_binary(data))

    def to_binary(self, endian: Endian) -> bytes:
        return self.to_pio().to_binary(Endian.LITTLE)


class BymlResource(Resource):
    """A resource stored as a BYML document in the platform's byte order."""

    BYML_VERSION: ClassVar[int] = 2

    @classmethod
    @abstractmethod
    def from_byml(cls: type[R], root: Any) -> R:
        ...

    @abstractmethod
    def to_byml(self) -> Any:
        ...

    @classmethod
    def from_binary(cls: type[R], data: bytes) -> R:
        return cls.from_byml(byml.from_binary(data))

    def to_binary(self, endian: Endian) -> bytes:
        return byml.to_binary(self.to_byml(), endian, self.BYML_VERSION)
