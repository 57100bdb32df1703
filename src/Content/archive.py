"""
archive.py
Archives as delete-aware maps, and the table every resource lives in.

A SARC archive is modelled as a map from member name to ArchiveEntry: the
canonical key of the member's resource plus whether the member is stored
Yaz0-compressed.  The member resources themselves live in a ResourceTable,
so a mod that changes one parameter file in a pack diffs as "this key
changed", not as a whole new pack.

Serialising an archive looks every member up in the table.  Members whose
resource nothing touched are copied from the bytes they were read from, so
content no mod changed stays byte-identical.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, NamedTuple

from Content.delete_map import SortedDeleteMap, same
from Content.paths import canonical_path, is_compressed_name
from Content.resource import BinaryResource, DataKind, ResourceData, schema_for
from ukformats.sarc import SarcReader, SarcWriter, is_sarc, yaz0
from Utils.endian import Endian
from Utils.errors import MergeError, MissingResource, UnsupportedFormat, with_path

log = logging.getLogger(__name__)


class ArchiveEntry(NamedTuple):
    """What a member name points at: a resource key and its storage form."""
    canonical: str
    compressed: bool = False


@dataclass
class SarcMap:
    endian: Endian = Endian.LITTLE
    entries: SortedDeleteMap[str, ArchiveEntry] = field(default_factory=SortedDeleteMap)

    @classmethod
    def from_reader(cls, reader: SarcReader) -> SarcMap:
        entries = SortedDeleteMap()
        for name, stored in reader.iter_files():
            entries[name] = ArchiveEntry(canonical_path(name), yaz0.is_compressed(stored))
        return cls(reader.endian, entries)

    @classmethod
    def from_binary(cls, data: bytes) -> SarcMap:
        return cls.from_reader(SarcReader(yaz0.decompress_if(data)))

    def diff(self, other: SarcMap) -> SarcMap:
        return SarcMap(other.endian, self.entries.diff(other.entries))

    def merge(self, diff: SarcMap) -> SarcMap:
        return SarcMap(self.endian, self.entries.merge(diff.entries))

    def to_binary(
        self,
        endian: Endian,
        table: ResourceTable,
        skip_missing: bool = False,
        name: str = "archive",
    ) -> bytes:
        """Rebuild the archive, resolving every member through *table*.

        A member whose resource is missing raises MissingResource, or with
        skip_missing=True is logged and left out.
        """
        writer = SarcWriter(endian)
        for member, entry in self.entries.items():
            try:
                data = table.entry_bytes(entry, endian, skip_missing)
            except MissingResource as exc:
                if not skip_missing:
                    if exc.archive is None:
                        raise MissingResource(exc.key, name) from None
                    raise
                log.warning("Skipping %s in %s: %s", member, name, exc)
                continue
            writer.add_file(member, data)
        return writer.to_binary()


class ResourceTable:
    """Canonical key → ResourceData, plus the stored bytes each key was read from."""

    def __init__(
        self,
        resources: dict[str, ResourceData] | None = None,
        originals: dict[str, bytes] | None = None,
        touched: Iterable[str] = (),
    ) -> None:
        self.resources: dict[str, ResourceData] = dict(resources or {})
        # Stored (possibly compressed) bytes of every key loaded from a file
        self.originals: dict[str, bytes] = dict(originals or {})
        # Keys whose resource differs from what was loaded
        self.touched: set[str] = set(touched)

    def __contains__(self, key: str) -> bool:
        return key in self.resources

    def __len__(self) -> int:
        return len(self.resources)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceTable):
            return NotImplemented
        return self.resources == other.resources

    def get(self, key: str) -> ResourceData | None:
        return self.resources.get(key)

    # -----------------------------------------------------------------------
    # Loading
    # -----------------------------------------------------------------------

    @classmethod
    def from_archive(cls, path: str, data: bytes) -> ResourceTable:
        """Table for one top-level file, nested archives unpacked recursively."""
        table = cls()
        table.add(path, data)
        return table

    def add(self, path: str, data: bytes) -> str:
        """Load *data* found at *path* and everything nested in it.  Returns its key."""
        key = canonical_path(path)
        self.originals[key] = bytes(data)
        try:
            raw = yaz0.decompress_if(data)
        except MergeError as exc:
            raise with_path(exc, path)
        if is_sarc(raw) and schema_for(path) is None:
            try:
                reader = SarcReader(raw)
            except MergeError as exc:
                raise with_path(exc, path)
            self.resources[key] = ResourceData.sarc(SarcMap.from_reader(reader))
            for name, stored in reader.iter_files():
                self.add(f"{path}//{name}", stored)
            return key
        try:
            self.resources[key] = ResourceData.from_binary(path, raw)
        except UnsupportedFormat:
            log.debug("%s: unrecognised format, kept as raw bytes", path)
            self.resources[key] = ResourceData.binary(BinaryResource.agnostic(raw))
        return key

    def update(self, other: ResourceTable) -> None:
        """Take every resource of *other*, keeping resources already loaded here."""
        for key, res in other.resources.items():
            if key not in self.resources:
                self.resources[key] = res
                if key in other.originals:
                    self.originals[key] = other.originals[key]
                if key in other.touched:
                    self.touched.add(key)

    # -----------------------------------------------------------------------
    # Serialising
    # -----------------------------------------------------------------------

    def is_pristine(self, key: str) -> bool:
        """True when *key* and everything nested under it are as loaded."""
        if key in self.touched or key not in self.originals:
            return False
        res = self.resources.get(key)
        if res is not None and res.kind is DataKind.SARC:
            return all(self.is_pristine(e.canonical) for e in res.value.entries.values())
        return True

    def entry_bytes(self, entry: ArchiveEntry, endian: Endian, skip_missing: bool = False) -> bytes:
        """Stored bytes for one archive member or top-level file."""
        key = entry.canonical
        if self.is_pristine(key):
            stored = self.originals[key]
            if yaz0.is_compressed(stored) == entry.compressed:
                return stored
            return yaz0.compress(stored) if entry.compressed else yaz0.decompress(stored)
        res = self.resources.get(key)
        if res is None:
            raise MissingResource(key)
        if res.kind is DataKind.SARC:
            data = res.value.to_binary(endian, self, skip_missing, key)
        else:
            data = res.to_binary(endian, self)
        return yaz0.compress(data) if entry.compressed else data

    def file_bytes(self, path: str, endian: Endian, skip_missing: bool = False) -> bytes:
        """Bytes to write for the top-level file at *path*."""
        entry = ArchiveEntry(canonical_path(path), is_compressed_name(path))
        try:
            return self.entry_bytes(entry, endian, skip_missing)
        except MergeError as exc:
            raise with_path(exc, path)

    # -----------------------------------------------------------------------
    # Diff / merge
    # -----------------------------------------------------------------------

    def diff(self, modified: ResourceTable) -> ResourceTable:
        """Per-key diffs of *modified* against this (base) table.

        Keys the base lacks are taken whole, together with their stored
        bytes, so a file only one mod adds is written back unchanged.  So are
        keys whose data kind changed, e.g. a mod file that no longer parses.
        """
        out = ResourceTable()
        for key, res in modified.resources.items():
            base = self.resources.get(key)
            if base is None or base.kind is not res.kind:
                if base is not None:
                    log.warning("%s: %s resource replaced by %s, taken whole",
                                key, base.kind.value, res.kind.value)
                out.resources[key] = res
                if key in modified.originals:
                    out.originals[key] = modified.originals[key]
            elif not same(base, res):
                out.resources[key] = base.diff(res)
        return out

    def fold(self, key: str, diffs: Iterable[ResourceTable]) -> tuple[ResourceData | None, bytes | None]:
        """Apply every diff's entry for *key* in order; the last one wins conflicts.

        Returns the merged value and, when the last diff was taken whole (a
        key the base lacks, or one whose data kind changed), its stored bytes.
        """
        base = acc = self.resources.get(key)
        stored = None
        for diff in diffs:
            value = diff.resources.get(key)
            if value is None:
                continue
            if acc is not None and acc.kind is value.kind:
                acc, stored = acc.merge(value), None
            elif acc is not None and base is not None and base.kind is value.kind:
                # an earlier mod replaced the resource whole; this diff is against the base
                acc, stored = base.merge(value), None
            else:
                acc, stored = value, diff.originals.get(key)
        return acc, stored

    def with_values(
        self,
        values: dict[str, ResourceData],
        stored: dict[str, bytes] | None = None,
    ) -> ResourceTable:
        """Copy with *values* replacing or adding resources; marks real changes."""
        stored = stored or {}
        out = ResourceTable(self.resources, self.originals, self.touched)
        for key, value in values.items():
            if key in stored:
                out.originals[key] = stored[key]
                out.touched.discard(key)
            elif not same(out.resources.get(key), value):
                out.touched.add(key)
            out.resources[key] = value
        return out

    def merge(self, diff: ResourceTable) -> ResourceTable:
        values: dict[str, ResourceData] = {}
        stored: dict[str, bytes] = {}
        for key in diff.resources:
            value, original = self.fold(key, (diff,))
            values[key] = value
            if original is not None:
                stored[key] = original
        return self.with_values(values, stored)
