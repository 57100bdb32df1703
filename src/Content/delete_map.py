"""
delete_map.py
Delete-aware collections: the building blocks of every resource diff.

A plain dict cannot tell "this key was removed" from "this key was never
mentioned".  These containers keep a third state so a diff can carry
deletions:

    PRESENT  the key maps to a value
    DELETED  tombstone: the key existed in the base and the diff removes it
    ABSENT   the key is not mentioned at all

Tombstones are only ever produced by diff().  merge() consumes them, so a
merged (or freshly parsed) collection never holds one.

Ordering
--------
DeleteMap and DeleteSet keep insertion order; merge() keeps the base order
and appends keys the diff introduces.  SortedDeleteMap iterates in key
order and is used where keys are numeric hashes.  Equality never depends on
order, only on entries and their states.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Hashable, Iterable, Iterator, Mapping, MutableMapping
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class EntryState(Enum):
    PRESENT = "present"
    DELETED = "deleted"
    ABSENT = "absent"


def _default_diff(base: Any, modified: Any) -> Any:
    return base.diff(modified)


def _default_merge(base: Any, diff: Any) -> Any:
    return base.merge(diff)


# ---------------------------------------------------------------------------
# Maps
# ---------------------------------------------------------------------------

class DeleteMap(MutableMapping, Generic[K, V]):
    """Ordered map whose diffs can mark keys as deleted.

    The mapping protocol (len, iteration, ``in``, item access) only sees
    PRESENT keys.  ``del m[k]`` removes a key outright; ``m.delete(k)``
    leaves a tombstone behind.
    """

    def __init__(self, items: Mapping[K, V] | Iterable[tuple[K, V]] | None = None) -> None:
        self._values: dict[K, V] = {}
        self._deleted: dict[K, None] = {}
        if items is not None:
            pairs = items.items() if isinstance(items, Mapping) else items
            for key, value in pairs:
                self[key] = value

    # -- mapping protocol ----------------------------------------------------

    def __getitem__(self, key: K) -> V:
        return self._values[key]

    def __setitem__(self, key: K, value: V) -> None:
        self._deleted.pop(key, None)
        self._values[key] = value

    def __delitem__(self, key: K) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeleteMap):
            return NotImplemented
        return (
            self._values.keys() == other._values.keys()
            and all(same(v, other._values[k]) for k, v in self._values.items())
            and self._deleted.keys() == other._deleted.keys()
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        if self._deleted:
            gone = ", ".join(repr(k) for k in self._deleted)
            body = f"{body}; deleted: {gone}" if body else f"deleted: {gone}"
        return f"{type(self).__name__}({{{body}}})"

    # -- tombstones ----------------------------------------------------------

    def state(self, key: K) -> EntryState:
        if key in self._values:
            return EntryState.PRESENT
        if key in self._deleted:
            return EntryState.DELETED
        return EntryState.ABSENT

    def delete(self, key: K) -> None:
        """Remove *key* and record a tombstone for it."""
        self._values.pop(key, None)
        self._deleted[key] = None

    def deleted_keys(self) -> list[K]:
        return list(self._deleted)

    def copy(self) -> DeleteMap[K, V]:
        out = type(self)()
        for key, value in self.items():
            out[key] = value
        for key in self._deleted:
            out.delete(key)
        return out

    def without_deletes(self) -> DeleteMap[K, V]:
        """Copy holding only the PRESENT entries."""
        return type(self)(self.items())

    # -- diff / merge --------------------------------------------------------

    def diff(self, other: DeleteMap[K, V]) -> DeleteMap[K, V]:
        """Entries of *other* that are new or changed, plus tombstones for
        keys *other* dropped.  Values are compared whole."""
        out = type(self)()
        for key, value in other.items():
            if key not in self._values or not same(self._values[key], value):
                out[key] = value
        for key in self._values:
            if key not in other:
                out.delete(key)
        return out

    def merge(self, diff: DeleteMap[K, V]) -> DeleteMap[K, V]:
        """Apply *diff*: present keys overwrite or insert, tombstones remove."""
        out = self.without_deletes()
        for key, value in diff.items():
            out[key] = value
        for key in diff._deleted:
            out._values.pop(key, None)
        return out

    def deep_diff(
        self,
        other: DeleteMap[K, V],
        differ: Callable[[V, V], V] | None = None,
    ) -> DeleteMap[K, V]:
        """Like diff(), but a value present on both sides is itself diffed.

        differ(base_value, modified_value) defaults to ``base_value.diff``.
        """
        differ = differ or _default_diff
        out = type(self)()
        for key, value in other.items():
            if key not in self._values:
                out[key] = value
            elif not same(self._values[key], value):
                out[key] = differ(self._values[key], value)
        for key in self._values:
            if key not in other:
                out.delete(key)
        return out

    def deep_merge(
        self,
        diff: DeleteMap[K, V],
        merger: Callable[[V, V], V] | None = None,
    ) -> DeleteMap[K, V]:
        """Counterpart of deep_diff(): values present on both sides are merged."""
        merger = merger or _default_merge
        out = self.without_deletes()
        for key, value in diff.items():
            if key in out:
                out[key] = merger(out[key], value)
            else:
                out[key] = value
        for key in diff._deleted:
            out._values.pop(key, None)
        return out


class SortedDeleteMap(DeleteMap[K, V]):
    """DeleteMap that iterates in ascending key order."""

    def __init__(self, items: Mapping[K, V] | Iterable[tuple[K, V]] | None = None) -> None:
        self._order: list[K] | None = None
        super().__init__(items)

    def __setitem__(self, key: K, value: V) -> None:
        if key not in self._values:
            self._order = None
        super().__setitem__(key, value)

    def __delitem__(self, key: K) -> None:
        super().__delitem__(key)
        self._order = None

    def delete(self, key: K) -> None:
        super().delete(key)
        self._order = None

    def merge(self, diff: DeleteMap[K, V]) -> DeleteMap[K, V]:
        out = super().merge(diff)
        out._order = None
        return out

    def deep_merge(self, diff, merger=None):
        out = super().deep_merge(diff, merger)
        out._order = None
        return out

    def __iter__(self) -> Iterator[K]:
        if self._order is None:
            self._order = sorted(self._values)
        return iter(self._order)


# ---------------------------------------------------------------------------
# Set
# ---------------------------------------------------------------------------

class DeleteSet(Generic[K]):
    """Ordered set whose diffs can mark members as deleted (tags, name sets)."""

    def __init__(self, items: Iterable[K] | None = None) -> None:
        self._items: dict[K, None] = dict.fromkeys(items or ())
        self._deleted: dict[K, None] = {}

    def __iter__(self) -> Iterator[K]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeleteSet):
            return NotImplemented
        return (self._items.keys() == other._items.keys()
                and self._deleted.keys() == other._deleted.keys())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._deleted:
            return f"DeleteSet({list(self._items)!r}, deleted={list(self._deleted)!r})"
        return f"DeleteSet({list(self._items)!r})"

    def add(self, item: K) -> None:
        self._deleted.pop(item, None)
        self._items[item] = None

    def discard(self, item: K) -> None:
        self._items.pop(item, None)

    def delete(self, item: K) -> None:
        self._items.pop(item, None)
        self._deleted[item] = None

    def state(self, item: K) -> EntryState:
        if item in self._items:
            return EntryState.PRESENT
        if item in self._deleted:
            return EntryState.DELETED
        return EntryState.ABSENT

    def deleted_keys(self) -> list[K]:
        return list(self._deleted)

    def without_deletes(self) -> DeleteSet[K]:
        return DeleteSet(self._items)

    def diff(self, other: DeleteSet[K]) -> DeleteSet[K]:
        out = DeleteSet(item for item in other if item not in self._items)
        for item in self._items:
            if item not in other:
                out.delete(item)
        return out

    def merge(self, diff: DeleteSet[K]) -> DeleteSet[K]:
        out = self.without_deletes()
        for item in diff:
            out.add(item)
        for item in diff._deleted:
            out.discard(item)
        return out


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

def _key_order(item: tuple[Any, Any]) -> tuple[str, str]:
    key = item[0]
    return type(key).__name__, repr(key)


def freeze(value: Any) -> Hashable:
    """Hashable, type-strict stand-in for a value so it can be matched by content.

    Dicts and maps compare regardless of order; dataclasses compare field by
    field.  Scalars carry their type name, which keeps 1, 1.0, True and
    UInt(1) apart even though Python calls them equal.
    """
    if isinstance(value, dict):
        return ("hash", tuple(sorted(((k, freeze(v)) for k, v in value.items()), key=_key_order)))
    if isinstance(value, DeleteMap):
        items = tuple(sorted(((k, freeze(v)) for k, v in value.items()), key=_key_order))
        deleted = tuple(sorted(((k, None) for k in value.deleted_keys()), key=_key_order))
        return ("map", items, deleted)
    if isinstance(value, list):
        return ("array", tuple(freeze(v) for v in value))
    if isinstance(value, tuple):
        return (type(value).__name__, tuple(freeze(v) for v in value))
    if is_dataclass(value) and not isinstance(value, type):
        return (type(value).__name__, tuple(freeze(getattr(value, f.name)) for f in fields(value)))
    return (type(value).__name__, value)


def same(a: Any, b: Any) -> bool:
    """Type-strict equality: True only if *a* and *b* would serialise alike."""
    return a is b or freeze(a) == freeze(b)


class DeleteList(Generic[V]):
    """List of unkeyed values whose diffs can mark values as removed.

    Items are matched by content and counted, so repeated values survive:
    diff() records each extra occurrence as an addition and each missing one
    as a tombstone, merge() removes one occurrence per tombstone and appends
    every addition.  Equality counts occurrences and ignores order.
    """

    def __init__(self, items: Iterable[V] | None = None) -> None:
        self._items: list[V] = list(items or ())
        self._deleted: list[V] = []

    def __iter__(self) -> Iterator[V]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> V:
        return self._items[index]

    def __contains__(self, value: object) -> bool:
        key = freeze(value)
        return any(freeze(v) == key for v in self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeleteList):
            return NotImplemented
        return (Counter(map(freeze, self._items)) == Counter(map(freeze, other._items))
                and Counter(map(freeze, self._deleted)) == Counter(map(freeze, other._deleted)))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._deleted:
            return f"DeleteList({self._items!r}, deleted={self._deleted!r})"
        return f"DeleteList({self._items!r})"

    def append(self, value: V) -> None:
        self._items.append(value)

    def delete(self, value: V) -> None:
        """Remove the first equal value and record a tombstone for it."""
        key = freeze(value)
        for i, v in enumerate(self._items):
            if freeze(v) == key:
                del self._items[i]
                break
        self._deleted.append(value)

    def deleted_keys(self) -> list[V]:
        return list(self._deleted)

    def without_deletes(self) -> DeleteList[V]:
        return DeleteList(self._items)

    def diff(self, other: DeleteList[V]) -> DeleteList[V]:
        remaining = Counter(map(freeze, self._items))
        out: DeleteList[V] = DeleteList()
        for value in other:
            key = freeze(value)
            if remaining[key] > 0:
                remaining[key] -= 1
            else:
                out.append(value)
        for value in self._items:
            key = freeze(value)
            if remaining[key] > 0:
                remaining[key] -= 1
                out._deleted.append(value)
        return out

    def merge(self, diff: DeleteList[V]) -> DeleteList[V]:
        gone = Counter(map(freeze, diff._deleted))
        out: DeleteList[V] = DeleteList()
        for value in self._items:
            key = freeze(value)
            if gone[key] > 0:
                gone[key] -= 1
                continue
            out.append(value)
        out._items.extend(diff._items)
        return out
