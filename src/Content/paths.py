"""
paths.py
Canonical resource keys.

Every file the engine sees has a canonical key: the path relative to the
game's content root, with the Yaz0 's' removed from its extension.  Files
from the add-on content root keep their location apart by the "Aoc/0010/"
prefix.  Nested archive members are addressed as "Outer.pack//Inner/File",
and the key of such a member is that of its innermost part.

    content/Actor/Pack/Foo.sbactorpack            → Actor/Pack/Foo.bactorpack
    aoc/0010/Map/CDungeon/Static.smubin           → Aoc/0010/Map/CDungeon/Static.mubin
    Pack/Bootup.pack//Ecosystem/AreaData.sbyml    → Ecosystem/AreaData.byml
"""

from __future__ import annotations

from pathlib import PurePosixPath

AOC_PREFIX = "Aoc/0010/"

# Roots a mod or dump may place files under, lowercase
_CONTENT_ROOTS = ("content/", "01007ef00011e000/romfs/")
_AOC_ROOTS = ("aoc/0010/", "aoc/", "01007ef00011f001/romfs/")

# Extensions that start with "s" without being Yaz0 variants
_PLAIN_S_SUFFIXES = frozenset({".sarc"})


def split_root(path: str) -> tuple[bool, str]:
    """Return (is_aoc, path relative to its root)."""
    path = path.replace("\\", "/").lstrip("/")
    lower = path.lower()
    for root in _CONTENT_ROOTS:
        if lower.startswith(root):
            return False, path[len(root):]
    for root in _AOC_ROOTS:
        if lower.startswith(root):
            return True, path[len(root):]
    return False, path


def is_compressed_name(name: str) -> bool:
    """True when the extension marks a Yaz0-compressed file (.sbactorpack, .ssarc)."""
    suffix = PurePosixPath(name).suffix.lower()
    return len(suffix) > 2 and suffix.startswith(".s") and suffix not in _PLAIN_S_SUFFIXES


def strip_compression(name: str) -> str:
    """Drop the Yaz0 's' from the final extension only."""
    if not is_compressed_name(name):
        return name
    stem, dot, ext = name.rpartition(".")
    return f"{stem}{dot}{ext[1:]}"


def member_path(path: str) -> str:
    """Innermost part of a nested "a//b//c" path, without a leading slash."""
    return path.replace("\\", "/").split("//")[-1].lstrip("/")


def canonical_path(path: str) -> str:
    """Resource key for a file, an archive member, or a nested member path."""
    path = path.replace("\\", "/")
    if "//" in path.lstrip("/"):
        return strip_compression(member_path(path))
    is_aoc, rel = split_root(path)
    rel = strip_compression(rel)
    return AOC_PREFIX + rel if is_aoc else rel


def schema_path(path: str) -> str:
    """Key used to match a path against resource schemas (no AOC prefix)."""
    key = canonical_path(path)
    return key[len(AOC_PREFIX):] if key.startswith(AOC_PREFIX) else key
