"""
merge.py
Diff mods against the base game and merge them in load order.

Workflow:
  1. diff_mod() turns each mod's resource table into per-key diffs
     against the base table.
  2. merge_mods() folds the diffs of every key over the base, strictly in
     load order so the later mod wins a conflict.  Different keys are
     independent and folded on a thread pool; the merged table is only
     assembled once every key has finished.
  3. build_outputs() serialises every top-level file any mod's manifest
     lists, copying untouched content through unchanged.

mods[0] is the lowest priority, mods[-1] the highest.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from Content.archive import ResourceTable
from Content.resource import ResourceData
from Utils.endian import Endian
from Utils.errors import MergeError, MissingResource, with_path
from Utils.config_paths import get_merged_dir
from Utils.manifest import Manifest

log = logging.getLogger(__name__)

CONTENT_DIR = "content"
AOC_DIR = "aoc/0010"


@dataclass
class ModDiff:
    """One mod's changes: which files it ships and what changed inside them."""
    name: str
    manifest: Manifest = field(default_factory=Manifest)
    table: ResourceTable = field(default_factory=ResourceTable)


def diff_mod(
    name: str,
    base: ResourceTable,
    modified: ResourceTable,
    manifest: Manifest | None = None,
    log_fn=None,
) -> ModDiff:
    """Diff a mod's loaded resources against the base game's."""
    _log = log_fn or (lambda _: None)
    table = base.diff(modified)
    log.debug("%s: %d of %d resources differ from base", name, len(table), len(modified))
    _log(f"{name}: {len(table)} changed resource(s)")
    return ModDiff(name, manifest or Manifest(), table)


def merge_mods(
    base: ResourceTable,
    mods: list[ModDiff],
    workers: int | None = None,
    log_fn=None,
) -> tuple[ResourceTable, Manifest]:
    """Merge *mods* over *base* in load order.

    Returns the merged table and the union of the mods' manifests.  Errors
    from any key propagate once the pool has shut down, carrying the key.
    """
    _log = log_fn or (lambda _: None)
    manifest = Manifest()
    for mod in mods:
        manifest.extend(mod.manifest)

    diffs = [mod.table for mod in mods]
    keys = sorted({key for table in diffs for key in table.resources})
    _log(f"Merging {len(keys)} resource(s) from {len(mods)} mod(s)")

    values: dict[str, ResourceData] = {}
    stored: dict[str, bytes] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(base.fold, key, diffs): key for key in keys}
        for fut, key in futures.items():
            try:
                value, original = fut.result()
            except MergeError as exc:
                raise with_path(exc, key)
            values[key] = value
            if original is not None:
                stored[key] = original

    log.debug("Merged %d resource(s)", len(values))
    return base.with_values(values, stored), manifest


def output_path(is_aoc: bool, rel: str) -> str:
    return f"{AOC_DIR if is_aoc else CONTENT_DIR}/{rel}"


def build_outputs(
    table: ResourceTable,
    manifest: Manifest,
    endian: Endian,
    skip_missing: bool = False,
    log_fn=None,
) -> dict[str, bytes]:
    """Bytes of every top-level file *manifest* lists, keyed by output path.

    Output paths are "content/<path>" and "aoc/0010/<path>".  With
    skip_missing=True a file or member that cannot be resolved is logged
    and left out instead of raising MissingResource.
    """
    _log = log_fn or (lambda _: None)
    out: dict[str, bytes] = {}
    for is_aoc, rel in manifest.files():
        path = output_path(is_aoc, rel)
        try:
            out[path] = table.file_bytes(path, endian, skip_missing)
        except MissingResource as exc:
            if not skip_missing:
                raise
            log.warning("Skipping %s: %s", path, exc)
            _log(f"Skipped {path}: {exc}")
    return out


def write_outputs(outputs: dict[str, bytes], out_dir: Path | None = None, log_fn=None) -> list[Path]:
    """Write build_outputs() results below *out_dir* (default: the merged dir).

    Returns the written paths.
    """
    out_dir = out_dir or get_merged_dir()
    _log = log_fn or (lambda _: None)
    written: list[Path] = []
    for rel, data in sorted(outputs.items()):
        dest = out_dir / rel
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        written.append(dest)
    _log(f"Wrote {len(written)} file(s) to {out_dir}")
    return written
