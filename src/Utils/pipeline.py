"""
pipeline.py
Merge a list of mod folders or archives against the user's dump, using the
saved settings for platform, dump location, worker count and missing-file
handling.

Run from the src directory (or after installing):
  python -m Utils.pipeline ModA.zip ModB/                      # settings.json decides
  python -m Utils.pipeline ModA.7z ModB.zip -o out/ --platform wiiu --dump /games/botw/content
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from Content.archive import ResourceTable
from Utils.dump import DumpProvider
from Utils.endian import Platform
from Utils.errors import MergeError
from Utils.merge import ModDiff, build_outputs, diff_mod, merge_mods, write_outputs
from Utils.mod_reader import ModReader, build_mod_table
from Utils.settings import Settings

log = logging.getLogger(__name__)


def dump_from_settings(settings: Settings) -> DumpProvider:
    if not settings.dump_content_dir:
        raise ValueError("No game dump configured (dump_content_dir is empty)")
    return DumpProvider(settings.dump_content_dir, settings.dump_aoc_dir)


def load_mods(
    mod_paths: Iterable[Path | str],
    dump: DumpProvider,
    log_fn=None,
) -> tuple[ResourceTable, list[ModDiff]]:
    """Read every mod and diff it against the dump files any of them touch.

    mod_paths are in load order, lowest priority first.
    """
    base = ResourceTable()
    loaded = []
    for path in mod_paths:
        with ModReader(path) as reader:
            mod_base, mod = build_mod_table(reader, dump, log_fn)
            base.update(mod_base)
            loaded.append((reader.name, reader.manifest, mod))
    log.info("Loaded %d mod(s), %d base resource(s)", len(loaded), len(base))
    mods = [diff_mod(name, base, mod, manifest, log_fn) for name, manifest, mod in loaded]
    return base, mods


def merge_mod_files(
    mod_paths: Iterable[Path | str],
    settings: Settings | None = None,
    out_dir: Path | None = None,
    log_fn=None,
) -> list[Path]:
    """Load, merge and write *mod_paths*; returns the written files.

    *settings* defaults to the saved settings.json.
    """
    settings = settings or Settings.load()
    base, mods = load_mods(mod_paths, dump_from_settings(settings), log_fn)
    table, manifest = merge_mods(base, mods, workers=settings.workers, log_fn=log_fn)
    outputs = build_outputs(table, manifest, settings.endian, settings.skip_missing, log_fn)
    return write_outputs(outputs, out_dir, log_fn)


def main() -> None:
    ap = argparse.ArgumentParser(description="Merge mods in load order (lowest priority first).")
    ap.add_argument("mods", type=Path, nargs="+", help="Mod folders, .zip or .7z archives")
    ap.add_argument("-o", "--output", type=Path, help="Output directory (default: the merged dir)")
    ap.add_argument("--settings", type=Path, help="Settings file (default: settings.json in the config dir)")
    ap.add_argument("--platform", choices=[p.value for p in Platform], help="Override the platform")
    ap.add_argument("--dump", help="Override the dump content directory")
    ap.add_argument("--aoc-dump", help="Override the dump add-on content directory")
    ap.add_argument("--workers", type=int, help="Override the worker count")
    ap.add_argument("--skip-missing", action="store_true", help="Leave out files that cannot be resolved")
    args = ap.parse_args()

    settings = Settings.load(args.settings)
    overrides = {
        "platform": Platform(args.platform) if args.platform else None,
        "dump_content_dir": args.dump,
        "dump_aoc_dir": args.aoc_dump,
        "workers": args.workers,
        "skip_missing": True if args.skip_missing else None,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    try:
        written = merge_mod_files(args.mods, settings, args.output, log_fn=print)
    except (MergeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"Merged {len(args.mods)} mod(s) into {len(written)} file(s)")


if __name__ == "__main__":
    main()
