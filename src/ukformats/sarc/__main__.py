"""
Run from the src directory (or after installing):
  python -m ukformats.sarc path/to/Bootup.pack                     # list contents
  python -m ukformats.sarc path/to/Bootup.pack --extract D          # extract to directory D
  python -m ukformats.sarc path/to/Foo.sbactorpack -x D --decompress   # also unpack Yaz0 members
  python -m ukformats.sarc --pack DIR -o out.pack                  # repack directory (little endian)
  python -m ukformats.sarc --pack DIR -o out.ssarc --big-endian --yaz0
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from Utils.endian import Endian
from Utils.errors import MergeError
from ukformats.sarc import extract_sarc, list_sarc, pack_sarc


def main() -> None:
    ap = argparse.ArgumentParser(description="List, extract, or pack a SARC archive.")
    ap.add_argument("sarc", type=Path, nargs="?", help="Path to archive (for list/extract)")
    ap.add_argument("--extract", "-x", metavar="DIR", type=Path, help="Extract archive into DIR")
    ap.add_argument("--decompress", action="store_true", help="Extract: Yaz0-decompress members.")
    ap.add_argument("--pack", "-p", metavar="DIR", type=Path, help="Pack directory DIR into an archive")
    ap.add_argument("-o", "--output", type=Path, help="Output archive path (required with --pack)")
    ap.add_argument("--big-endian", action="store_true", help="Pack: write a Wii U (big endian) archive.")
    ap.add_argument("--yaz0", action="store_true", help="Pack: Yaz0-compress the archive.")
    args = ap.parse_args()

    if args.pack is not None:
        if args.output is None:
            print("Error: --pack requires -o / --output", file=sys.stderr)
            sys.exit(1)
        pack_dir = args.pack.resolve()
        if not pack_dir.is_dir():
            print(f"Not a directory: {pack_dir}", file=sys.stderr)
            sys.exit(1)
        endian = Endian.BIG if args.big_endian else Endian.LITTLE
        n = pack_sarc(pack_dir, args.output, endian=endian, compress=args.yaz0)
        print(f"Packed {n} file(s) into {args.output}")
        return

    if args.sarc is None:
        print("Error: archive path required (or use --pack DIR -o out.pack)", file=sys.stderr)
        sys.exit(1)
    sarc_path = args.sarc.resolve()
    if not sarc_path.is_file():
        print(f"Not a file: {sarc_path}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.extract is not None:
            dest = args.extract.resolve()
            paths = extract_sarc(sarc_path, dest, decompress=args.decompress)
            print(f"Extracted {len(paths)} file(s) to {dest}")
            for p in paths[:20]:
                print(f"  {p.relative_to(dest)}")
            if len(paths) > 20:
                print(f"  ... and {len(paths) - 20} more")
        else:
            entries = list_sarc(sarc_path)
            print(f"{sarc_path}: {len(entries)} file(s)")
            for e in entries[:50]:
                print(f"  {e.size:>10}  {e.name}")
            if len(entries) > 50:
                print(f"  ... and {len(entries) - 50} more")
    except MergeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
