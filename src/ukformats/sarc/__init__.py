"""
sarc — read and write SARC archives and Yaz0 streams.

Archives may be Yaz0-compressed on disk (.ssarc, .sbactorpack, .spack);
open_sarc() and extract_sarc() decompress transparently.
"""

from __future__ import annotations

from pathlib import Path

from ukformats.sarc import yaz0
from ukformats.sarc.reader import SarcEntry, SarcReader, is_sarc, name_hash
from ukformats.sarc.writer import SarcWriter, pack_sarc


def open_sarc(data: bytes) -> SarcReader:
    """Parse archive bytes, Yaz0-decompressing first when needed."""
    return SarcReader(yaz0.decompress_if(data))


def list_sarc(path: Path | str) -> list[SarcEntry]:
    """List entries in a SARC file."""
    return open_sarc(Path(path).read_bytes()).list_entries()


def extract_sarc(
    sarc_path: Path | str,
    dest_dir: Path | str,
    decompress: bool = False,
    progress_fn=None,
) -> list[Path]:
    """Extract a SARC archive to a directory. Returns list of created file paths.

    decompress: also Yaz0-decompress compressed members.
    progress_fn: optional callable(done: int, total: int) called after each file.
    """
    reader = open_sarc(Path(sarc_path).read_bytes())
    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    created: list[Path] = []
    total = len(reader)
    for i, (name, data) in enumerate(reader.iter_files(), 1):
        if decompress:
            data = yaz0.decompress_if(data)
        out_path = dest / name.lstrip("/")
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(data)
        created.append(out_path)
        if progress_fn:
            progress_fn(i, total)
    return created


__all__ = [
    "SarcEntry", "SarcReader", "SarcWriter", "is_sarc", "name_hash",
    "open_sarc", "list_sarc", "extract_sarc", "pack_sarc", "yaz0",
]
