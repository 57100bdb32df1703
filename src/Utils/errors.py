"""
errors.py
Error taxonomy for parsing, dispatching and merging game resources.

Recoverable problems derive from MergeError so a caller can skip the
offending file and carry on:

  ParseError        — truncated bytes, wrong magic, wrong value type
  MissingResource   — an archive entry points at a key the table lacks
  UnsupportedFormat — no schema and no known magic; never guessed

SchemaMismatch is different: it means two resources of different kinds were
diffed or merged, which only happens when calling code is wrong.  It is a
RuntimeError on purpose so ``except MergeError`` handlers let it through.
"""

from __future__ import annotations

from enum import Enum


class ParseErrorKind(Enum):
    UNEXPECTED_EOF = "unexpected end of data"
    BAD_MAGIC = "bad magic"
    TYPE_MISMATCH = "type mismatch"


class MergeError(Exception):
    """Base class for recoverable resource errors."""

    path: str | None = None

    def _where(self) -> str:
        return f" in {self.path}" if self.path else ""


class ParseError(MergeError):
    """Raised when bytes cannot be decoded into the expected structure."""

    def __init__(
        self,
        kind: ParseErrorKind,
        detail: str = "",
        *,
        path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.path = path
        self.field = field
        super().__init__(str(self))

    def __str__(self) -> str:
        msg = self.kind.value
        if self.field:
            msg += f" (field {self.field!r})"
        if self.detail:
            msg += f": {self.detail}"
        return msg + self._where()

    @classmethod
    def eof(cls, detail: str = "") -> ParseError:
        return cls(ParseErrorKind.UNEXPECTED_EOF, detail)

    @classmethod
    def bad_magic(cls, detail: str = "") -> ParseError:
        return cls(ParseErrorKind.BAD_MAGIC, detail)

    @classmethod
    def type_mismatch(cls, field: str, detail: str = "") -> ParseError:
        return cls(ParseErrorKind.TYPE_MISMATCH, detail, field=field)


class MissingResource(MergeError):
    """An archive entry or dump lookup names a resource that is not there."""

    def __init__(self, key: str, archive: str | None = None) -> None:
        self.key = key
        self.archive = archive
        self.path = archive
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.archive:
            return f"Missing resource {self.key!r} for archive {self.archive}"
        if self.path:
            return f"Missing resource {self.key!r} in {self.path}"
        return f"Missing resource {self.key!r}"


class UnsupportedFormat(MergeError):
    """Bytes match no schema path and no known magic."""

    def __init__(self, path: str, magic: bytes = b"") -> None:
        self.path = path
        self.magic = magic
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Unrecognised resource format {self.magic[:4]!r} in {self.path}"


class SchemaMismatch(RuntimeError):
    """diff/merge called on two resources of incompatible declared types."""


def with_path(err: MergeError, path: str) -> MergeError:
    """Attach *path* to an error raised below the dispatch layer, if unset."""
    if err.path is None:
        err.path = path
        err.args = (str(err),)
    return err
