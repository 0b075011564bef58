"""
Error hierarchy for the indexing core.

Every failure carries a stable ``code`` (kebab-case, like lint rule ids) and
chains its originating exception through ``raise ... from``. Nothing here is
retried; callers propagate until the CLI reports it.
"""

from __future__ import annotations


class ScratchpadError(Exception):
    """Base error with a stable identifying code."""

    code = "error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def describe(self) -> str:
        """One-line description including the chained cause, if any."""
        text = f"[{self.code}] {self.message}"
        if self.__cause__ is not None:
            text += f" ({type(self.__cause__).__name__}: {self.__cause__})"
        return text


class ConfigurationError(ScratchpadError):
    """Invalid identifiers, paths, conflicting flags, unreadable TOML."""

    code = "configuration"


class PatternError(ConfigurationError):
    """A glob or regular-expression pattern failed to compile."""

    code = "pattern-invalid"


class WalkError(ScratchpadError):
    """A library directory could not be traversed."""

    code = "walk"


class DocumentError(ScratchpadError):
    """A document could not be loaded or its metadata derived."""

    code = "document"


class DuplicateDocumentError(DocumentError):
    code = "document-duplicate"


class SnapshotError(ScratchpadError):
    """I/O failure on the snapshot file or its dirty marker."""

    code = "snapshot"


class NotFoundError(ScratchpadError, LookupError):
    """Unknown library or document identifier."""

    code = "not-found"
