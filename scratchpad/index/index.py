"""
In-memory registry of libraries and documents.

Readers always see one complete generation of documents: bulk reloads are
staged on a fresh container and swapped in under the lock, and a single
document refresh replaces exactly one slot. Refresh and dirty-marking are
delegated to injected strategy objects.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable

from ..errors import ConfigurationError, DuplicateDocumentError, NotFoundError
from ..models import Document
from .library import Library, validate_library_identifier
from .parser import parse_document_identifier


class Refresher(ABC):
    """Re-derives index content from the file system."""

    @abstractmethod
    def refresh_libraries(self, index: "Index") -> None:
        """Re-check the snapshot/walk decision and repopulate if needed."""

    @abstractmethod
    def refresh_document(self, index: "Index", document: Document) -> Document:
        """Return an up-to-date version of ``document``, replacing it if changed."""


class DirtyMarker(ABC):
    """Signals that the persisted snapshot no longer matches the index."""

    @abstractmethod
    def mark_dirty(self, index: "Index") -> None:
        ...


@dataclass
class IndexContents:
    """One generation of libraries and documents, in inclusion order."""

    libraries: dict[str, Library] = field(default_factory=dict)
    documents: dict[str, Document] = field(default_factory=dict)

    def include_library(self, library: Library) -> None:
        validate_library_identifier(library.identifier)
        self.libraries[library.identifier] = library

    def include_document(self, document: Document) -> None:
        _, library, _ = parse_document_identifier(document.identifier)
        if library != document.library:
            raise ConfigurationError(
                f"Document {document.identifier} claims library '{document.library}'",
                code="document-library-mismatch",
            )
        if library not in self.libraries:
            raise NotFoundError(
                f"Document {document.identifier} refers to unknown library '{library}'",
                code="library-not-found",
            )
        if document.identifier in self.documents:
            raise DuplicateDocumentError(
                f"Duplicate document identifier {document.identifier}: "
                f"{self.documents[document.identifier].path} and {document.path}"
            )
        self.documents[document.identifier] = document


class Index:
    """Registry of libraries and documents plus refresh bookkeeping."""

    def __init__(
        self,
        *,
        refresher: Refresher | None = None,
        dirty_marker: DirtyMarker | None = None,
    ):
        self._lock = threading.RLock()
        self._contents = IndexContents()
        self.refresher = refresher
        self.dirty_marker = dirty_marker
        self.libraries_refresh_enabled = refresher is not None
        self.documents_refresh_enabled = refresher is not None
        self.dirty_enabled = dirty_marker is not None
        # st_mtime_ns-comparable time of the last successful walk or load
        self.refresh_timestamp = 0

    # -- mutation ---------------------------------------------------------

    def clear(self) -> None:
        with self._lock:
            self._contents = IndexContents()

    def include_library(self, library: Library) -> None:
        with self._lock:
            self._contents.include_library(library)

    def include_document(self, document: Document) -> None:
        """Register one document; marks the snapshot dirty."""
        with self._lock:
            self._contents.include_document(document)
        self.mark_dirty()

    def populate(self, libraries: Iterable[Library], documents: Iterable[Document]) -> None:
        """Replace everything with a fully computed generation.

        Equivalent to ``clear`` followed by inclusion of every library and
        document, except that nothing is visible until all inclusions
        succeeded and the dirty marker is not touched.
        """
        staged = IndexContents()
        for library in libraries:
            staged.include_library(library)
        for document in documents:
            staged.include_document(document)
        with self._lock:
            self._contents = staged

    def replace_document(self, document: Document) -> None:
        """Swap the slot holding ``document.identifier`` (must exist)."""
        with self._lock:
            if document.identifier not in self._contents.documents:
                raise NotFoundError(f"Unknown document: {document.identifier}", code="document-not-found")
            self._contents.documents[document.identifier] = document

    # -- queries ----------------------------------------------------------

    def library(self, identifier: str) -> Library:
        validate_library_identifier(identifier)
        with self._lock:
            library = self._contents.libraries.get(identifier)
        if library is None:
            raise NotFoundError(f"Unknown library: {identifier}", code="library-not-found")
        return library

    def document(self, identifier: str) -> Document:
        parse_document_identifier(identifier)
        with self._lock:
            document = self._contents.documents.get(identifier)
        if document is None:
            raise NotFoundError(f"Unknown document: {identifier}", code="document-not-found")
        return document

    def libraries(self) -> list[Library]:
        with self._lock:
            return list(self._contents.libraries.values())

    def documents(self) -> list[Document]:
        with self._lock:
            return list(self._contents.documents.values())

    def documents_in_library(self, identifier: str) -> list[Document]:
        self.library(identifier)
        with self._lock:
            return [d for d in self._contents.documents.values() if d.library == identifier]

    def __len__(self) -> int:
        with self._lock:
            return len(self._contents.documents)

    # -- refresh hooks ----------------------------------------------------

    def refresh_libraries(self) -> None:
        if self.libraries_refresh_enabled and self.refresher is not None:
            self.refresher.refresh_libraries(self)

    def refresh_document(self, document: Document) -> Document:
        if self.documents_refresh_enabled and self.refresher is not None:
            return self.refresher.refresh_document(self, document)
        return document

    def mark_dirty(self) -> None:
        if self.dirty_enabled and self.dirty_marker is not None:
            self.dirty_marker.mark_dirty(self)
