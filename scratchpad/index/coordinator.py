"""
Snapshot-or-walk decision and lazy refresh wiring.

On every (re)load the coordinator compares the snapshot's modification time
with the dirty marker's and with the index's own refresh timestamp, then
either restores the snapshot, walks all libraries, or does nothing. Walked
results are written back to the snapshot. Cross-process invalidation goes
through the dirty marker's modification time only.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import ConfigurationError, DocumentError
from ..models import Document
from .index import DirtyMarker, Index, Refresher
from .library import Library
from .loader import load_candidates, load_document
from .snapshot import SnapshotStore
from .walker import walk_libraries

logger = logging.getLogger(__name__)

SLOW_WALK_MS = 200
SLOW_LOAD_MS = 75


class LoadOutcome(str, Enum):
    """What a load attempt ended up doing."""

    LOADED = "loaded"  # snapshot restored
    WALKED = "walked"  # libraries walked
    UNCHANGED = "unchanged"  # nothing newer than the index


@dataclass
class IndexSettings:
    """Switches governing how the index is sourced and kept fresh."""

    database_path: Path | None = None
    walk_enabled: bool = True
    load_enabled: bool = True
    store_enabled: bool = True
    dirty_enabled: bool = True
    refresh_enabled: bool = True
    libraries_refresh_enabled: bool = True
    documents_refresh_enabled: bool = True

    def __post_init__(self) -> None:
        if self.database_path is None:
            self.load_enabled = False
            self.store_enabled = False
            self.dirty_enabled = False
            self.refresh_enabled = False


class SnapshotDirtyMarker(DirtyMarker):
    """Touches the snapshot's dirty marker file."""

    def __init__(self, store: SnapshotStore):
        self.store = store

    def mark_dirty(self, index: Index) -> None:
        index.refresh_timestamp = self.store.mark_dirty()


class IndexCoordinator(Refresher):
    """Owns the walking logic and the snapshot for one set of libraries."""

    def __init__(self, libraries: list[Library], settings: IndexSettings):
        self.libraries = [library.initialize() for library in libraries]
        self.settings = settings
        self.store = SnapshotStore(settings.database_path) if settings.database_path else None

    # -- full load --------------------------------------------------------

    def load(self, index: Index) -> LoadOutcome:
        """Bring ``index`` up to date from the snapshot or a walk."""
        began = time.monotonic()
        settings = self.settings
        should_walk = settings.walk_enabled
        should_load = settings.load_enabled and self.store is not None
        should_store = settings.store_enabled and self.store is not None
        reference = 0

        if should_load:
            snapshot_timestamp = self.store.timestamp()
            if snapshot_timestamp is None:
                should_load = False
            else:
                reference = snapshot_timestamp

        if should_load and settings.dirty_enabled:
            dirty_timestamp = self.store.dirty_timestamp()
            if dirty_timestamp is not None and dirty_timestamp > reference:
                logger.debug("snapshot not loaded (dirty)")
                should_load = False
                reference = dirty_timestamp

        # a marker touched by this process already moved refresh_timestamp
        if reference and reference <= index.refresh_timestamp:
            logger.debug("index not reloaded (unchanged)")
            return LoadOutcome.UNCHANGED

        loaded = False
        if should_load:
            data = self.store.load(self.libraries)
            if data is not None:
                index.populate(self.libraries, data.documents)
                logger.debug("snapshot loaded: %d documents", len(data.documents))
                loaded = True
                should_walk = False
                should_store = False
            else:
                logger.info("snapshot not loaded (incompatible); walking libraries")

        if should_walk:
            reference = time.time_ns()
            self.walk(index)
            loaded = True

        if not loaded:
            raise ConfigurationError(
                "No usable source of documents (walking disabled and no usable snapshot)",
                code="index-no-source",
            )

        index.refresh_timestamp = reference

        if should_store:
            self._store(index, reference)

        elapsed_ms = int((time.monotonic() - began) * 1000)
        if (should_walk and elapsed_ms >= SLOW_WALK_MS) or (not should_walk and elapsed_ms > SLOW_LOAD_MS):
            logger.debug("index loading took %d milliseconds", elapsed_ms)

        return LoadOutcome.WALKED if should_walk else LoadOutcome.LOADED

    def rebuild(self, index: Index) -> int:
        """Walk unconditionally and store the result; returns the document count."""
        if not self.settings.walk_enabled:
            raise ConfigurationError("Walking is disabled; cannot rebuild the index", code="index-walk-disabled")
        reference = time.time_ns()
        self.walk(index)
        index.refresh_timestamp = reference
        if self.settings.store_enabled and self.store is not None:
            self._store(index, reference)
        return len(index)

    def _store(self, index: Index, reference: int) -> None:
        self.store.store(index.libraries(), index.documents(), reference)
        # refresh_timestamp covers the snapshot just written
        index.refresh_timestamp = max(reference, self.store.timestamp() or 0)

    def walk(self, index: Index) -> None:
        """Walk, load and include every library as one generation."""
        walked = walk_libraries(self.libraries)
        documents: list[Document] = []
        for library, candidates in walked:
            documents.extend(load_candidates(library, candidates))
        index.populate(self.libraries, documents)
        logger.debug("libraries walked: %d libraries, %d documents", len(self.libraries), len(documents))

    # -- Refresher --------------------------------------------------------

    def refresh_libraries(self, index: Index) -> None:
        if not self.settings.load_enabled:
            return
        self.load(index)

    def refresh_document(self, index: Index, document: Document) -> Document:
        try:
            stat = os.stat(document.path)
        except FileNotFoundError as e:
            index.mark_dirty()
            raise DocumentError(f"Document file is missing: {document.path}", code="document-missing") from e
        except OSError as e:
            raise DocumentError(f"Cannot stat document: {document.path}", code="document-stat") from e

        if stat.st_mtime_ns == document.mtime_ns and stat.st_size == document.size:
            return document

        library = index.library(document.library)
        refreshed = load_document(document.path, library)
        if refreshed.identifier != document.identifier:
            index.mark_dirty()
            raise DocumentError(
                f"Document {document.identifier} now derives identifier {refreshed.identifier}",
                code="document-identifier-changed",
            )
        index.replace_document(refreshed)
        index.mark_dirty()
        logger.debug("document refreshed: %s", document.identifier)
        return refreshed


def open_index(libraries: list[Library], settings: IndexSettings) -> Index:
    """Build an index, load it, then wire refresh and dirty strategies."""
    coordinator = IndexCoordinator(libraries, settings)
    index = Index()
    coordinator.load(index)

    can_refresh = settings.walk_enabled and settings.refresh_enabled and coordinator.store is not None
    index.refresher = coordinator
    index.libraries_refresh_enabled = can_refresh and settings.libraries_refresh_enabled
    index.documents_refresh_enabled = can_refresh and settings.documents_refresh_enabled

    if settings.dirty_enabled and coordinator.store is not None:
        index.dirty_marker = SnapshotDirtyMarker(coordinator.store)
        index.dirty_enabled = True

    return index
