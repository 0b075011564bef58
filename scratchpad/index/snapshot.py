"""
On-disk snapshot of the index plus its dirty marker.

The snapshot is a JSON document written atomically (temp file, then
rename). Its modification time is what staleness checks compare; the
sibling ``<snapshot>-dirty`` marker is touched by any process that changes
documents behind the snapshot's back.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .. import __version__
from ..errors import ScratchpadError, SnapshotError
from ..models import FORMATS, Document
from .index import IndexContents
from .library import Library

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = 1
DIRTY_SUFFIX = "-dirty"


@dataclass
class SnapshotData:
    """Contents restored from a compatible snapshot."""

    timestamp: int
    documents: list[Document]


class SnapshotStore:
    """Reads and writes one snapshot file and its dirty marker."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.dirty_path = self.path.with_name(self.path.name + DIRTY_SUFFIX)

    @staticmethod
    def _mtime_ns(path: Path) -> int | None:
        try:
            return os.stat(path).st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SnapshotError(f"Cannot stat {path}", code="snapshot-stat") from e

    def timestamp(self) -> int | None:
        """Modification time of the snapshot, or None when absent."""
        return self._mtime_ns(self.path)

    def dirty_timestamp(self) -> int | None:
        return self._mtime_ns(self.dirty_path)

    def mark_dirty(self) -> int:
        """Touch the dirty marker (creating it if needed); returns its new time."""
        now = time.time_ns()
        try:
            self.dirty_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.dirty_path, os.O_WRONLY | os.O_CREAT, 0o640)
            os.close(fd)
            os.utime(self.dirty_path, ns=(now, now))
        except OSError as e:
            raise SnapshotError(f"Cannot touch dirty marker {self.dirty_path}", code="snapshot-dirty") from e
        logger.debug("snapshot marked dirty: %s", self.dirty_path)
        return now

    def store(self, libraries: list[Library], documents: list[Document], timestamp: int) -> None:
        """Write the snapshot atomically."""
        payload = {
            "format": SNAPSHOT_FORMAT,
            "version": __version__,
            "timestamp": timestamp,
            "libraries": [library.to_config() for library in libraries],
            "documents": [document.to_dict() for document in documents],
        }
        serialized = json.dumps(payload, default=str)
        temp_path = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(serialized, encoding="utf-8")
            os.replace(temp_path, self.path)
        except OSError as e:
            raise SnapshotError(f"Cannot write snapshot {self.path}", code="snapshot-write") from e
        logger.debug("snapshot stored: %s (%d documents)", self.path, len(documents))

    def load(self, libraries: list[Library]) -> SnapshotData | None:
        """Read the snapshot if it is compatible with ``libraries``.

        Returns None when the snapshot was written by another format or
        program version, for other library definitions, or is malformed;
        callers fall back to walking. I/O errors raise.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("snapshot %s is not valid UTF-8; ignoring it", self.path)
            return None
        except OSError as e:
            raise SnapshotError(f"Cannot read snapshot {self.path}", code="snapshot-read") from e

        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("snapshot %s is not valid JSON; ignoring it", self.path)
            return None
        if not isinstance(payload, dict):
            logger.warning("snapshot %s is malformed; ignoring it", self.path)
            return None

        if payload.get("format") != SNAPSHOT_FORMAT or payload.get("version") != __version__:
            logger.info(
                "snapshot %s has incompatible version (format=%s, version=%s)",
                self.path,
                payload.get("format"),
                payload.get("version"),
            )
            return None

        if payload.get("libraries") != [library.to_config() for library in libraries]:
            logger.info("snapshot %s was written for other library definitions", self.path)
            return None

        try:
            documents = [Document.from_dict(entry) for entry in payload["documents"]]
            timestamp = int(payload.get("timestamp", 0))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("snapshot %s has malformed documents (%s); ignoring it", self.path, e)
            return None

        # restored documents must form a generation the index would accept
        staged = IndexContents()
        try:
            for library in libraries:
                staged.include_library(library)
            for document in documents:
                if document.format not in FORMATS:
                    raise SnapshotError(f"Unknown format {document.format!r} for {document.identifier}")
                staged.include_document(document)
        except ScratchpadError as e:
            logger.warning("snapshot %s has invalid documents (%s); ignoring it", self.path, e.describe())
            return None

        return SnapshotData(timestamp=timestamp, documents=documents)

    def describe(self) -> dict[str, Any]:
        """Paths and timestamps, for status reporting."""
        return {
            "path": str(self.path),
            "dirty_path": str(self.dirty_path),
            "timestamp": self.timestamp(),
            "dirty_timestamp": self.dirty_timestamp(),
        }
