"""Breadth-first directory walking for libraries.

Each library root is traversed one directory level at a time: the folders
discovered at one level are queued and visited after the current level, so
the stack never grows with tree depth. Entries are visited in name order,
which makes the output deterministic for an unchanged tree.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from ..errors import WalkError
from .library import Library

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A regular file that survived matching, with the root it was found under."""

    root: Path
    path: Path

    @property
    def relative(self) -> str:
        """The ``/``-prefixed path relative to the root."""
        return "/" + self.path.relative_to(self.root).as_posix()


def walk_library(library: Library) -> list[Candidate]:
    """Walk every root of ``library``; any failure aborts the whole library."""
    library.initialize()
    candidates: list[Candidate] = []
    for root in library.paths:
        candidates.extend(walk_root(library, Path(root)))
    logger.debug("library %s walked: %d candidates", library.identifier, len(candidates))
    return candidates


def walk_root(library: Library, root: Path) -> list[Candidate]:
    matcher = library.matcher
    candidates: list[Candidate] = []
    folders: list[Path] = [root]

    index = 0
    while index < len(folders):
        folder = folders[index]
        index += 1
        try:
            with os.scandir(folder) as entries:
                names = sorted(entry.name for entry in entries)
        except OSError as e:
            raise WalkError(f"Cannot read directory: {folder}", code="walk-read-directory") from e

        for name in names:
            path = folder / name
            if name.startswith("."):
                continue
            try:
                mode = os.stat(path).st_mode
            except OSError as e:
                raise WalkError(f"Cannot stat entry: {path}", code="walk-stat") from e

            relative = "/" + path.relative_to(root).as_posix()
            if stat.S_ISDIR(mode):
                if matcher.prunes_directory(name, relative):
                    logger.debug("pruned directory %s", relative)
                    continue
                folders.append(path)
            elif stat.S_ISREG(mode):
                if matcher.accepts_file(name, relative):
                    candidates.append(Candidate(root=root, path=path))
            else:
                raise WalkError(f"Invalid entry (neither file nor directory): {path}", code="walk-invalid-entry")

    return candidates


def walk_accepts(library: Library, path: Path) -> bool:
    """Whether walking ``library`` would yield ``path``, judged by name only."""
    root = library.root_for(path)
    if root is None or path == root:
        return False
    parts = path.relative_to(root).parts
    relative = ""
    for name in parts[:-1]:
        relative += "/" + name
        if library.matcher.prunes_directory(name, relative):
            return False
    return library.matcher.accepts_file(parts[-1], relative + "/" + parts[-1])


def walk_libraries(libraries: list[Library]) -> list[tuple[Library, list[Candidate]]]:
    """Walk each library in turn; results are only returned when all succeed."""
    walked: list[tuple[Library, list[Candidate]]] = []
    for library in libraries:
        walked.append((library, walk_library(library)))
    return walked
