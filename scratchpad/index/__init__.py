"""Document indexing: matching, walking, loading, the index and its snapshot."""

from .coordinator import IndexCoordinator, IndexSettings, LoadOutcome, open_index
from .index import DirtyMarker, Index, Refresher
from .library import Library, library_for_paths
from .matcher import Matcher
from .snapshot import SnapshotStore
from .walker import Candidate, walk_libraries, walk_library

__all__ = [
    "Candidate",
    "DirtyMarker",
    "Index",
    "IndexCoordinator",
    "IndexSettings",
    "Library",
    "LoadOutcome",
    "Matcher",
    "Refresher",
    "SnapshotStore",
    "library_for_paths",
    "open_index",
    "walk_libraries",
    "walk_library",
]
