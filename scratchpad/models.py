"""Data models for indexed documents."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Rendering formats a document can have
FORMATS: tuple[str, ...] = ("commonmark", "gemini", "text")

EXTENSION_FORMATS: dict[str, str] = {
    "md": "commonmark",
    "markdown": "commonmark",
    "gmi": "gemini",
    "gemini": "gemini",
    "txt": "text",
    "text": "text",
}


def plain_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Front matter as it reads back from the snapshot; dates and other non-JSON values become strings."""
    return json.loads(json.dumps(metadata, default=str))


@dataclass
class Document:
    """One indexed note.

    Created by the loader with only ``path`` and content filled in; the
    identifier, format and title are then derived in that order. Once part
    of an index it is replaced wholesale, never mutated.
    """

    path: Path
    library: str
    body_lines: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)  # front matter
    identifier: str = ""  # library:token
    token: str = ""
    format: str = ""
    title: str = ""  # may stay empty
    title_alternatives: list[str] = field(default_factory=list)
    edit_enabled: bool = False
    mtime_ns: int = 0
    size: int = 0

    @property
    def display_title(self) -> str:
        return self.title or f"[{self.identifier}]"

    @property
    def body(self) -> str:
        return "\n".join(self.body_lines)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict for the snapshot."""
        return {
            "identifier": self.identifier,
            "library": self.library,
            "token": self.token,
            "path": str(self.path),
            "format": self.format,
            "title": self.title,
            "title_alternatives": list(self.title_alternatives),
            "edit_enabled": self.edit_enabled,
            "metadata": self.metadata,
            "body_lines": list(self.body_lines),
            "mtime_ns": self.mtime_ns,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Create from a snapshot entry; raises KeyError/TypeError if malformed."""
        return cls(
            path=Path(data["path"]),
            library=str(data["library"]),
            body_lines=[str(line) for line in data["body_lines"]],
            metadata=dict(data.get("metadata") or {}),
            identifier=str(data["identifier"]),
            token=str(data["token"]),
            format=str(data["format"]),
            title=str(data.get("title", "")),
            title_alternatives=[str(t) for t in data.get("title_alternatives", [])],
            edit_enabled=bool(data.get("edit_enabled", False)),
            mtime_ns=int(data.get("mtime_ns", 0)),
            size=int(data.get("size", 0)),
        )
