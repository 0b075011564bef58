"""Identifier grammar, token normalization and title extraction."""

from __future__ import annotations

import re
from typing import Any

from ..errors import ConfigurationError
from .library import LIBRARY_IDENTIFIER_TOKEN, validate_library_identifier

DOCUMENT_SEGMENT_TOKEN = r"(?:[a-z0-9]+(?:[._-]+[a-z0-9]+)*)"
DOCUMENT_TOKEN = rf"(?:{DOCUMENT_SEGMENT_TOKEN}(?:/{DOCUMENT_SEGMENT_TOKEN})*)"
DOCUMENT_TOKEN_PATTERN = re.compile(rf"^{DOCUMENT_TOKEN}$")
DOCUMENT_IDENTIFIER_PATTERN = re.compile(rf"^({LIBRARY_IDENTIFIER_TOKEN}):({DOCUMENT_TOKEN})$")

_SEGMENT_INVALID = re.compile(r"[^a-z0-9._-]+")
_SEGMENT_EDGES = re.compile(r"^[._-]+|[._-]+$")
_SEPARATOR_RUNS = re.compile(r"[._-]*-[._-]*")

# "# Title", "## Title" and gemtext headings alike
ATX_HEADING = re.compile(r"^#{1,6}\s+(.+?)\s*#*\s*$")
SETEXT_UNDERLINE = re.compile(r"^\s*(=+|-+)\s*$")


def normalize_token(raw: str) -> str:
    """Normalize a file-derived token; returns "" if nothing survives.

    Lower-cased; within each ``/`` segment every run of characters outside
    ``[a-z0-9._-]`` becomes ``-``, separators are trimmed at the edges and
    empty segments are dropped.
    """
    segments = []
    for segment in raw.replace("\\", "/").split("/"):
        segment = _SEGMENT_INVALID.sub("-", segment.strip().lower())
        segment = _SEPARATOR_RUNS.sub("-", segment)
        segment = _SEGMENT_EDGES.sub("", segment)
        if segment:
            segments.append(segment)
    return "/".join(segments)


def validate_document_token(token: str) -> str:
    if not isinstance(token, str) or not DOCUMENT_TOKEN_PATTERN.match(token):
        raise ConfigurationError(f"Invalid document token: {token!r}", code="document-token-invalid")
    return token


def format_document_identifier(library: str, token: str) -> str:
    """Compose ``library:token`` after validating both parts."""
    validate_library_identifier(library)
    validate_document_token(token)
    return f"{library}:{token}"


def parse_document_identifier(identifier: str) -> tuple[str, str, str]:
    """Split ``library:token``; returns ``(identifier, library, token)``."""
    match = DOCUMENT_IDENTIFIER_PATTERN.match(identifier) if isinstance(identifier, str) else None
    if not match:
        raise ConfigurationError(f"Invalid document identifier: {identifier!r}", code="document-identifier-invalid")
    return identifier, match.group(1), match.group(2)


def extract_heading_title(lines: list[str]) -> str:
    """Title from the first non-empty line, if that line is a heading.

    Handles ATX headings (``# Title``) and setext headings (a line followed
    by ``===`` or ``---``). Anything else yields "".
    """
    for position, line in enumerate(lines):
        if not line.strip():
            continue
        match = ATX_HEADING.match(line.strip())
        if match:
            return match.group(1).strip()
        following = lines[position + 1] if position + 1 < len(lines) else ""
        if SETEXT_UNDERLINE.match(following) and following.strip():
            return line.strip()
        return ""
    return ""


def extract_aliases(metadata: dict[str, Any]) -> list[str]:
    """Alternative titles declared in front matter (``aliases``)."""
    aliases = metadata.get("aliases", [])
    if isinstance(aliases, str):
        aliases = [aliases]
    if not isinstance(aliases, list):
        return []
    return [str(a).strip() for a in aliases if str(a).strip()]
