"""Document loading and metadata derivation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import frontmatter

from ..errors import DocumentError, ScratchpadError
from ..models import EXTENSION_FORMATS, FORMATS, Document, plain_metadata
from .library import Library
from .parser import (
    extract_aliases,
    extract_heading_title,
    format_document_identifier,
    normalize_token,
)
from .walker import Candidate

logger = logging.getLogger(__name__)


def read_document(path: Path, library: Library) -> Document:
    """Read a file into a bare Document (content and stat only)."""
    try:
        stat = os.stat(path)
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Cannot read document: {path}", code="document-read") from e

    try:
        post = frontmatter.loads(text)
    except Exception as e:
        raise DocumentError(f"Invalid front matter in document: {path}", code="document-front-matter") from e

    return Document(
        path=path,
        library=library.identifier,
        body_lines=post.content.splitlines(),
        metadata=plain_metadata(post.metadata),
        edit_enabled=library.edit_enabled,
        mtime_ns=stat.st_mtime_ns,
        size=stat.st_size,
    )


def initialize_identifier(document: Document, library: Library, root: Path | None = None) -> None:
    """Derive ``library:token``; must run before format and title."""
    if library.use_file_name_as_identifier:
        raw = document.path.stem
    elif library.use_path_in_library_as_identifier:
        root = root or library.root_for(document.path)
        if root is None:
            raise DocumentError(
                f"Document is outside library '{library.identifier}': {document.path}",
                code="document-outside-library",
            )
        raw = document.path.relative_to(root).with_suffix("").as_posix()
    else:
        raw = str(document.metadata.get("identifier") or "")

    token = normalize_token(raw)
    if not token:
        raise DocumentError(f"Cannot derive an identifier for document: {document.path}", code="document-identifier-empty")
    try:
        document.identifier = format_document_identifier(library.identifier, token)
    except ScratchpadError as e:
        raise DocumentError(f"Invalid identifier for document: {document.path}", code="document-identifier-invalid") from e
    document.token = token


def initialize_format(document: Document, library: Library) -> None:
    if library.use_file_extension_as_format:
        extension = document.path.suffix.lstrip(".").lower()
        document_format = EXTENSION_FORMATS.get(extension, "")
    else:
        document_format = str(document.metadata.get("format") or "").strip().lower()

    if document_format not in FORMATS:
        raise DocumentError(
            f"Unknown format {document_format!r} for document {document.identifier}",
            code="document-format-unknown",
        )
    document.format = document_format


def initialize_title(document: Document, library: Library) -> None:
    """Primary title from front matter or the leading heading; may stay empty."""
    declared = document.metadata.get("title")
    declared = str(declared).strip() if declared is not None else ""
    heading = extract_heading_title(document.body_lines)

    title = declared or heading
    alternatives: list[str] = []
    for candidate in [heading, *extract_aliases(document.metadata)]:
        if candidate and candidate != title and candidate not in alternatives:
            alternatives.append(candidate)

    document.title = title
    document.title_alternatives = alternatives


def load_document(path: Path, library: Library, root: Path | None = None) -> Document:
    """Load one document and run the three derivation steps in order."""
    document = read_document(path, library)
    initialize_identifier(document, library, root)
    initialize_format(document, library)
    initialize_title(document, library)
    return document


def load_candidates(library: Library, candidates: list[Candidate]) -> list[Document]:
    """Load a library's walked paths; the first bad document aborts the batch."""
    return [load_document(c.path, library, c.root) for c in candidates]
