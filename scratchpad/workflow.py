"""
Operations external collaborators run against an index.

Resolution always refreshes documents lazily so that files changed since the
snapshot was written are picked up before anything is shown or edited.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import frontmatter

from .errors import ConfigurationError, DocumentError, NotFoundError, ScratchpadError
from .index.index import Index
from .index.library import Library, validate_library_identifier
from .index.loader import load_document
from .index.parser import format_document_identifier, parse_document_identifier, validate_document_token
from .index.walker import walk_accepts
from .models import EXTENSION_FORMATS, Document

logger = logging.getLogger(__name__)


def resolve_library(index: Index, identifier: str) -> Library:
    return index.library(identifier)


def resolve_document(index: Index, identifier: str) -> Document:
    """Look up a document by ``library:token`` and refresh it if stale."""
    identifier, _, _ = parse_document_identifier(identifier)
    return index.refresh_document(index.document(identifier))


def merge_identifiers(library: str | None, document: str | None) -> tuple[str, str]:
    """Normalize ``--library``/``--document`` into ``(library_id, document_id)``.

    With both given, ``document`` is a token inside ``library``. Either
    result may be "" when not applicable.
    """
    if library is not None:
        if document is not None:
            return "", format_document_identifier(library, document)
        return validate_library_identifier(library), ""
    if document is not None:
        identifier, _, _ = parse_document_identifier(document)
        return "", identifier
    return "", ""


def create_document(index: Index, library_id: str, token: str, title: str | None = None) -> Document:
    """Create a new file in a create-enabled library and index it."""
    library = index.library(library_id)
    if not library.create_enabled:
        raise ConfigurationError(f"Library '{library_id}' does not allow creating documents", code="create-disabled")
    validate_document_token(token)
    identifier = format_document_identifier(library_id, token)

    try:
        index.document(identifier)
    except NotFoundError:
        pass
    else:
        raise DocumentError(f"Document already exists: {identifier}", code="document-exists")

    path = Path(library.create_path) / f"{token}.{library.create_extension}"
    if path.exists():
        raise DocumentError(f"File already exists: {path}", code="document-file-exists")
    if not walk_accepts(library, path):
        raise ConfigurationError(
            f"Library '{library_id}' would not index a document at {path}",
            code="create-path-not-indexed",
        )
    if library.use_file_extension_as_format and library.create_extension.lower() not in EXTENSION_FORMATS:
        raise ConfigurationError(
            f"Library '{library_id}' creates .{library.create_extension} files, which have no known format",
            code="create-format-unknown",
        )

    content = f"# {title}\n" if title else ""
    metadata: dict[str, str] = {}
    if not (library.use_file_name_as_identifier or library.use_path_in_library_as_identifier):
        metadata["identifier"] = token
    if not library.use_file_extension_as_format:
        metadata["format"] = EXTENSION_FORMATS.get(library.create_extension, "text")
    if metadata:
        content = frontmatter.dumps(frontmatter.Post(content, **metadata)) + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "x", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise DocumentError(f"Cannot create document file: {path}", code="document-create") from e

    # the new file is removed again unless it loads as `identifier`
    try:
        document = load_document(path, library)
        if document.identifier != identifier:
            raise DocumentError(
                f"Created file {path} derives identifier {document.identifier}, not {identifier}",
                code="document-identifier-changed",
            )
    except ScratchpadError:
        path.unlink(missing_ok=True)
        raise
    index.include_document(document)
    logger.info("document created: %s", identifier)
    return document


def edit_document(index: Index, identifier: str, editor: Callable[[Path], None]) -> Document:
    """Refresh, hand the file to ``editor``, then mark dirty and refresh again."""
    document = resolve_document(index, identifier)
    if not document.edit_enabled:
        raise ConfigurationError(f"Library '{document.library}' does not allow editing", code="edit-disabled")
    editor(document.path)
    index.mark_dirty()
    return index.refresh_document(document)


def _escape_link_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def _library_values(library: Library, source: str) -> list[str]:
    if source == "identifier":
        return [library.identifier]
    if source in ("title", "name"):
        return [library.display_name]
    if source == "path":
        return list(library.paths)
    if source == "commonmark-link":
        return [f"[{_escape_link_text(library.display_name)}](sl:{library.identifier})"]
    raise ConfigurationError(f"Source '{source}' is not available for libraries", code="list-source-invalid")


def _document_values(document: Document, source: str) -> list[str]:
    if source == "identifier":
        return [document.identifier]
    if source in ("title", "name"):
        title = document.display_title
        return [t for t in document.title_alternatives if t != title] + [title]
    if source == "path":
        return [str(document.path)]
    if source == "commonmark-link":
        return [f"[{_escape_link_text(document.display_title)}](sd:{document.identifier})"]
    if source == "body":
        return [line for line in document.body_lines if line.strip()]
    raise ConfigurationError(f"Unknown source '{source}'", code="list-source-invalid")


def list_options(
    index: Index,
    library_id: str | None = None,
    list_type: str = "document",
    label_source: str = "identifier",
    value_source: str = "identifier",
) -> list[tuple[str, str]]:
    """``(label, value)`` pairs for every selected library or document."""
    library = index.library(library_id) if library_id else None
    options: list[tuple[str, str]] = []

    if list_type in ("library", "libraries"):
        libraries = [library] if library is not None else index.libraries()
        for item in libraries:
            for label in _library_values(item, label_source):
                for value in _library_values(item, value_source):
                    if label and value:
                        options.append((label, value))
    elif list_type in ("document", "documents"):
        documents = index.documents_in_library(library.identifier) if library is not None else index.documents()
        for item in documents:
            for label in _document_values(item, label_source):
                for value in _document_values(item, value_source):
                    if label and value:
                        options.append((label, value))
    else:
        raise ConfigurationError(f"Unknown list type '{list_type}'", code="list-type-invalid")

    return options


def grep_options(
    index: Index,
    terms: list[str],
    library_id: str | None = None,
    where: str = "title",
    what: str = "identifier",
    match_any: bool = False,
) -> list[tuple[str, str]]:
    """Document ``(label, value)`` pairs whose ``where`` text contains the terms.

    Matching is a plain case-sensitive substring test against each label
    produced by ``list_options``; every term must occur unless ``match_any``.
    With ``where="body"`` each non-blank line is tested on its own.
    """
    terms = [term for term in terms if term]
    if not terms:
        raise ConfigurationError("At least one non-empty search term is required", code="grep-terms-missing")

    required = 1 if match_any else len(terms)
    selection: list[tuple[str, str]] = []
    for label, value in list_options(index, library_id, "document", where, what):
        if sum(1 for term in terms if term in label) >= required:
            selection.append((label, value))
    return selection
