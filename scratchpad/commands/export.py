"""Export and dump commands - print documents or the whole index."""

from __future__ import annotations

import json

from rich.console import Console

from . import print_error
from ..errors import DocumentError, ScratchpadError
from ..index.index import Index
from ..models import Document
from ..workflow import resolve_document

EXPORT_FORMATS = ("identifier", "title", "name", "path", "source", "json")


def run_export(index: Index, identifier: str, output_format: str = "source") -> int:
    """Print one document, refreshed from disk first.

    Args:
        index: Loaded index
        identifier: ``library:token`` of the document
        output_format: What to print (see EXPORT_FORMATS)

    Returns:
        Exit code (0 = success, 1 = document not found or unreadable)
    """
    console = Console(stderr=True)

    try:
        document = resolve_document(index, identifier)
        source = _read_source(document) if output_format == "source" else ""
    except ScratchpadError as e:
        print_error(console, e)
        return 1

    if output_format == "json":
        print(json.dumps(document.to_dict(), indent=2, default=str))
    elif output_format == "source":
        print(source, end="")
    else:
        print(_field(document, output_format))

    return 0


def _read_source(document: Document) -> str:
    try:
        return document.path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Cannot read document: {document.path}", code="document-read") from e


def _field(document: Document, output_format: str) -> str:
    if output_format == "identifier":
        return document.identifier
    if output_format in ("title", "name"):
        return document.display_title
    if output_format == "path":
        return str(document.path)
    raise ValueError(f"Unknown export format: {output_format}")


def run_dump(index: Index) -> int:
    """Print every library and document as one JSON object."""
    payload = {
        "libraries": [library.to_config() for library in index.libraries()],
        "documents": [document.to_dict() for document in index.documents()],
    }
    print(json.dumps(payload, indent=2, default=str))
    return 0
