"""Create and edit commands - the two operations that touch document files."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from rich.console import Console

from . import print_error
from ..errors import ScratchpadError
from ..index.index import Index
from ..workflow import create_document, edit_document


def run_create(index: Index, library: str, token: str, title: str | None = None) -> int:
    """Create a document in ``library`` and print its identifier."""
    console = Console(stderr=True)

    try:
        document = create_document(index, library, token, title)
    except ScratchpadError as e:
        print_error(console, e)
        return 1

    console.print(f"[green]Created[/green] {document.path}")
    print(document.identifier)
    return 0


def run_edit(index: Index, identifier: str, editor: Callable[[Path], None]) -> int:
    """Open a document with ``editor`` and re-index it afterwards."""
    console = Console(stderr=True)

    try:
        document = edit_document(index, identifier, editor)
    except ScratchpadError as e:
        print_error(console, e)
        return 1

    console.print(f"[dim]Edited {document.identifier}[/dim]")
    return 0
