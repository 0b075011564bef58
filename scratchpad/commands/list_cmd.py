"""List and grep commands - enumerate or filter libraries and documents."""

from __future__ import annotations

import json

from rich.console import Console

from . import print_error
from ..errors import ScratchpadError
from ..index.index import Index
from ..workflow import grep_options, list_options

OUTPUT_FORMATS = ("text", "text-sp", "text-0", "json")


def _print_options(options: list[tuple[str, str]], output_format: str) -> None:
    """Print values once each, in index order; json keeps the labels."""
    if output_format == "json":
        print(json.dumps([{"label": l, "value": v} for l, v in options], indent=2))
        return

    values = list(dict.fromkeys(v for _, v in options))
    if output_format == "text-0":
        print("".join(v + "\0" for v in values), end="")
    elif output_format == "text-sp":
        # no trailing separator
        print(" ".join(values), end="")
    else:
        for value in values:
            print(value)


def run_list(
    index: Index,
    *,
    library: str | None = None,
    list_type: str = "document",
    what: str = "identifier",
    label: str = "title",
    output_format: str = "text",
) -> int:
    """Print one value per selected library or document.

    Args:
        index: Loaded index
        library: Restrict documents to this library (or select one library)
        list_type: "library" or "document"
        what: Source of the printed value
        label: Source of the label (json output only)
        output_format: "text" (newline separated), "text-sp" (space separated),
            "text-0" (NUL separated) or "json"

    Returns:
        Exit code (0 = success, 1 = invalid selection)
    """
    console = Console(stderr=True)

    try:
        options = list_options(index, library, list_type, label, what)
    except ScratchpadError as e:
        print_error(console, e)
        return 1

    _print_options(options, output_format)
    return 0


def run_grep(
    index: Index,
    terms: list[str],
    *,
    library: str | None = None,
    where: str = "title",
    what: str = "identifier",
    match_any: bool = False,
    output_format: str = "text",
) -> int:
    """Print documents whose ``where`` text contains the search terms.

    Exit code 0 even when nothing matches; 1 on an invalid selection or
    when no term was given.
    """
    console = Console(stderr=True)

    try:
        options = grep_options(index, terms, library, where, what, match_any)
    except ScratchpadError as e:
        print_error(console, e)
        return 1

    _print_options(options, output_format)
    return 0
