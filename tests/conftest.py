"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from scratchpad.index.library import Library


def write_file(path: Path, text: str = "", *, mtime_ns: int | None = None) -> Path:
    """Write ``text`` to ``path`` (creating parents), optionally pinning its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


def make_library(root: Path, identifier: str = "notes", **overrides) -> Library:
    """An initialized library with path identifiers and extension formats."""
    values = dict(
        identifier=identifier,
        name=identifier.title(),
        paths=[str(root)],
        use_path_in_library_as_identifier=True,
        use_file_extension_as_format=True,
        include_glob_patterns=["**/*.{md,txt}"],
    )
    values.update(overrides)
    return Library(**values).initialize()


@pytest.fixture
def notes_root(tmp_path: Path) -> Path:
    """A small library tree with markdown and text notes."""
    root = tmp_path / "notes"
    write_file(root / "a.md", "# Alpha\n\nFirst note.\n")
    write_file(root / "b.txt", "Bravo body\n")
    write_file(root / ".hidden.md", "# Hidden\n")
    write_file(root / "sub" / "c.md", "---\ntitle: Charlie\naliases: [C]\ncreated: 2024-05-01\n---\nCharlie body\n")
    write_file(root / "sub" / "ignored.png", "")
    return root


@pytest.fixture
def notes_library(notes_root: Path) -> Library:
    return make_library(notes_root)
