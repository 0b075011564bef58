from pathlib import Path

import pytest

from scratchpad.errors import DocumentError
from scratchpad.index.library import Library
from scratchpad.index.loader import load_candidates, load_document
from scratchpad.index.walker import walk_library

from tests.conftest import make_library, write_file


def test_load_path_identifier_and_heading_title(notes_root: Path, notes_library: Library) -> None:
    document = load_document(notes_root / "a.md", notes_library)

    assert document.identifier == "notes:a"
    assert document.token == "a"
    assert document.library == "notes"
    assert document.format == "commonmark"
    assert document.title == "Alpha"
    assert document.body_lines == ["# Alpha", "", "First note."]
    assert document.size == (notes_root / "a.md").stat().st_size
    assert document.mtime_ns == (notes_root / "a.md").stat().st_mtime_ns


def test_front_matter_title_and_aliases(notes_root: Path, notes_library: Library) -> None:
    document = load_document(notes_root / "sub" / "c.md", notes_library)

    assert document.identifier == "notes:sub/c"
    assert document.title == "Charlie"
    assert document.title_alternatives == ["C"]
    assert document.metadata["title"] == "Charlie"
    assert document.body_lines == ["Charlie body"]


def test_text_document_without_title(notes_root: Path, notes_library: Library) -> None:
    document = load_document(notes_root / "b.txt", notes_library)
    assert document.format == "text"
    assert document.title == ""
    assert document.display_title == "[notes:b]"


def test_file_name_identifier_ignores_directories(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    path = write_file(root / "2024" / "Weekly Review.md", "text\n")
    library = make_library(root, use_path_in_library_as_identifier=False, use_file_name_as_identifier=True)

    assert load_document(path, library).identifier == "notes:weekly-review"


def test_front_matter_identifier_and_format(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    path = write_file(root / "whatever.txt", "---\nidentifier: Project Plan\nformat: gemini\n---\n# Plan\n")
    library = make_library(root, use_path_in_library_as_identifier=False, use_file_extension_as_format=False)

    document = load_document(path, library)
    assert document.identifier == "notes:project-plan"
    assert document.format == "gemini"
    assert document.title == "Plan"


def test_missing_front_matter_identifier_fails(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    path = write_file(root / "a.md", "no front matter\n")
    library = make_library(root, use_path_in_library_as_identifier=False)

    with pytest.raises(DocumentError) as excinfo:
        load_document(path, library)
    assert excinfo.value.code == "document-identifier-empty"


def test_unknown_format_fails(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    path = write_file(root / "a.rst", "text\n")
    library = make_library(root, include_glob_patterns=[])

    with pytest.raises(DocumentError) as excinfo:
        load_document(path, library)
    assert excinfo.value.code == "document-format-unknown"


def test_unreadable_document_fails(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    root.mkdir()
    library = make_library(root)

    with pytest.raises(DocumentError) as excinfo:
        load_document(root / "absent.md", library)
    assert excinfo.value.code == "document-read"
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_load_candidates_in_walk_order(notes_library: Library) -> None:
    documents = load_candidates(notes_library, walk_library(notes_library))
    assert [d.identifier for d in documents] == ["notes:a", "notes:b", "notes:sub/c"]


def test_front_matter_dates_become_strings(notes_root: Path, notes_library: Library) -> None:
    document = load_document(notes_root / "sub" / "c.md", notes_library)
    assert document.metadata["created"] == "2024-05-01"
    assert document.metadata["aliases"] == ["C"]
