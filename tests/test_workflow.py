from pathlib import Path

import frontmatter
import pytest

from scratchpad.errors import ConfigurationError, DocumentError, NotFoundError
from scratchpad.index.coordinator import IndexSettings, open_index
from scratchpad.index.index import Index
from scratchpad.workflow import (
    create_document,
    edit_document,
    grep_options,
    list_options,
    merge_identifiers,
    resolve_document,
)

from tests.conftest import make_library, write_file


@pytest.fixture
def index(tmp_path: Path, notes_root: Path) -> Index:
    library = make_library(notes_root, edit_enabled=True, create_enabled=True, create_extension="md")
    return open_index([library], IndexSettings(database_path=tmp_path / "cache" / "index.json"))


def test_merge_identifiers() -> None:
    assert merge_identifiers("notes", "sub/intro") == ("", "notes:sub/intro")
    assert merge_identifiers(None, "notes:intro") == ("", "notes:intro")
    assert merge_identifiers("notes", None) == ("notes", "")
    assert merge_identifiers(None, None) == ("", "")
    with pytest.raises(ConfigurationError):
        merge_identifiers(None, "intro")


def test_resolve_document_refreshes(index: Index, notes_root: Path) -> None:
    before = resolve_document(index, "notes:b")
    write_file(notes_root / "b.txt", "Bravo, longer body now\n", mtime_ns=before.mtime_ns + 1_000_000_000)

    assert resolve_document(index, "notes:b").body_lines == ["Bravo, longer body now"]


def test_resolve_unknown_document(index: Index) -> None:
    with pytest.raises(NotFoundError):
        resolve_document(index, "notes:nope")


def test_create_document(index: Index, notes_root: Path) -> None:
    document = create_document(index, "notes", "ideas/garden", title="Garden ideas")

    assert document.identifier == "notes:ideas/garden"
    assert document.path == notes_root / "ideas" / "garden.md"
    assert document.path.read_text(encoding="utf-8") == "# Garden ideas\n"
    assert index.document("notes:ideas/garden").title == "Garden ideas"


def test_create_rejects_existing(index: Index, notes_root: Path) -> None:
    with pytest.raises(DocumentError) as excinfo:
        create_document(index, "notes", "a")
    assert excinfo.value.code == "document-exists"

    write_file(notes_root / "stray.md", "")
    with pytest.raises(DocumentError) as excinfo:
        create_document(index, "notes", "stray")
    assert excinfo.value.code == "document-file-exists"


def test_create_requires_create_enabled(tmp_path: Path, notes_root: Path) -> None:
    index = open_index([make_library(notes_root)], IndexSettings())
    with pytest.raises(ConfigurationError) as excinfo:
        create_document(index, "notes", "new")
    assert excinfo.value.code == "create-disabled"


def test_create_writes_front_matter_identifier(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    root.mkdir()
    library = make_library(
        root,
        create_enabled=True,
        use_path_in_library_as_identifier=False,
        use_file_extension_as_format=False,
    )
    index = open_index([library], IndexSettings())

    document = create_document(index, "notes", "plan", title="Plan")
    post = frontmatter.load(document.path)
    assert post.metadata == {"identifier": "plan", "format": "text"}
    assert document.title == "Plan"


def test_edit_document_reindexes(index: Index) -> None:
    def editor(path: Path) -> None:
        path.write_text("# Alpha edited\n\nmuch longer body than before\n", encoding="utf-8")

    document = edit_document(index, "notes:a", editor)
    assert document.title == "Alpha edited"
    assert index.document("notes:a").title == "Alpha edited"


def test_edit_requires_edit_enabled(notes_root: Path) -> None:
    index = open_index([make_library(notes_root)], IndexSettings())
    with pytest.raises(ConfigurationError) as excinfo:
        edit_document(index, "notes:a", lambda path: None)
    assert excinfo.value.code == "edit-disabled"


def test_list_document_identifiers(index: Index) -> None:
    options = list_options(index, None, "document", "identifier", "identifier")
    assert [value for _, value in options] == ["notes:a", "notes:b", "notes:sub/c"]


def test_list_titles_with_fallback_and_alternatives(index: Index) -> None:
    options = list_options(index, "notes", "document", "title", "identifier")
    assert options == [
        ("Alpha", "notes:a"),
        ("[notes:b]", "notes:b"),
        ("C", "notes:sub/c"),
        ("Charlie", "notes:sub/c"),
    ]


def test_list_commonmark_links_escaped(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    write_file(root / "x.md", "# See [this]\n")
    library = make_library(root, name="My [notes]")
    index = open_index([library], IndexSettings())

    assert list_options(index, None, "document", "identifier", "commonmark-link") == [
        ("notes:x", "[See \\[this\\]](sd:notes:x)")
    ]
    assert list_options(index, None, "library", "identifier", "commonmark-link") == [
        ("notes", "[My \\[notes\\]](sl:notes)")
    ]


def test_list_libraries(index: Index, notes_root: Path) -> None:
    assert list_options(index, None, "library", "name", "path") == [("Notes", str(notes_root))]


def test_list_rejects_body_for_libraries(index: Index) -> None:
    with pytest.raises(ConfigurationError):
        list_options(index, None, "library", "identifier", "body")


def test_list_unknown_type(index: Index) -> None:
    with pytest.raises(ConfigurationError):
        list_options(index, None, "folders", "identifier", "identifier")


def test_library_of_created_document_must_exist(index: Index) -> None:
    with pytest.raises(NotFoundError):
        create_document(index, "other", "x")


def test_create_rejects_path_a_walk_would_skip(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    root.mkdir()
    library = make_library(root, create_enabled=True, create_extension="md", exclude_glob_patterns=["**/idea.md"])
    index = open_index([library], IndexSettings())

    with pytest.raises(ConfigurationError) as excinfo:
        create_document(index, "notes", "idea")
    assert excinfo.value.code == "create-path-not-indexed"
    assert not (root / "idea.md").exists()
    assert len(index) == 0


def test_create_rejects_extension_without_format(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    root.mkdir()
    library = make_library(root, create_enabled=True, create_extension="org", include_glob_patterns=[])
    index = open_index([library], IndexSettings())

    with pytest.raises(ConfigurationError) as excinfo:
        create_document(index, "notes", "idea")
    assert excinfo.value.code == "create-format-unknown"
    assert list(root.iterdir()) == []


def test_failed_create_removes_file(tmp_path: Path) -> None:
    root = tmp_path / "lib"
    (root / "inbox").mkdir(parents=True)
    library = make_library(root, create_enabled=True, create_path=str(root / "inbox"), create_extension="md")
    index = open_index([library], IndexSettings())

    # files under inbox/ derive "inbox/<token>" from their path
    with pytest.raises(DocumentError) as excinfo:
        create_document(index, "notes", "idea")
    assert excinfo.value.code == "document-identifier-changed"
    assert not (root / "inbox" / "idea.md").exists()

    with pytest.raises(DocumentError) as excinfo:
        create_document(index, "notes", "idea")
    assert excinfo.value.code == "document-identifier-changed"


def test_grep_titles_requires_every_term(index: Index) -> None:
    assert grep_options(index, ["lph"]) == [("Alpha", "notes:a")]
    assert grep_options(index, ["a", "h"]) == [("Alpha", "notes:a"), ("Charlie", "notes:sub/c")]
    assert grep_options(index, ["Alpha", "Charlie"]) == []


def test_grep_match_any(index: Index) -> None:
    options = grep_options(index, ["Alpha", "Charlie"], match_any=True)
    assert [value for _, value in options] == ["notes:a", "notes:sub/c"]


def test_grep_bodies_line_by_line(index: Index) -> None:
    assert grep_options(index, ["body"], where="body") == [
        ("Bravo body", "notes:b"),
        ("Charlie body", "notes:sub/c"),
    ]
    assert grep_options(index, ["Bravo", "Charlie"], where="body") == []


def test_grep_is_case_sensitive(index: Index) -> None:
    assert grep_options(index, ["alpha"]) == []


def test_grep_needs_a_term(index: Index) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        grep_options(index, ["", ""])
    assert excinfo.value.code == "grep-terms-missing"
