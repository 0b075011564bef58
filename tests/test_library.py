from pathlib import Path

import pytest

from scratchpad.errors import ConfigurationError
from scratchpad.index.library import Library, library_for_paths, validate_library_identifier


def test_from_config_coerces_single_strings(tmp_path: Path) -> None:
    library = Library.from_config({"identifier": "notes", "paths": str(tmp_path), "include_glob_patterns": "*.md"})
    assert library.paths == [str(tmp_path)]
    assert library.include_glob_patterns == ["*.md"]


def test_from_config_rejects_unknown_keys() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        Library.from_config({"identifier": "notes", "colour": "blue"})
    assert excinfo.value.code == "library-key-unknown"


def test_from_config_requires_identifier() -> None:
    with pytest.raises(ConfigurationError):
        Library.from_config({"paths": ["/tmp"]})


def test_from_config_checks_types() -> None:
    with pytest.raises(ConfigurationError):
        Library.from_config({"identifier": "notes", "edit_enabled": "yes"})


@pytest.mark.parametrize("identifier", ["Notes", "", "a:b", "-x", "a b"])
def test_invalid_library_identifiers(identifier: str) -> None:
    with pytest.raises(ConfigurationError):
        validate_library_identifier(identifier)


def test_initialize_fills_defaults(tmp_path: Path) -> None:
    library = Library(
        identifier="notes",
        paths=[str(tmp_path)],
        create_enabled=True,
        snapshot_enabled=True,
    ).initialize()

    assert library.create_path == str(tmp_path)
    assert library.create_extension == "txt"
    assert library.snapshot_extension == "snapshot"
    assert library.snapshot_suffix == ".snapshot"
    assert library.initialized


def test_initialize_strips_leading_dots(tmp_path: Path) -> None:
    library = Library(
        identifier="notes",
        paths=[str(tmp_path)],
        create_enabled=True,
        create_extension=".md",
    ).initialize()
    assert library.create_extension == "md"


def test_initialize_rejects_missing_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        Library(identifier="notes", paths=[str(tmp_path / "absent")]).initialize()
    assert excinfo.value.code == "library-path-missing"


def test_initialize_rejects_file_path(tmp_path: Path) -> None:
    path = tmp_path / "file.md"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ConfigurationError) as excinfo:
        Library(identifier="notes", paths=[str(path)]).initialize()
    assert excinfo.value.code == "library-path-not-directory"


def test_initialize_rejects_conflicting_identifier_modes(tmp_path: Path) -> None:
    library = Library(
        identifier="notes",
        paths=[str(tmp_path)],
        use_file_name_as_identifier=True,
        use_path_in_library_as_identifier=True,
    )
    with pytest.raises(ConfigurationError) as excinfo:
        library.initialize()
    assert excinfo.value.code == "library-identifier-mode-conflict"


def test_create_path_required_with_several_roots(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    library = Library(identifier="notes", paths=[str(tmp_path / "a"), str(tmp_path / "b")], create_enabled=True)
    with pytest.raises(ConfigurationError) as excinfo:
        library.initialize()
    assert excinfo.value.code == "library-create-path-missing"


def test_create_settings_require_create_enabled(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        Library(identifier="notes", paths=[str(tmp_path)], create_extension="md").initialize()


def test_to_config_round_trips(tmp_path: Path) -> None:
    library = Library(identifier="notes", name="Notes", paths=[str(tmp_path)], edit_enabled=True)
    assert Library.from_config(library.to_config()) == library


def test_root_for(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    library = Library(identifier="notes", paths=[str(tmp_path / "a"), str(tmp_path / "b")]).initialize()
    assert library.root_for(tmp_path / "b" / "x" / "y.md") == tmp_path / "b"
    assert library.root_for(tmp_path / "c.md") is None


def test_library_for_paths(tmp_path: Path) -> None:
    library = library_for_paths([str(tmp_path)]).initialize()
    assert library.identifier == "library"
    assert library.edit_enabled and library.create_enabled
    assert library.matcher.matches("/x/y.gmi")
    assert not library.matcher.matches("/x/y.png")
