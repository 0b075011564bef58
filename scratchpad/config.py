"""
Configuration loading.

The configuration is a TOML file with ``[globals]``, ``[index]`` and
``[[library]]`` tables. It is discovered from a fixed list of locations
when not given explicitly, and determines where the index snapshot lives.
"""

from __future__ import annotations

import hashlib
import os
import platform
import stat
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from platformdirs import user_cache_dir, user_config_dir

from .errors import ConfigurationError
from .index.coordinator import IndexSettings
from .index.library import Library, library_for_paths

APP_NAME = "scratchpad"

GLOBAL_KEYS = {"unique_identifier", "working_directory"}
INDEX_KEYS = {"database_enabled", "database_path", "libraries_refresh_enabled", "documents_refresh_enabled"}
TOP_LEVEL_KEYS = {"globals", "index", "library"}


@dataclass
class IndexFlags:
    """Command-line switches that disable parts of index sourcing."""

    walk_disabled: bool = False
    database_disabled: bool = False
    load_disabled: bool = False
    store_disabled: bool = False
    dirty_disabled: bool = False
    refresh_disabled: bool = False


@dataclass
class Configuration:
    """Parsed configuration file (all fields optional)."""

    path: Path | None = None
    unique_identifier: str | None = None
    working_directory: str | None = None
    database_enabled: bool = True
    database_path: str | None = None
    libraries_refresh_enabled: bool = True
    documents_refresh_enabled: bool = True
    libraries: list[Library] = field(default_factory=list)

    def identity(self) -> str:
        """Unique identifier used to name the snapshot ("" if none)."""
        if self.unique_identifier:
            return self.unique_identifier
        if self.path is None:
            return ""
        return fingerprint(f"{platform.node()}\0{self.path}")


def fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def candidate_paths(cwd: Path | None = None, home: Path | None = None) -> list[tuple[Path, bool, bool]]:
    """Search locations as ``(path, must_be_file, in_working_directory)``."""
    cwd = cwd or Path(".")
    home = home if home is not None else Path.home()
    config_dir = Path(user_config_dir(APP_NAME))
    return [
        (cwd / ".scratchpad", True, True),
        (cwd / ".scratchpad.toml", True, True),
        (cwd / "default.toml", True, True),
        (home / ".scratchpad", True, False),
        (home / ".scratchpad.toml", True, False),
        (home / ".scratchpad" / "default.toml", False, False),
        (config_dir / "default.toml", False, False),
    ]


def find_configuration(cwd: Path | None = None, home: Path | None = None) -> tuple[Path, bool] | None:
    """First existing configuration file, with whether it lives in ``cwd``."""
    for path, must_be_file, in_working_directory in candidate_paths(cwd, home):
        try:
            mode = os.stat(path).st_mode
        except FileNotFoundError:
            continue
        except OSError as e:
            raise ConfigurationError(f"Cannot stat configuration candidate {path}", code="config-stat") from e
        if must_be_file and stat.S_ISDIR(mode):
            continue
        return path, in_working_directory
    return None


def _table(data: dict[str, Any], name: str, allowed: set[str]) -> dict[str, Any]:
    table = data.get(name, {})
    if not isinstance(table, dict):
        raise ConfigurationError(f"[{name}] must be a table", code="config-invalid")
    unknown = sorted(set(table) - allowed)
    if unknown:
        raise ConfigurationError(f"Unknown keys in [{name}]: {', '.join(unknown)}", code="config-key-unknown")
    return table


def _typed(table: dict[str, Any], key: str, expected: type, default: Any) -> Any:
    value = table.get(key, default)
    if value is not None and not isinstance(value, expected):
        raise ConfigurationError(f"'{key}' must be of type {expected.__name__}", code="config-invalid")
    return value


def load_configuration(path: Path, in_working_directory: bool = False) -> Configuration:
    """Parse a configuration file.

    An empty (or whitespace-only) file discovered in the working directory
    stands for a single default library rooted beside it.
    """
    try:
        resolved = Path(os.path.abspath(path)).resolve(strict=True)
        text = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}", code="config-read") from e

    config = Configuration(path=resolved)
    if not text.strip():
        if in_working_directory:
            config.libraries = [library_for_paths([str(resolved.parent)])]
        return config

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Failed to parse configuration {resolved}", code="config-parse") from e

    unknown = sorted(set(data) - TOP_LEVEL_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration tables: {', '.join(unknown)}", code="config-key-unknown")

    globals_table = _table(data, "globals", GLOBAL_KEYS)
    index_table = _table(data, "index", INDEX_KEYS)

    config.unique_identifier = _typed(globals_table, "unique_identifier", str, None)
    config.working_directory = _typed(globals_table, "working_directory", str, None)
    config.database_enabled = _typed(index_table, "database_enabled", bool, True)
    config.database_path = _typed(index_table, "database_path", str, None)
    config.libraries_refresh_enabled = _typed(index_table, "libraries_refresh_enabled", bool, True)
    config.documents_refresh_enabled = _typed(index_table, "documents_refresh_enabled", bool, True)

    libraries = data.get("library", [])
    if not isinstance(libraries, list):
        raise ConfigurationError("[[library]] must be an array of tables", code="config-invalid")
    config.libraries = [Library.from_config(entry) for entry in libraries]
    return config


def resolve_working_directory(config: Configuration) -> Path | None:
    """Directory to change into, expanding ``{CONF}``."""
    value = config.working_directory
    if value is None:
        return None
    if not value:
        raise ConfigurationError("working_directory is empty", code="config-working-directory-empty")
    if value == "{CONF}":
        if config.path is None:
            raise ConfigurationError("{CONF} used without a configuration file", code="config-working-directory-conf")
        return config.path.parent
    return Path(value)


def resolve_libraries(paths: list[str], configured: list[Library]) -> list[Library]:
    """Pick the libraries for this run and initialize them."""
    if paths and configured:
        raise ConfigurationError(
            "Library paths on the command line conflict with configured libraries",
            code="libraries-conflict",
        )
    libraries = [library_for_paths(list(paths))] if paths else list(configured)
    libraries = [library for library in libraries if not library.disabled]
    if not libraries:
        raise ConfigurationError("No libraries configured", code="libraries-missing")

    seen: set[str] = set()
    for library in libraries:
        library.initialize()
        if library.identifier in seen:
            raise ConfigurationError(f"Duplicate library identifier: {library.identifier}", code="library-duplicate")
        seen.add(library.identifier)
    return libraries


def resolve_database_path(config: Configuration) -> Path | None:
    """Snapshot location with ``{CACHEDIR}``/``{TMPDIR}`` expanded."""
    if not config.database_enabled:
        return None
    value = config.database_path or ""
    if not value:
        identity = config.identity()
        if not identity:
            return None
        value = "{CACHEDIR}/" + identity + ".json"

    if value.startswith("{CACHEDIR}"):
        cache_dir = Path(user_cache_dir(APP_NAME))
        try:
            cache_dir.mkdir(mode=0o750, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create cache directory {cache_dir}", code="config-cache-dir") from e
        return cache_dir / value[len("{CACHEDIR}") :].lstrip("/")
    if value.startswith("{TMPDIR}"):
        return Path(tempfile.gettempdir()) / value[len("{TMPDIR}") :].lstrip("/")
    return Path(os.path.abspath(value))


def index_settings(config: Configuration, flags: IndexFlags) -> IndexSettings:
    """Combine configuration and switches into coordinator settings."""
    database_path = None
    if not flags.database_disabled:
        database_path = resolve_database_path(config)
    return IndexSettings(
        database_path=database_path,
        walk_enabled=not flags.walk_disabled,
        load_enabled=not flags.load_disabled,
        store_enabled=not flags.store_disabled,
        dirty_enabled=not flags.dirty_disabled,
        refresh_enabled=not flags.refresh_disabled,
        libraries_refresh_enabled=config.libraries_refresh_enabled,
        documents_refresh_enabled=config.documents_refresh_enabled,
    )
