"""Library definitions: configured roots, matching rules and capability flags."""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError
from .matcher import Matcher

LIBRARY_IDENTIFIER_TOKEN = r"(?:[a-z0-9]+(?:[_-]+[a-z0-9]+)*)"
LIBRARY_IDENTIFIER_PATTERN = re.compile(rf"^{LIBRARY_IDENTIFIER_TOKEN}$")

DEFAULT_CREATE_EXTENSION = "txt"
DEFAULT_SNAPSHOT_EXTENSION = "snapshot"


def validate_library_identifier(identifier: str) -> str:
    """Return ``identifier`` unchanged if valid, else raise."""
    if not isinstance(identifier, str) or not LIBRARY_IDENTIFIER_PATTERN.match(identifier):
        raise ConfigurationError(f"Invalid library identifier: {identifier!r}", code="library-identifier-invalid")
    return identifier


@dataclass
class Library:
    """A configured root (or set of roots) plus scanning rules.

    Built from configuration, then ``initialize()``-d exactly once: paths
    made absolute and checked, extensions stripped of leading dots, defaults
    filled in, patterns compiled. Treated as immutable afterwards.
    """

    identifier: str
    name: str = ""
    paths: list[str] = field(default_factory=list)
    disabled: bool = False

    edit_enabled: bool = False

    create_enabled: bool = False
    create_path: str = ""
    create_extension: str = ""

    snapshot_enabled: bool = False
    snapshot_extension: str = ""

    include_glob_patterns: list[str] = field(default_factory=list)
    exclude_glob_patterns: list[str] = field(default_factory=list)
    include_regex_patterns: list[str] = field(default_factory=list)
    exclude_regex_patterns: list[str] = field(default_factory=list)

    use_file_name_as_identifier: bool = False
    use_path_in_library_as_identifier: bool = False
    use_file_extension_as_format: bool = False

    matcher: Matcher = field(default_factory=Matcher, init=False, repr=False, compare=False)
    initialized: bool = field(default=False, init=False, repr=False, compare=False)

    @classmethod
    def config_keys(cls) -> list[str]:
        return [f.name for f in fields(cls) if f.init]

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> "Library":
        """Build an uninitialized library from a ``[[library]]`` table."""
        if not isinstance(data, dict):
            raise ConfigurationError("Library definition must be a table", code="library-invalid")
        unknown = sorted(set(data) - set(cls.config_keys()))
        if unknown:
            raise ConfigurationError(f"Unknown library keys: {', '.join(unknown)}", code="library-key-unknown")
        if "identifier" not in data:
            raise ConfigurationError("Library definition requires an identifier", code="library-identifier-missing")
        values = dict(data)
        for key in (
            "paths",
            "include_glob_patterns",
            "exclude_glob_patterns",
            "include_regex_patterns",
            "exclude_regex_patterns",
        ):
            value = values.get(key, [])
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError(f"Library key '{key}' must be a list of strings", code="library-invalid")
            values[key] = list(value)
        for f in fields(cls):
            expected = {"bool": bool, "str": str}.get(str(f.type))
            if expected is not None and f.name in values and not isinstance(values[f.name], expected):
                raise ConfigurationError(
                    f"Library key '{f.name}' must be of type {f.type}", code="library-invalid"
                )
        return cls(**values)

    def to_config(self) -> dict[str, Any]:
        """Configuration view (no compiled state), used by the snapshot."""
        result: dict[str, Any] = {}
        for key in self.config_keys():
            value = getattr(self, key)
            result[key] = list(value) if isinstance(value, list) else value
        return result

    @property
    def display_name(self) -> str:
        return self.name or f"[{self.identifier}]"

    @property
    def snapshot_suffix(self) -> str | None:
        if self.snapshot_enabled and self.snapshot_extension:
            return "." + self.snapshot_extension
        return None

    def initialize(self) -> "Library":
        """Validate and normalize; a second call is a no-op."""
        if self.initialized:
            return self

        validate_library_identifier(self.identifier)

        if not self.paths:
            raise ConfigurationError(f"Library '{self.identifier}' has no paths", code="library-paths-missing")
        self.paths = [_existing_directory(p, self.identifier) for p in self.paths]

        if self.use_file_name_as_identifier and self.use_path_in_library_as_identifier:
            raise ConfigurationError(
                f"Library '{self.identifier}' cannot derive identifiers from both file name and path",
                code="library-identifier-mode-conflict",
            )

        if self.create_enabled:
            if not self.create_path:
                if len(self.paths) != 1:
                    raise ConfigurationError(
                        f"Library '{self.identifier}' has several paths; create_path is required",
                        code="library-create-path-missing",
                    )
                self.create_path = self.paths[0]
            self.create_path = _existing_directory(self.create_path, self.identifier)
            self.create_extension = (self.create_extension or DEFAULT_CREATE_EXTENSION).lstrip(".")
        else:
            if self.create_path:
                raise ConfigurationError(
                    f"Library '{self.identifier}' sets create_path without create_enabled",
                    code="library-create-path-unexpected",
                )
            if self.create_extension:
                raise ConfigurationError(
                    f"Library '{self.identifier}' sets create_extension without create_enabled",
                    code="library-create-extension-unexpected",
                )

        if self.snapshot_enabled:
            self.snapshot_extension = (self.snapshot_extension or DEFAULT_SNAPSHOT_EXTENSION).lstrip(".")
        elif self.snapshot_extension:
            raise ConfigurationError(
                f"Library '{self.identifier}' sets snapshot_extension without snapshot_enabled",
                code="library-snapshot-extension-unexpected",
            )

        self.matcher = Matcher.compile(
            include_globs=self.include_glob_patterns,
            exclude_globs=self.exclude_glob_patterns,
            include_regexes=self.include_regex_patterns,
            exclude_regexes=self.exclude_regex_patterns,
            snapshot_suffix=self.snapshot_suffix,
        )
        self.initialized = True
        return self

    def root_for(self, path: Path) -> Path | None:
        """The library root containing ``path`` (first match wins)."""
        for root in self.paths:
            root_path = Path(root)
            if path == root_path or root_path in path.parents:
                return root_path
        return None


def _existing_directory(path: str, identifier: str) -> str:
    if not path:
        raise ConfigurationError(f"Library '{identifier}' has an empty path", code="library-path-empty")
    absolute = os.path.abspath(os.path.expanduser(path))
    try:
        mode = os.stat(absolute).st_mode
    except FileNotFoundError as e:
        raise ConfigurationError(f"Library path does not exist: {absolute}", code="library-path-missing") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot stat library path: {absolute}", code="library-path-stat") from e
    if not stat.S_ISDIR(mode):
        raise ConfigurationError(f"Library path is not a directory: {absolute}", code="library-path-not-directory")
    return absolute


def library_for_paths(paths: list[str]) -> Library:
    """Default library used when roots are given on the command line."""
    return Library(
        identifier="library",
        name="Library",
        paths=list(paths),
        use_path_in_library_as_identifier=True,
        use_file_extension_as_format=True,
        include_glob_patterns=["**/*.{md,markdown,gmi,gemini,txt,text}"],
        edit_enabled=True,
        create_enabled=True,
        create_path=paths[0] if paths else "",
    )
