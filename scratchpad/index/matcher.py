"""Include/exclude matching of library-relative paths.

Candidates are always the ``/``-prefixed path relative to the library root,
e.g. ``/notes/draft.md``. Globs match the whole candidate; ``*`` and ``**``
both cross ``/`` boundaries and ``{a,b}`` alternatives are expanded.
Regular expressions match anywhere in the candidate.
"""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from typing import Iterable

from ..errors import PatternError


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, innermost-first, into plain globs."""
    depth = 0
    start = -1
    for position, char in enumerate(pattern):
        if char == "{":
            if depth == 0:
                start = position
            depth += 1
        elif char == "}":
            if depth == 0:
                raise PatternError(f"Unbalanced '}}' in glob: {pattern}", code="glob-invalid")
            depth -= 1
            if depth == 0:
                head, body, tail = pattern[:start], pattern[start + 1 : position], pattern[position + 1 :]
                expanded: list[str] = []
                for alternative in _split_alternatives(body):
                    for rest in expand_braces(alternative + tail):
                        expanded.append(head + rest)
                return expanded
    if depth != 0:
        raise PatternError(f"Unbalanced '{{' in glob: {pattern}", code="glob-invalid")
    return [pattern]


def _split_alternatives(body: str) -> list[str]:
    parts = []
    depth = 0
    current = []
    for char in body:
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current.append(char)
    parts.append("".join(current))
    return parts


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile one glob (with brace alternatives) into a single regex."""
    if not pattern:
        raise PatternError("Empty glob pattern", code="glob-invalid")
    alternatives = [fnmatch.translate(p) for p in expand_braces(pattern)]
    try:
        return re.compile("|".join(f"(?:{a})" for a in alternatives))
    except re.error as e:
        raise PatternError(f"Invalid glob pattern: {pattern}", code="glob-invalid") from e


def compile_regex(pattern: str) -> re.Pattern[str]:
    if not pattern:
        raise PatternError("Empty regular expression pattern", code="regex-invalid")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError(f"Invalid regular expression: {pattern}", code="regex-invalid") from e


@dataclass(frozen=True)
class Matcher:
    """Compiled include/exclude rules for one library."""

    include_globs: tuple[re.Pattern[str], ...] = ()
    exclude_globs: tuple[re.Pattern[str], ...] = ()
    include_regexes: tuple[re.Pattern[str], ...] = ()
    exclude_regexes: tuple[re.Pattern[str], ...] = ()
    snapshot_suffix: str | None = None  # e.g. ".snapshot"

    @classmethod
    def compile(
        cls,
        include_globs: Iterable[str] = (),
        exclude_globs: Iterable[str] = (),
        include_regexes: Iterable[str] = (),
        exclude_regexes: Iterable[str] = (),
        snapshot_suffix: str | None = None,
    ) -> "Matcher":
        """Compile all pattern families; the first bad pattern aborts."""
        return cls(
            include_globs=tuple(compile_glob(p) for p in include_globs),
            exclude_globs=tuple(compile_glob(p) for p in exclude_globs),
            include_regexes=tuple(compile_regex(p) for p in include_regexes),
            exclude_regexes=tuple(compile_regex(p) for p in exclude_regexes),
            snapshot_suffix=snapshot_suffix or None,
        )

    @property
    def has_includes(self) -> bool:
        return bool(self.include_globs or self.include_regexes)

    def excludes(self, relative: str) -> bool:
        if any(m.match(relative) for m in self.exclude_globs):
            return True
        return any(m.search(relative) for m in self.exclude_regexes)

    def includes(self, relative: str) -> bool:
        if not self.has_includes:
            return True
        if any(m.match(relative) for m in self.include_globs):
            return True
        return any(m.search(relative) for m in self.include_regexes)

    def matches(self, relative: str) -> bool:
        """Exclusion wins outright; otherwise inclusion decides."""
        return not self.excludes(relative) and self.includes(relative)

    def accepts_file(self, name: str, relative: str) -> bool:
        if is_hidden(name):
            return False
        if self.snapshot_suffix and name.endswith(self.snapshot_suffix):
            return False
        return self.matches(relative)

    def prunes_directory(self, name: str, relative: str) -> bool:
        if is_hidden(name):
            return True
        return self.excludes(relative) or self.excludes(relative + "/")


def is_hidden(name: str) -> bool:
    return name.startswith(".")
