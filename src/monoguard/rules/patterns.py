"""Path and name pattern matchers.

Three pattern forms are accepted wherever users supply patterns (exclusions,
layer patterns, canImport/cannotImport entries):

* exact: ``packages/legacy``
* glob: ``packages/*``, ``apps/**``, ``libs/?-ui``. ``*`` and ``?`` stay
  within one path segment, ``**`` crosses segments.
* regex: ``regex:^packages/test-.*``, matched with :func:`re.search`.

Each form compiles to a matcher exposing ``matches(value)``. No user input
is ever evaluated as code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol

from monoguard.utils import ancestors

if TYPE_CHECKING:
    from collections.abc import Iterable

REGEX_PREFIX = "regex:"

PatternKind = Literal["exact", "glob", "regex"]


class PatternError(ValueError):
    """Raised when a pattern cannot be compiled."""


class PathPattern(Protocol):
    kind: PatternKind
    raw: str

    def matches(self, value: str) -> bool: ...


@dataclass(frozen=True)
class ExactPattern:
    raw: str
    kind: PatternKind = "exact"

    def matches(self, value: str) -> bool:
        return value == self.raw


@dataclass(frozen=True)
class GlobPattern:
    raw: str
    regex: re.Pattern[str]
    kind: PatternKind = "glob"

    def matches(self, value: str) -> bool:
        return self.regex.fullmatch(value) is not None


@dataclass(frozen=True)
class RegexPattern:
    raw: str
    regex: re.Pattern[str]
    kind: PatternKind = "regex"

    def matches(self, value: str) -> bool:
        return self.regex.search(value) is not None


def glob_to_regex(glob: str) -> str:
    """Translate a segment-aware glob into a regular expression source.

    Examples:
        >>> glob_to_regex("packages/*")
        'packages/[^/]*'
        >>> glob_to_regex("apps/**")
        'apps(?:/.*)?'
        >>> glob_to_regex("**/test/*.ts")
        '(?:.*/)?test/[^/]*\\\\.ts'

    A trailing ``/**`` also matches the directory itself.
    """
    parts: list[str] = []
    i = 0
    while i < len(glob):
        char = glob[i]
        if glob.startswith("/**", i) and i + 3 == len(glob):
            parts.append("(?:/.*)?")
            i += 3
        elif glob.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif glob.startswith("**", i):
            parts.append(".*")
            i += 2
        elif char == "*":
            parts.append("[^/]*")
            i += 1
        elif char == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(char))
            i += 1
    return "".join(parts)


def is_glob(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern


def compile_pattern(raw: str) -> PathPattern:
    """Compile a raw user pattern into its tagged matcher."""
    if raw.startswith(REGEX_PREFIX):
        expression = raw[len(REGEX_PREFIX) :]
        if not expression:
            msg = f"Empty regular expression in pattern {raw!r}"
            raise PatternError(msg)
        try:
            return RegexPattern(raw=raw, regex=re.compile(expression))
        except re.error as exc:
            msg = f"Invalid regular expression in pattern {raw!r}: {exc}"
            raise PatternError(msg) from exc

    if is_glob(raw):
        return GlobPattern(raw=raw, regex=re.compile(glob_to_regex(raw)))

    return ExactPattern(raw=raw)


class PatternSet:
    """An ordered collection of compiled patterns."""

    def __init__(self, raw_patterns: Iterable[str]) -> None:
        self.patterns: tuple[PathPattern, ...] = tuple(
            compile_pattern(raw) for raw in raw_patterns
        )

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def matches(self, value: str) -> bool:
        return any(pattern.matches(value) for pattern in self.patterns)

    def matches_path(self, path: str) -> bool:
        """Match the path itself or any of its ancestor directories."""
        return any(self.matches(candidate) for candidate in ancestors(path))


def matches_path(pattern: PathPattern, path: str) -> bool:
    """Match a single pattern against a path or any ancestor directory."""
    return any(pattern.matches(candidate) for candidate in ancestors(path))


__all__ = [
    "REGEX_PREFIX",
    "ExactPattern",
    "GlobPattern",
    "PathPattern",
    "PatternError",
    "PatternKind",
    "PatternSet",
    "RegexPattern",
    "compile_pattern",
    "glob_to_regex",
    "is_glob",
    "matches_path",
]
