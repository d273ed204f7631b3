"""npm-style semantic version ranges and range intersection.

Ranges are normalised into unions of half-open intervals so that two or more
ranges can be tested for a common satisfying version without enumerating
published versions. Supported syntax: exact versions, x-ranges (``1.x``,
``1.2.*``, ``*``), caret, tilde, primitive comparators, hyphen ranges, ``||``
unions and the ``workspace:`` protocol.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

SpecifierKind = Literal["range", "wildcard", "workspace", "unpinned", "invalid"]

_PARTIAL = re.compile(
    r"^[v=]?\s*(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)
_OPERATOR = re.compile(r"^(<=|>=|<|>|=|~>|~|\^)?(.*)$")
_HYPHEN = re.compile(r"^\s*(\S+)\s+-\s+(\S+)\s*$")
_OPERATOR_SPACE = re.compile(r"(<=|>=|<|>|=|~>|~|\^)\s+")
_DIST_TAG = re.compile(r"^[A-Za-z][\w.-]*$")
_WILDCARDS = frozenset({"", "*", "x", "X"})
_NON_REGISTRY_PREFIXES = (
    "file:",
    "link:",
    "portal:",
    "patch:",
    "git+",
    "git:",
    "github:",
    "gitlab:",
    "bitbucket:",
    "http://",
    "https://",
    "npm:",
)
WORKSPACE_PREFIX = "workspace:"


class InvalidRangeError(ValueError):
    """Raised when a specifier is not a parseable semver range."""


@total_ordering
@dataclass(frozen=True)
class Version:
    major: int
    minor: int = 0
    patch: int = 0
    prerelease: tuple[str, ...] = ()

    def _key(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        pre = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{base}-{'.'.join(self.prerelease)}"
        return base


ZERO = Version(0, 0, 0)


@dataclass(frozen=True)
class Interval:
    """Versions between ``lower`` and ``upper``; ``None`` means unbounded."""

    lower: Version | None = None
    lower_inclusive: bool = True
    upper: Version | None = None
    upper_inclusive: bool = False

    def is_empty(self) -> bool:
        if self.lower is None or self.upper is None:
            return False
        if self.lower < self.upper:
            return False
        return not (
            self.lower == self.upper and self.lower_inclusive and self.upper_inclusive
        )

    def intersect(self, other: Interval) -> Interval:
        lower, lower_inclusive = self.lower, self.lower_inclusive
        if other.lower is not None and (
            lower is None
            or other.lower > lower
            or (other.lower == lower and not other.lower_inclusive)
        ):
            lower, lower_inclusive = other.lower, other.lower_inclusive

        upper, upper_inclusive = self.upper, self.upper_inclusive
        if other.upper is not None and (
            upper is None
            or other.upper < upper
            or (other.upper == upper and not other.upper_inclusive)
        ):
            upper, upper_inclusive = other.upper, other.upper_inclusive

        return Interval(lower, lower_inclusive, upper, upper_inclusive)


ANY = Interval()
EMPTY = Interval(ZERO, False, ZERO, False)


@dataclass(frozen=True)
class VersionRange:
    """A parsed range: the union of its intervals."""

    raw: str
    intervals: tuple[Interval, ...]

    def is_empty(self) -> bool:
        return all(interval.is_empty() for interval in self.intervals)

    def lower_bound(self) -> Version:
        bounds = [
            interval.lower or ZERO
            for interval in self.intervals
            if not interval.is_empty()
        ]
        return min(bounds) if bounds else ZERO


def _parse_partial(
    text: str,
) -> tuple[int | None, int | None, int | None, tuple[str, ...]]:
    match = _PARTIAL.match(text.strip())
    if match is None:
        msg = f"invalid version {text!r}"
        raise InvalidRangeError(msg)

    def number(part: str | None) -> int | None:
        if part is None or part in {"x", "X", "*"}:
            return None
        return int(part)

    major, minor, patch = (number(match.group(i)) for i in (1, 2, 3))
    if major is None:
        minor = patch = None
    elif minor is None:
        patch = None
    prerelease = tuple(match.group(4).split(".")) if match.group(4) else ()
    return major, minor, patch, prerelease


def parse_version(text: str) -> Version:
    """Parse a full version string such as ``1.2.3-beta.1``."""
    major, minor, patch, prerelease = _parse_partial(text)
    if major is None or minor is None or patch is None:
        msg = f"incomplete version {text!r}"
        raise InvalidRangeError(msg)
    return Version(major, minor, patch, prerelease)


def _floor(major: int, minor: int | None, patch: int | None, pre: tuple[str, ...]) -> Version:
    return Version(major, minor or 0, patch or 0, pre if patch is not None else ())


def _comparator(token: str) -> Interval:
    match = _OPERATOR.match(token)
    if match is None:  # pragma: no cover - the pattern matches every string
        msg = f"invalid comparator {token!r}"
        raise InvalidRangeError(msg)
    operator, rest = match.group(1) or "", match.group(2)
    major, minor, patch, pre = _parse_partial(rest)

    if operator in {"", "="}:
        if major is None:
            return ANY
        if minor is None:
            return Interval(Version(major), True, Version(major + 1), False)
        if patch is None:
            return Interval(Version(major, minor), True, Version(major, minor + 1), False)
        exact = Version(major, minor, patch, pre)
        return Interval(exact, True, exact, True)

    if operator in {"~", "~>"}:
        if major is None:
            return ANY
        if minor is None:
            return Interval(Version(major), True, Version(major + 1), False)
        return Interval(
            _floor(major, minor, patch, pre), True, Version(major, minor + 1), False
        )

    if operator == "^":
        if major is None:
            return ANY
        lower = _floor(major, minor, patch, pre)
        if major > 0 or minor is None:
            return Interval(lower, True, Version(major + 1), False)
        if minor > 0 or patch is None:
            return Interval(lower, True, Version(0, minor + 1), False)
        return Interval(lower, True, Version(0, 0, patch + 1), False)

    if operator == ">":
        if major is None:
            return EMPTY
        if minor is None:
            return Interval(Version(major + 1), True)
        if patch is None:
            return Interval(Version(major, minor + 1), True)
        return Interval(Version(major, minor, patch, pre), False)

    if operator == ">=":
        if major is None:
            return ANY
        return Interval(_floor(major, minor, patch, pre), True)

    if operator == "<":
        if major is None:
            return EMPTY
        return Interval(upper=_floor(major, minor, patch, pre), upper_inclusive=False)

    # "<="
    if major is None:
        return ANY
    if minor is None:
        return Interval(upper=Version(major + 1), upper_inclusive=False)
    if patch is None:
        return Interval(upper=Version(major, minor + 1), upper_inclusive=False)
    return Interval(upper=Version(major, minor, patch, pre), upper_inclusive=True)


def _hyphen(low: str, high: str) -> Interval:
    low_major, low_minor, low_patch, low_pre = _parse_partial(low)
    high_major, high_minor, high_patch, high_pre = _parse_partial(high)

    lower = None if low_major is None else _floor(low_major, low_minor, low_patch, low_pre)
    if high_major is None:
        return Interval(lower, True)
    if high_minor is None:
        return Interval(lower, True, Version(high_major + 1), False)
    if high_patch is None:
        return Interval(lower, True, Version(high_major, high_minor + 1), False)
    return Interval(lower, True, Version(high_major, high_minor, high_patch, high_pre), True)


def _comparator_set(text: str) -> Interval:
    hyphen = _HYPHEN.match(text)
    if hyphen is not None:
        return _hyphen(hyphen.group(1), hyphen.group(2))

    tokens = _OPERATOR_SPACE.sub(r"\1", text.strip()).split()
    interval = ANY
    for token in tokens:
        interval = interval.intersect(_comparator(token))
    return interval


def parse_range(spec: str) -> VersionRange:
    """Parse an npm range specifier.

    Raises:
        InvalidRangeError: If the specifier is not a semver range.
    """
    text = spec.strip()
    if text.startswith(WORKSPACE_PREFIX):
        text = text[len(WORKSPACE_PREFIX) :].strip()
        if text in {"", "*", "^", "~"}:
            return VersionRange(spec, (ANY,))
    if text in _WILDCARDS:
        return VersionRange(spec, (ANY,))

    intervals = tuple(_comparator_set(part) for part in text.split("||"))
    parsed = VersionRange(spec, intervals)
    if parsed.is_empty():
        msg = f"range {spec!r} cannot be satisfied by any version"
        raise InvalidRangeError(msg)
    return parsed


def classify_specifier(spec: str) -> SpecifierKind:
    """Classify a dependency specifier before range analysis."""
    text = spec.strip()
    if text.startswith(WORKSPACE_PREFIX):
        remainder = text[len(WORKSPACE_PREFIX) :].strip()
        if remainder in {"", "*", "^", "~"}:
            return "workspace"
        text = remainder
    if text.startswith(_NON_REGISTRY_PREFIXES):
        return "unpinned"
    if "/" in text and " " not in text and not text.startswith(("<", ">", "=")):
        return "unpinned"
    if text in _WILDCARDS:
        return "wildcard"
    try:
        parse_range(text)
    except InvalidRangeError:
        if _DIST_TAG.match(text) and text not in {"x", "X"} and not text[1:2].isdigit():
            return "unpinned"
        return "invalid"
    return "range"


def ranges_intersect(ranges: Sequence[VersionRange]) -> bool:
    """Whether a single version satisfies every range."""
    if not ranges:
        return True
    candidates = [i for i in ranges[0].intervals if not i.is_empty()]
    for version_range in ranges[1:]:
        joined = [
            current.intersect(interval)
            for current in candidates
            for interval in version_range.intervals
        ]
        candidates = [interval for interval in joined if not interval.is_empty()]
        if not candidates:
            return False
    return bool(candidates)


class VersionRangeStrategy(Protocol):
    """Pluggable range semantics used by the conflict analyzer."""

    def classify(self, spec: str) -> SpecifierKind: ...

    def intersects(self, specs: Sequence[str]) -> bool: ...

    def lower_bound(self, spec: str) -> Version: ...


class NpmRangeStrategy:
    """npm semver range semantics."""

    def classify(self, spec: str) -> SpecifierKind:
        return classify_specifier(spec)

    def intersects(self, specs: Sequence[str]) -> bool:
        return ranges_intersect([parse_range(spec) for spec in specs])

    def lower_bound(self, spec: str) -> Version:
        return parse_range(spec).lower_bound()


__all__ = [
    "ANY",
    "WORKSPACE_PREFIX",
    "Interval",
    "InvalidRangeError",
    "NpmRangeStrategy",
    "SpecifierKind",
    "Version",
    "VersionRange",
    "VersionRangeStrategy",
    "classify_specifier",
    "parse_range",
    "parse_version",
    "ranges_intersect",
]
