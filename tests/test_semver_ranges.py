from __future__ import annotations

import pytest

from monoguard.analysis.semver import (
    Interval,
    InvalidRangeError,
    NpmRangeStrategy,
    Version,
    classify_specifier,
    parse_range,
    parse_version,
    ranges_intersect,
)


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("^1.2.3", Interval(Version(1, 2, 3), True, Version(2), False)),
        ("^0.2.3", Interval(Version(0, 2, 3), True, Version(0, 3), False)),
        ("^0.0.3", Interval(Version(0, 0, 3), True, Version(0, 0, 4), False)),
        ("~1.2.3", Interval(Version(1, 2, 3), True, Version(1, 3), False)),
        ("~1", Interval(Version(1), True, Version(2), False)),
        ("1.x", Interval(Version(1), True, Version(2), False)),
        ("1.2.*", Interval(Version(1, 2), True, Version(1, 3), False)),
        ("v1.2.3", Interval(Version(1, 2, 3), True, Version(1, 2, 3), True)),
        (">1.2", Interval(Version(1, 3), True)),
        ("<=1.2", Interval(upper=Version(1, 3), upper_inclusive=False)),
        (">= 1.2.0 <2.0.0", Interval(Version(1, 2), True, Version(2), False)),
        ("1.2.3 - 2.3", Interval(Version(1, 2, 3), True, Version(2, 4), False)),
    ],
)
def test_parse_range_intervals(spec: str, expected: Interval) -> None:
    assert parse_range(spec).intervals == (expected,)


def test_union_keeps_every_alternative() -> None:
    parsed = parse_range("^1.0.0 || ^2.0.0")

    assert len(parsed.intervals) == 2
    assert parsed.lower_bound() == Version(1)


def test_unsatisfiable_range_is_rejected() -> None:
    with pytest.raises(InvalidRangeError):
        parse_range(">2.0.0 <1.0.0")


def test_prerelease_ordering() -> None:
    assert parse_version("1.0.0-alpha") < parse_version("1.0.0")
    assert parse_version("1.0.0-alpha.2") < parse_version("1.0.0-alpha.10")
    assert parse_version("1.0.0-alpha") < parse_version("1.0.0-beta")
    assert str(parse_version("2.1.0-rc.1")) == "2.1.0-rc.1"


def test_incomplete_version_is_not_a_version() -> None:
    with pytest.raises(InvalidRangeError):
        parse_version("1.2")


@pytest.mark.parametrize(
    ("ranges", "expected"),
    [
        (["^4.0.0", "^4.1.0"], True),
        (["^3.0.0", "^4.0.0"], False),
        ([">=1.0.0 <1.5.0", "^1.4.0"], True),
        (["1.2.3", "1.2.4"], False),
        (["^1.0.0 || ^2.0.0", "^2.1.0"], True),
        (["*", "~0.1.0"], True),
        (["~1.2.0", "~1.3.0"], False),
    ],
)
def test_ranges_intersect(ranges: list[str], expected: bool) -> None:
    assert ranges_intersect([parse_range(r) for r in ranges]) is expected


@pytest.mark.parametrize(
    ("spec", "kind"),
    [
        ("^1.2.3", "range"),
        ("workspace:*", "workspace"),
        ("workspace:^", "workspace"),
        ("workspace:^1.0.0", "range"),
        ("*", "wildcard"),
        ("", "wildcard"),
        ("latest", "unpinned"),
        ("github:user/repo", "unpinned"),
        ("user/repo", "unpinned"),
        ("file:../local", "unpinned"),
        ("not a version!!", "invalid"),
        ("^banana", "invalid"),
        ("1.2.3.4", "invalid"),
    ],
)
def test_classify_specifier(spec: str, kind: str) -> None:
    assert classify_specifier(spec) == kind


def test_npm_strategy_strips_workspace_protocol() -> None:
    strategy = NpmRangeStrategy()

    assert strategy.lower_bound("workspace:^1.2.0") == Version(1, 2)
    assert strategy.intersects(["workspace:^1.2.0", "^1.4.0"])
