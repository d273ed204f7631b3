from __future__ import annotations

import pytest

from monoguard.rules.patterns import (
    ExactPattern,
    GlobPattern,
    PatternError,
    PatternSet,
    RegexPattern,
    compile_pattern,
    glob_to_regex,
)


def test_compile_pattern_tags_each_form() -> None:
    assert isinstance(compile_pattern("packages/legacy"), ExactPattern)
    assert isinstance(compile_pattern("packages/*"), GlobPattern)
    assert isinstance(compile_pattern("regex:^packages/test-"), RegexPattern)


def test_single_star_stays_within_one_segment() -> None:
    pattern = compile_pattern("packages/*")

    assert pattern.matches("packages/ui")
    assert not pattern.matches("packages/ui/src")


def test_double_star_crosses_segments_and_matches_directory() -> None:
    pattern = compile_pattern("apps/**")

    assert pattern.matches("apps")
    assert pattern.matches("apps/web/src/main.ts")
    assert not pattern.matches("application")


def test_leading_double_star_matches_any_depth() -> None:
    pattern = compile_pattern("**/test/*.ts")

    assert pattern.matches("test/a.ts")
    assert pattern.matches("packages/ui/test/a.ts")
    assert not pattern.matches("packages/ui/test/nested/a.ts")


def test_question_mark_matches_one_character() -> None:
    pattern = compile_pattern("libs/?-ui")

    assert pattern.matches("libs/a-ui")
    assert not pattern.matches("libs/ab-ui")


def test_regex_pattern_uses_search() -> None:
    pattern = compile_pattern("regex:test-.*")

    assert pattern.matches("packages/test-utils")
    assert not pattern.matches("packages/utils")


def test_glob_metacharacters_in_literals_are_escaped() -> None:
    assert glob_to_regex("a.b/*") == "a\\.b/[^/]*"
    assert not compile_pattern("a.b/*").matches("axb/c")


@pytest.mark.parametrize("raw", ["regex:", "regex:([unclosed"])
def test_invalid_regex_is_rejected(raw: str) -> None:
    with pytest.raises(PatternError):
        compile_pattern(raw)


def test_pattern_set_matches_ancestor_directories() -> None:
    patterns = PatternSet(["packages/legacy", "regex:\\.spec\\.ts$"])

    assert patterns.matches_path("packages/legacy/src/index.ts")
    assert patterns.matches_path("packages/ui/button.spec.ts")
    assert not patterns.matches_path("packages/legacy-v2/index.ts")


def test_empty_pattern_set_is_falsy() -> None:
    assert not PatternSet([])
    assert PatternSet(["dist"])
