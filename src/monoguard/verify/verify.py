"""Determinism verification for analysis results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import orjson

from monoguard.engine import analyze

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from monoguard.contract.result import Result
    from monoguard.models.workspace import WorkspaceInput

# Wall-clock fields that legitimately differ between runs.
VOLATILE_KEYS = frozenset({"createdAt", "lastUpdated"})


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)
    missing: tuple[str, ...] = field(default_factory=tuple)
    extra: tuple[str, ...] = field(default_factory=tuple)


def strip_volatile(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: strip_volatile(v) for k, v in value.items() if k not in VOLATILE_KEYS}
    if isinstance(value, list):
        return [strip_volatile(item) for item in value]
    return value


def canonical_payload(result: Result[Any]) -> dict[str, Any]:
    """The result's JSON form without wall-clock fields."""
    return strip_volatile(orjson.loads(result.to_json()))


def _compare(
    expected: Any,
    actual: Any,
    prefix: str,
    mismatches: list[str],
    missing: list[str],
    extra: list[str],
) -> None:
    if isinstance(expected, dict) and isinstance(actual, dict):
        for key in sorted(expected.keys() | actual.keys()):
            path = f"{prefix}.{key}" if prefix else key
            if key not in actual:
                missing.append(path)
            elif key not in expected:
                extra.append(path)
            else:
                _compare(expected[key], actual[key], path, mismatches, missing, extra)
        return
    if isinstance(expected, list) and isinstance(actual, list) and len(expected) == len(actual):
        for i, (left, right) in enumerate(zip(expected, actual)):
            _compare(left, right, f"{prefix}[{i}]", mismatches, missing, extra)
        return
    if expected != actual:
        mismatches.append(prefix or "<root>")


def compare_payloads(expected: Mapping[str, Any], actual: Mapping[str, Any]) -> DeterminismResult:
    mismatches: list[str] = []
    missing: list[str] = []
    extra: list[str] = []
    _compare(dict(expected), dict(actual), "", mismatches, missing, extra)
    return DeterminismResult(
        ok=not mismatches and not missing and not extra,
        mismatches=tuple(mismatches),
        missing=tuple(missing),
        extra=tuple(extra),
    )


def verify_determinism(
    workspace: WorkspaceInput,
    *,
    baseline: Path | None = None,
) -> DeterminismResult:
    """Verify that analysis of a workspace is reproducible.

    Analyzes the workspace and compares the canonical JSON, minus timestamps,
    against a second run, or against a previously written result file when
    ``baseline`` is given. Differences are reported as dotted key paths.

    Raises:
        FileNotFoundError: If baseline does not exist.
        IsADirectoryError: If baseline is a directory.
        ValueError: If baseline is not a JSON object.
    """
    current = canonical_payload(analyze(workspace))

    if baseline is None:
        expected = canonical_payload(analyze(workspace))
    else:
        if not baseline.exists():
            msg = f"Baseline result does not exist: {baseline}"
            raise FileNotFoundError(msg)
        if baseline.is_dir():
            msg = f"Baseline path is a directory: {baseline}"
            raise IsADirectoryError(msg)
        loaded = orjson.loads(baseline.read_bytes())
        if not isinstance(loaded, dict):
            msg = f"Baseline result must be a JSON object: {baseline}"
            raise ValueError(msg)
        expected = strip_volatile(loaded)

    return compare_payloads(expected, current)


__all__ = [
    "VOLATILE_KEYS",
    "DeterminismResult",
    "canonical_payload",
    "compare_payloads",
    "strip_volatile",
    "verify_determinism",
]
