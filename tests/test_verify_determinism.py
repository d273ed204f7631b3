from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
import pytest

from monoguard.contract.errors import ErrorCode
from monoguard.contract.result import Result
from monoguard.engine import analyze
from monoguard.models.workspace import WorkspaceInput
from monoguard.verify.verify import (
    DeterminismResult,
    compare_payloads,
    strip_volatile,
    verify_determinism,
)

if TYPE_CHECKING:
    from pathlib import Path


def _workspace() -> WorkspaceInput:
    return WorkspaceInput(
        files={
            "package.json": '{"name": "mono", "workspaces": ["packages/*"]}',
            "packages/a/package.json": '{"name": "a", "dependencies": {"b": "^1.0.0"}}',
            "packages/b/package.json": '{"name": "b", "version": "1.0.0"}',
        }
    )


def test_repeated_analysis_is_deterministic() -> None:
    assert verify_determinism(_workspace()) == DeterminismResult(ok=True)


def test_baseline_written_from_a_previous_run_matches(tmp_path: Path) -> None:
    baseline = tmp_path / "baseline.json"
    baseline.write_bytes(analyze(_workspace()).to_json(indent=True))

    assert verify_determinism(_workspace(), baseline=baseline).ok


def test_missing_baseline_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Baseline result does not exist"):
        verify_determinism(_workspace(), baseline=tmp_path / "missing.json")


def test_directory_baseline_raises(tmp_path: Path) -> None:
    with pytest.raises(IsADirectoryError):
        verify_determinism(_workspace(), baseline=tmp_path)


def test_non_object_baseline_raises(tmp_path: Path) -> None:
    baseline = tmp_path / "baseline.json"
    baseline.write_bytes(orjson.dumps([1, 2, 3]))

    with pytest.raises(ValueError, match="must be a JSON object"):
        verify_determinism(_workspace(), baseline=baseline)


def test_nondeterministic_analysis_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    runs = iter(["first", "second"])

    def _fake_analyze(workspace: WorkspaceInput) -> Result[Any]:
        return Result[Any].failure(ErrorCode.ANALYSIS_FAILED, next(runs))

    monkeypatch.setattr("monoguard.verify.verify.analyze", _fake_analyze)

    result = verify_determinism(_workspace())

    assert result == DeterminismResult(ok=False, mismatches=("error.message",))


def test_compare_payloads_reports_sorted_dotted_paths() -> None:
    expected = {"data": {"b": 1, "a": [1, 2], "gone": True}}
    actual = {"data": {"b": 2, "a": [1, 3], "new": True}}

    result = compare_payloads(expected, actual)

    assert result == DeterminismResult(
        ok=False,
        mismatches=("data.a[1]", "data.b"),
        missing=("data.gone",),
        extra=("data.new",),
    )


def test_list_length_change_is_one_mismatch() -> None:
    result = compare_payloads({"cycles": [1]}, {"cycles": [1, 2]})

    assert result.mismatches == ("cycles",)


def test_strip_volatile_removes_timestamps_at_any_depth() -> None:
    payload = {
        "metadata": {"createdAt": "2026-01-01T00:00:00Z", "packages": 2},
        "health": [{"lastUpdated": "now", "overall": 90}],
    }

    assert strip_volatile(payload) == {
        "metadata": {"packages": 2},
        "health": [{"overall": 90}],
    }
