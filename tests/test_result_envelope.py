from __future__ import annotations

import orjson
import pytest
from pydantic import ValidationError

from monoguard.contract import (
    AnalysisTimeoutError,
    ErrorCode,
    InvalidInputError,
    ManifestParseError,
    Result,
    ResultError,
)
from monoguard.engine import analyze
from monoguard.models.results import AnalysisResult, CheckIssue, CheckResult
from monoguard.models.workspace import WorkspaceInput
from monoguard.rules.config import AnalysisConfig


def _check_result() -> CheckResult:
    return CheckResult(
        passed=False,
        errors=[CheckIssue(code="CIRCULAR_DETECTED", message="Circular dependency: a -> b -> a")],
        health_score=72,
    )


def test_success_carries_only_data() -> None:
    result = Result[CheckResult].success(_check_result())

    assert result.ok
    assert result.error is None
    assert result.data is not None
    assert result.data.health_score == 72


def test_failure_carries_only_error() -> None:
    result = Result[CheckResult].failure(ErrorCode.INVALID_INPUT, "no files")

    assert not result.ok
    assert result.data is None
    assert result.error is not None
    assert result.error.code is ErrorCode.INVALID_INPUT


def test_neither_data_nor_error_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Result[int]()


def test_both_data_and_error_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Result[int](data=1, error=ResultError(code=ErrorCode.TIMEOUT, message="late"))


def test_json_uses_camel_case_and_sorted_keys() -> None:
    payload = Result[CheckResult].success(_check_result()).to_json()

    decoded = orjson.loads(payload)
    assert decoded["error"] is None
    assert decoded["data"]["healthScore"] == 72
    assert list(decoded) == sorted(decoded)
    assert list(decoded["data"]) == sorted(decoded["data"])


def test_json_round_trip() -> None:
    original = Result[CheckResult].success(_check_result())

    restored = Result[CheckResult].from_json(original.to_json(indent=True))

    assert restored == original


def _full_analysis() -> Result[AnalysisResult]:
    files = {
        "package.json": '{"name": "mono", "workspaces": ["packages/*"]}',
        "packages/ui/package.json": (
            '{"name": "@mono/ui", "dependencies": '
            '{"@mono/data": "workspace:*", "lodash": "^3.0.0"}}'
        ),
        "packages/data/package.json": (
            '{"name": "@mono/data", "dependencies": '
            '{"@mono/ui": "workspace:*", "lodash": "^4.0.0"}}'
        ),
        "packages/ui/src/app.ts": 'import { db } from "@mono/data";\n',
        "packages/data/src/db.ts": 'import { theme } from "@mono/ui";\n',
    }
    config = AnalysisConfig.model_validate(
        {
            "architecture": {
                "layers": [
                    {"name": "ui", "pattern": "packages/ui/**", "cannotImport": ["data"]},
                    {"name": "data", "pattern": "packages/data/**"},
                ]
            }
        }
    )
    return analyze(WorkspaceInput(files=files, config=config))


def test_analysis_result_round_trip() -> None:
    original = _full_analysis()
    assert original.data is not None
    assert original.data.circular_dependencies[0].import_traces
    assert original.data.circular_dependencies[0].root_cause is not None
    assert original.data.dependency_report.version_conflicts
    assert original.data.architecture is not None
    assert original.data.architecture.violations

    payload = original.to_json()
    restored = Result[AnalysisResult].from_json(payload)

    assert restored == original
    decoded = orjson.loads(payload)
    assert {"from", "to"} <= set(decoded["data"]["graph"]["edges"][0])
    assert set(decoded["data"]["graph"]["nodes"]) == {"@mono/data", "@mono/ui"}


def test_error_codes_serialize_as_strings() -> None:
    payload = Result[int].failure(ErrorCode.WASM_ERROR, "stack exhausted").to_dict()

    assert payload == {
        "data": None,
        "error": {"code": "WASM_ERROR", "message": "stack exhausted", "details": None},
    }


def test_error_codes_are_stable() -> None:
    assert {code.value for code in ErrorCode} == {
        "PARSE_ERROR",
        "INVALID_INPUT",
        "CIRCULAR_DETECTED",
        "ANALYSIS_FAILED",
        "WASM_ERROR",
        "TIMEOUT",
    }


def test_from_exception_keeps_code_and_details() -> None:
    exc = ManifestParseError({"b/package.json": "bad json", "a/package.json": "not an object"})

    result = Result[int].from_exception(exc)

    assert result.error is not None
    assert result.error.code is ErrorCode.PARSE_ERROR
    assert result.error.message == "Failed to parse 2 manifest(s): a/package.json, b/package.json"
    assert result.error.details == {
        "failures": {"a/package.json": "not an object", "b/package.json": "bad json"}
    }


def test_from_exception_without_details() -> None:
    result = Result[int].from_exception(InvalidInputError("empty"))

    assert result.error is not None
    assert result.error.details is None
    assert AnalysisTimeoutError("late").code is ErrorCode.TIMEOUT
