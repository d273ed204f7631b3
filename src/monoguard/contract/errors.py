"""Error codes and the engine exception hierarchy.

Stages raise these exceptions; the engine boundary converts them into the
``error`` half of a :class:`~monoguard.contract.result.Result`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable, UPPER_SNAKE_CASE error codes carried by ``Result.error``."""

    PARSE_ERROR = "PARSE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    CIRCULAR_DETECTED = "CIRCULAR_DETECTED"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    WASM_ERROR = "WASM_ERROR"
    TIMEOUT = "TIMEOUT"


class EngineError(Exception):
    """Base class for failures that surface as a ``Result.error``."""

    code: ErrorCode = ErrorCode.ANALYSIS_FAILED

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ManifestParseError(EngineError):
    """One or more manifests could not be parsed."""

    code = ErrorCode.PARSE_ERROR

    def __init__(self, failures: dict[str, str]):
        paths = sorted(failures)
        msg = f"Failed to parse {len(paths)} manifest(s): {', '.join(paths)}"
        super().__init__(msg, details={"failures": dict(sorted(failures.items()))})
        self.failures = dict(sorted(failures.items()))


class InvalidInputError(EngineError):
    code = ErrorCode.INVALID_INPUT


class AnalysisTimeoutError(EngineError):
    code = ErrorCode.TIMEOUT


class AnalysisFailedError(EngineError):
    code = ErrorCode.ANALYSIS_FAILED


__all__ = [
    "AnalysisFailedError",
    "AnalysisTimeoutError",
    "EngineError",
    "ErrorCode",
    "InvalidInputError",
    "ManifestParseError",
]
