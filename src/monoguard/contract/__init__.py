"""Stable engine contract: error codes, exceptions and the result envelope.

Host layers (CLI, CI wrappers, UI adapters) depend only on these exports.
"""

from monoguard.contract.errors import (
    AnalysisFailedError,
    AnalysisTimeoutError,
    EngineError,
    ErrorCode,
    InvalidInputError,
    ManifestParseError,
)


def __getattr__(name: str) -> object:
    if name in {"Result", "ResultError"}:
        from monoguard.contract.result import Result, ResultError

        return {"Result": Result, "ResultError": ResultError}[name]

    msg = f"module 'monoguard.contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "AnalysisFailedError",
    "AnalysisTimeoutError",
    "EngineError",
    "ErrorCode",
    "InvalidInputError",
    "ManifestParseError",
    "Result",
    "ResultError",
]
