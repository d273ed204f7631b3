"""The ``{data, error}`` result envelope returned by every entry point."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

import orjson
from pydantic import BaseModel, ConfigDict, model_validator

from monoguard.contract.errors import EngineError, ErrorCode

T = TypeVar("T")


class ResultError(BaseModel):
    """Stable error payload: a fixed code plus a caller-safe message."""

    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None


class Result(BaseModel, Generic[T]):
    """Exactly one of ``data`` and ``error`` is set."""

    model_config = ConfigDict(frozen=True)

    data: T | None = None
    error: ResultError | None = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> Result[T]:
        if (self.data is None) == (self.error is None):
            msg = "Result must carry exactly one of 'data' or 'error'"
            raise ValueError(msg)
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> Result[T]:
        return cls(data=data)

    @classmethod
    def failure(
        cls,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> Result[T]:
        return cls(error=ResultError(code=code, message=message, details=details))

    @classmethod
    def from_exception(cls, exc: EngineError) -> Result[T]:
        return cls.failure(exc.code, exc.message, exc.details or None)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, *, indent: bool = False) -> bytes:
        """Serialize deterministically (sorted keys)."""
        opts = orjson.OPT_SORT_KEYS
        if indent:
            opts |= orjson.OPT_INDENT_2
        return orjson.dumps(self.to_dict(), option=opts)

    @classmethod
    def from_json(cls, payload: bytes | str) -> Result[T]:
        return cls.model_validate(orjson.loads(payload))


__all__ = ["Result", "ResultError"]
