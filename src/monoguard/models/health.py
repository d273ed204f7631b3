"""Health score models."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import Field, model_validator

from monoguard.models.base import ContractModel

Trend = Literal["improving", "stable", "declining"]
Rating = Literal["excellent", "good", "fair", "poor", "critical"]

WEIGHT_TOLERANCE = 1e-9


class HealthFactor(ContractModel):
    name: str
    score: int = Field(ge=0, le=100)
    weight: float = Field(ge=0.0, le=1.0)
    description: str
    recommendations: list[str] = Field(default_factory=list)


class HealthScore(ContractModel):
    """Weighted composite score; factor weights must sum to 1.0."""

    overall: int = Field(ge=0, le=100)
    factors: list[HealthFactor]
    trend: Trend = "stable"
    rating: Rating
    last_updated: str

    @model_validator(mode="after")
    def _check_weights(self) -> HealthScore:
        total = math.fsum(factor.weight for factor in self.factors)
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            msg = f"health factor weights must sum to 1.0, got {total!r}"
            raise ValueError(msg)
        return self

    def factor(self, name: str) -> HealthFactor:
        for factor in self.factors:
            if factor.name == name:
                return factor
        msg = f"unknown health factor {name!r}"
        raise KeyError(msg)


__all__ = ["WEIGHT_TOLERANCE", "HealthFactor", "HealthScore", "Rating", "Trend"]
