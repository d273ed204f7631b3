"""Version conflict, duplicate and unused dependency models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from monoguard.models.base import ContractModel
from monoguard.models.graph import DependencyType

RiskLevel = Literal["low", "medium", "high", "critical"]

RISK_LEVELS: tuple[RiskLevel, ...] = ("low", "medium", "high", "critical")


class ConflictingVersion(ContractModel):
    version: str
    packages: list[str]
    is_breaking: bool = False


class VersionConflict(ContractModel):
    """A package required at mutually unsatisfiable version ranges."""

    package_name: str
    conflicting_versions: list[ConflictingVersion]
    risk_level: RiskLevel
    resolution: str
    impact: str

    @model_validator(mode="after")
    def _check_versions(self) -> VersionConflict:
        distinct = {entry.version for entry in self.conflicting_versions}
        if len(distinct) < 2:
            msg = f"conflict for {self.package_name!r} needs two distinct versions"
            raise ValueError(msg)
        return self


class DuplicateDependency(ContractModel):
    package_name: str
    versions: list[str]
    packages: list[str]
    confidence: float = Field(ge=0.0, le=1.0)
    estimated_size: str
    reason: str


class UnusedDependency(ContractModel):
    package_name: str
    declared_in: str
    type: DependencyType
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class AnalysisWarning(ContractModel):
    """Recoverable input issue reported alongside results."""

    code: str
    message: str
    package_name: str | None = None
    path: str | None = None


class DependencyReport(ContractModel):
    version_conflicts: list[VersionConflict] = Field(default_factory=list)
    duplicates: list[DuplicateDependency] = Field(default_factory=list)
    unused: list[UnusedDependency] = Field(default_factory=list)
    warnings: list[AnalysisWarning] = Field(default_factory=list)
    unpinned_specifiers: int = 0
    total_estimated_savings: str = "0.0 KB"


__all__ = [
    "RISK_LEVELS",
    "AnalysisWarning",
    "ConflictingVersion",
    "DependencyReport",
    "DuplicateDependency",
    "RiskLevel",
    "UnusedDependency",
    "VersionConflict",
]
