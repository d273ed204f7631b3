"""Top-level payloads returned by ``analyze`` and ``check``."""

from __future__ import annotations

from pydantic import Field

from monoguard.models.architecture import ArchitectureValidationResults
from monoguard.models.base import ContractModel
from monoguard.models.circular import CircularDependencyInfo
from monoguard.models.conflicts import AnalysisWarning, DependencyReport
from monoguard.models.graph import DependencyGraph
from monoguard.models.health import HealthScore

ENGINE_VERSION = "0.3.0"


class AnalysisMetadata(ContractModel):
    packages: int
    excluded_files: int = 0
    files_analyzed: int = 0
    source_files_scanned: int = 0
    cycles_truncated: bool = False
    truncated_components: list[list[str]] = Field(default_factory=list)
    warnings: list[AnalysisWarning] = Field(default_factory=list)
    engine_version: str = ENGINE_VERSION
    created_at: str


class AnalysisResult(ContractModel):
    health_score: HealthScore
    graph: DependencyGraph
    circular_dependencies: list[CircularDependencyInfo] = Field(default_factory=list)
    dependency_report: DependencyReport = Field(default_factory=DependencyReport)
    architecture: ArchitectureValidationResults | None = None
    metadata: AnalysisMetadata


class CheckIssue(ContractModel):
    code: str
    message: str
    file: str | None = None


class CheckResult(ContractModel):
    passed: bool
    errors: list[CheckIssue] = Field(default_factory=list)
    warnings: list[CheckIssue] = Field(default_factory=list)
    health_score: int = Field(ge=0, le=100)


__all__ = [
    "ENGINE_VERSION",
    "AnalysisMetadata",
    "AnalysisResult",
    "CheckIssue",
    "CheckResult",
]
