"""Circular dependency models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from monoguard.models.base import ContractModel
from monoguard.models.graph import DependencyType

CycleType = Literal["direct", "indirect"]
Severity = Literal["critical", "warning", "info"]
FixStrategyType = Literal[
    "extract_module", "dependency_injection", "boundary_refactor"
]
Effort = Literal["low", "medium", "high"]

SEVERITY_RANK: dict[str, int] = {"critical": 3, "warning": 2, "info": 1}


class FixStrategy(ContractModel):
    """Suggested refactoring that breaks a cycle."""

    type: FixStrategyType
    description: str
    target_packages: list[str] = Field(default_factory=list)
    effort: Effort = "medium"
    suitability: int = Field(default=5, ge=1, le=10)
    shared_dependencies: list[str] = Field(default_factory=list)
    suggested_package_name: str | None = None
    invert_edge: list[str] | None = None
    steps: list[str] = Field(default_factory=list)


class CycleEdge(ContractModel):
    """One hop of a cycle with its effective edge type."""

    from_package: str = Field(alias="from")
    to_package: str = Field(alias="to")
    type: DependencyType
    critical: bool = False


class RootCause(ContractModel):
    """The package most likely responsible for a cycle."""

    originating_package: str
    problematic_dependency: CycleEdge
    confidence: int = Field(ge=0, le=100)
    explanation: str
    chain: list[CycleEdge]
    critical_edge: CycleEdge | None = None


class ImportTrace(ContractModel):
    """A source import that realizes one hop of a cycle."""

    from_package: str = Field(alias="from")
    to_package: str = Field(alias="to")
    file: str
    line: int = Field(ge=1)
    specifier: str


class CircularDependencyInfo(ContractModel):
    """One elementary cycle; ``cycle`` repeats its first name at the end."""

    cycle: list[str]
    type: CycleType
    severity: Severity
    impact: str
    complexity: int = Field(ge=1, le=10)
    edge_types: list[DependencyType] = Field(default_factory=list)
    fix_strategy: FixStrategy | None = None
    root_cause: RootCause | None = None
    import_traces: list[ImportTrace] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_closed(self) -> CircularDependencyInfo:
        if len(self.cycle) < 3 or self.cycle[0] != self.cycle[-1]:
            msg = f"cycle must be closed and have at least two members: {self.cycle}"
            raise ValueError(msg)
        return self

    @property
    def members(self) -> list[str]:
        return self.cycle[:-1]


__all__ = [
    "SEVERITY_RANK",
    "CircularDependencyInfo",
    "CycleEdge",
    "CycleType",
    "Effort",
    "FixStrategy",
    "FixStrategyType",
    "ImportTrace",
    "RootCause",
    "Severity",
]
