"""Model namespace for monoguard value objects."""

from monoguard.models.architecture import (
    ArchitectureRule,
    ArchitectureRules,
    ArchitectureValidationResults,
    ArchitectureViolation,
    LayerCompliance,
    LayerDefinition,
)
from monoguard.models.circular import CircularDependencyInfo, FixStrategy
from monoguard.models.conflicts import (
    AnalysisWarning,
    ConflictingVersion,
    DependencyReport,
    DuplicateDependency,
    UnusedDependency,
    VersionConflict,
)
from monoguard.models.graph import (
    DeclaredDependency,
    DependencyEdge,
    DependencyGraph,
    ExternalDependency,
    PackageNode,
)
from monoguard.models.health import HealthFactor, HealthScore
from monoguard.models.results import (
    AnalysisMetadata,
    AnalysisResult,
    CheckIssue,
    CheckResult,
)

__all__ = [
    "AnalysisMetadata",
    "AnalysisResult",
    "AnalysisWarning",
    "ArchitectureRule",
    "ArchitectureRules",
    "ArchitectureValidationResults",
    "ArchitectureViolation",
    "CheckIssue",
    "CheckResult",
    "CircularDependencyInfo",
    "ConflictingVersion",
    "DeclaredDependency",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyReport",
    "DuplicateDependency",
    "ExternalDependency",
    "FixStrategy",
    "HealthFactor",
    "HealthScore",
    "LayerCompliance",
    "LayerDefinition",
    "PackageNode",
    "UnusedDependency",
    "VersionConflict",
]
