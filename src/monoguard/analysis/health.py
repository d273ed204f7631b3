"""Weighted health score aggregation.

Five factors, each scored 0-100, combine into the overall score:

- dependencies: cycle and version conflict deductions
- architecture: overall layer compliance
- maintainability: dependency depth and package coupling
- security: unpinned and malformed version specifiers
- performance: duplicate and unused dependencies
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from monoguard.graph.algos import IndexedGraph, longest_paths
from monoguard.models.health import HealthFactor, HealthScore, Rating, Trend
from monoguard.utils import utc_timestamp

if TYPE_CHECKING:
    from collections.abc import Sequence

    from monoguard.models.architecture import ArchitectureValidationResults
    from monoguard.models.circular import CircularDependencyInfo
    from monoguard.models.conflicts import DependencyReport
    from monoguard.models.graph import DependencyGraph

logger = logging.getLogger(__name__)

WEIGHT_DEPENDENCIES = 0.25
WEIGHT_ARCHITECTURE = 0.25
WEIGHT_MAINTAINABILITY = 0.20
WEIGHT_SECURITY = 0.15
WEIGHT_PERFORMANCE = 0.15

CYCLE_DEDUCTIONS = {"critical": 15, "warning": 8, "info": 3}
CONFLICT_DEDUCTIONS = {"critical": 10, "high": 7, "medium": 4, "low": 1}

OPTIMAL_DEPTH = 4
DEDUCTION_PER_LEVEL = 10
AVG_DEPTH_MULTIPLIER = 5
IDEAL_INSTABILITY = 0.5

UNPINNED_DEDUCTION = 10
MALFORMED_DEDUCTION = 5
DUPLICATE_DEDUCTION = 5
UNUSED_DEDUCTION = 3

# Recommendations come only from findings at or above these levels.
SEVERITY_RANK = {"info": 0, "warning": 1, "critical": 2}
RISK_RANK = {"low": 0, "medium": 1, "high": 2, "critical": 3}
MIN_CYCLE_SEVERITY = "warning"
MIN_CONFLICT_RISK = "medium"
MIN_VIOLATION_SEVERITY = "warning"
MIN_RECOMMENDATION_CONFIDENCE = 0.5
# Maintainability has no per-finding severity and is gated on its score.
MAINTAINABILITY_RECOMMENDATION_THRESHOLD = 90

RATING_BANDS: tuple[tuple[int, Rating], ...] = (
    (85, "excellent"),
    (70, "good"),
    (50, "fair"),
    (30, "poor"),
)


def bound_score(score: float) -> int:
    return max(0, min(100, int(round(score))))


def rating_for(score: int) -> Rating:
    for floor, rating in RATING_BANDS:
        if score >= floor:
            return rating
    return "critical"


def determine_trend(current: int, previous: int | None) -> Trend:
    if previous is None or current == previous:
        return "stable"
    return "improving" if current > previous else "declining"


def dependencies_factor(
    cycles: Sequence[CircularDependencyInfo],
    report: DependencyReport,
) -> HealthFactor:
    deductions = sum(CYCLE_DEDUCTIONS[cycle.severity] for cycle in cycles)
    deductions += sum(
        CONFLICT_DEDUCTIONS[conflict.risk_level] for conflict in report.version_conflicts
    )
    score = bound_score(100 - deductions)

    notable_cycles = [
        cycle
        for cycle in cycles
        if SEVERITY_RANK[cycle.severity] >= SEVERITY_RANK[MIN_CYCLE_SEVERITY]
    ]
    notable_conflicts = [
        conflict
        for conflict in report.version_conflicts
        if RISK_RANK[conflict.risk_level] >= RISK_RANK[MIN_CONFLICT_RISK]
    ]
    direct = sum(1 for cycle in notable_cycles if cycle.type == "direct")
    indirect = len(notable_cycles) - direct
    urgent = sum(1 for c in notable_conflicts if c.risk_level in {"critical", "high"})
    minor = len(notable_conflicts) - urgent
    candidates: list[str] = []
    if direct:
        candidates.append(
            f"Break {direct} direct cycle(s) by extracting shared code into separate packages"
        )
    if indirect:
        candidates.append(
            f"Refactor {indirect} indirect cycle(s) - consider dependency inversion"
        )
    if urgent:
        candidates.append(
            f"Resolve {urgent} version conflict(s) spanning major versions before they "
            "cause breaking changes"
        )
    if minor:
        candidates.append(f"Consider aligning {minor} minor version conflict(s)")

    return HealthFactor(
        name="dependencies",
        score=score,
        weight=WEIGHT_DEPENDENCIES,
        description=(
            f"{len(cycles)} cycle(s), {len(report.version_conflicts)} version conflict(s)"
        ),
        recommendations=candidates,
    )


def architecture_factor(results: ArchitectureValidationResults | None) -> HealthFactor:
    if results is None:
        return HealthFactor(
            name="architecture",
            score=100,
            weight=WEIGHT_ARCHITECTURE,
            description="No architecture rules configured",
        )

    score = bound_score(results.overall_compliance)
    flagged = {
        violation.source_layer
        for violation in results.violations
        if SEVERITY_RANK[violation.severity] >= SEVERITY_RANK[MIN_VIOLATION_SEVERITY]
    }
    candidates = [
        f"Layer '{entry.layer}' is {entry.compliance_percentage}% compliant "
        f"({entry.violating_files} violating file(s))"
        for entry in results.layer_compliance
        if entry.violating_files and entry.layer in flagged
    ]
    if None in flagged:
        candidates.append(
            f"Assign {results.summary.unclassified_files} unclassified file(s) to a layer"
        )
    return HealthFactor(
        name="architecture",
        score=score,
        weight=WEIGHT_ARCHITECTURE,
        description=(
            f"{results.overall_compliance}% compliance, "
            f"{results.summary.total_violations} violation(s)"
        ),
        recommendations=candidates,
    )


@dataclass(frozen=True)
class DepthMetrics:
    max_depth: int = 0
    avg_depth: float = 0.0


@dataclass(frozen=True)
class CouplingMetrics:
    average_instability: float = IDEAL_INSTABILITY
    extreme: tuple[str, ...] = ()


def depth_metrics(graph: DependencyGraph) -> DepthMetrics:
    if not graph.nodes:
        return DepthMetrics()
    depths = longest_paths(IndexedGraph(graph.adjacency()))
    return DepthMetrics(max_depth=max(depths), avg_depth=sum(depths) / len(depths))


def coupling_metrics(graph: DependencyGraph) -> CouplingMetrics:
    """Average instability ``Ce / (Ca + Ce)`` across packages.

    Isolated packages count as balanced (0.5). Packages below 0.2 or above
    0.8 are reported as extreme.
    """
    if not graph.nodes:
        return CouplingMetrics()
    adjacency = graph.adjacency()
    afferent = dict.fromkeys(adjacency, 0)
    for targets in adjacency.values():
        for target in targets:
            afferent[target] += 1

    total = 0.0
    extreme: list[str] = []
    for name in sorted(adjacency):
        ca, ce = afferent[name], len(adjacency[name])
        instability = ce / (ca + ce) if ca + ce else IDEAL_INSTABILITY
        total += instability
        if instability < 0.2 or instability > 0.8:
            extreme.append(name)
    return CouplingMetrics(
        average_instability=total / len(adjacency), extreme=tuple(extreme)
    )


def maintainability_factor(graph: DependencyGraph) -> HealthFactor:
    depth = depth_metrics(graph)
    depth_score = 100
    if depth.max_depth > OPTIMAL_DEPTH:
        depth_score -= (depth.max_depth - OPTIMAL_DEPTH) * DEDUCTION_PER_LEVEL
    if depth.avg_depth > OPTIMAL_DEPTH:
        depth_score -= int((depth.avg_depth - OPTIMAL_DEPTH) * AVG_DEPTH_MULTIPLIER)
    depth_score = bound_score(depth_score)

    coupling = coupling_metrics(graph)
    deviation = abs(coupling.average_instability - IDEAL_INSTABILITY)
    coupling_score = bound_score(100 - deviation * 100)

    score = bound_score((depth_score + coupling_score) / 2)

    candidates: list[str] = []
    if depth.max_depth > OPTIMAL_DEPTH + 2:
        candidates.append(
            f"Dependency chain is too deep (max: {depth.max_depth}). "
            "Consider flattening the architecture"
        )
    elif depth.max_depth > OPTIMAL_DEPTH:
        candidates.append(
            f"Max depth of {depth.max_depth} is slightly above optimal ({OPTIMAL_DEPTH}). "
            "Review if simplification is possible"
        )
    if coupling.average_instability < 0.3:
        candidates.append(
            "Architecture is overly stable - consider if this limits flexibility"
        )
    elif coupling.average_instability > 0.7:
        candidates.append(
            "Architecture is highly unstable - consider adding stable foundational packages"
        )
    if 0 < len(coupling.extreme) <= 3:
        candidates.append(f"Review coupling in: {', '.join(coupling.extreme)}")
    elif len(coupling.extreme) > 3:
        candidates.append(
            f"{len(coupling.extreme)} packages have extreme coupling - "
            "architectural review recommended"
        )

    return HealthFactor(
        name="maintainability",
        score=score,
        weight=WEIGHT_MAINTAINABILITY,
        description=(
            f"Max depth: {depth.max_depth}, Avg depth: {depth.avg_depth:.1f}, "
            f"Avg instability: {coupling.average_instability:.2f}"
        ),
        recommendations=(
            candidates if score < MAINTAINABILITY_RECOMMENDATION_THRESHOLD else []
        ),
    )


def security_factor(report: DependencyReport) -> HealthFactor:
    malformed = sum(1 for w in report.warnings if w.code == "INVALID_VERSION_RANGE")
    unpinned = report.unpinned_specifiers
    score = bound_score(
        100 - UNPINNED_DEDUCTION * unpinned - MALFORMED_DEDUCTION * malformed
    )
    candidates: list[str] = []
    if unpinned:
        candidates.append(
            f"Pin {unpinned} dependency specifier(s) that bypass the registry or "
            "accept any version"
        )
    if malformed:
        candidates.append(f"Fix {malformed} malformed version range(s)")
    return HealthFactor(
        name="security",
        score=score,
        weight=WEIGHT_SECURITY,
        description=f"{unpinned} unpinned specifier(s), {malformed} malformed range(s)",
        recommendations=candidates,
    )


def performance_factor(report: DependencyReport) -> HealthFactor:
    penalty = math.fsum(DUPLICATE_DEDUCTION * d.confidence for d in report.duplicates)
    penalty += math.fsum(UNUSED_DEDUCTION * u.confidence for u in report.unused)
    score = bound_score(100 - penalty)
    duplicates = [
        d for d in report.duplicates if d.confidence >= MIN_RECOMMENDATION_CONFIDENCE
    ]
    unused = [u for u in report.unused if u.confidence >= MIN_RECOMMENDATION_CONFIDENCE]
    candidates: list[str] = []
    if duplicates:
        candidates.append(
            f"Deduplicate {len(duplicates)} dependency version(s) "
            f"(estimated savings {report.total_estimated_savings})"
        )
    if unused:
        candidates.append(f"Remove {len(unused)} unused dependency declaration(s)")
    return HealthFactor(
        name="performance",
        score=score,
        weight=WEIGHT_PERFORMANCE,
        description=(
            f"{len(report.duplicates)} duplicate(s), {len(report.unused)} unused dependency(ies)"
        ),
        recommendations=candidates,
    )


def calculate_health(
    graph: DependencyGraph,
    cycles: Sequence[CircularDependencyInfo],
    report: DependencyReport,
    architecture: ArchitectureValidationResults | None,
    *,
    previous: int | None = None,
    timestamp: str | None = None,
) -> HealthScore:
    """Aggregate every analysis report into a ``HealthScore``.

    Args:
        graph: The dependency graph.
        cycles: Detected circular dependencies.
        report: Version conflict, duplicate and unused dependency report.
        architecture: Validation results, or None when no rules are configured.
        previous: Previous overall score for the same project, if known.
        timestamp: Overrides ``lastUpdated``; defaults to now.
    """
    factors = [
        dependencies_factor(cycles, report),
        architecture_factor(architecture),
        maintainability_factor(graph),
        security_factor(report),
        performance_factor(report),
    ]
    overall = bound_score(math.fsum(f.score * f.weight for f in factors))
    logger.debug(
        "health: overall %d (%s)",
        overall,
        ", ".join(f"{f.name}={f.score}" for f in factors),
    )
    return HealthScore(
        overall=overall,
        factors=factors,
        trend=determine_trend(overall, previous),
        rating=rating_for(overall),
        last_updated=timestamp or utc_timestamp(),
    )


__all__ = [
    "CONFLICT_DEDUCTIONS",
    "CYCLE_DEDUCTIONS",
    "OPTIMAL_DEPTH",
    "MAINTAINABILITY_RECOMMENDATION_THRESHOLD",
    "MIN_CONFLICT_RISK",
    "MIN_CYCLE_SEVERITY",
    "MIN_RECOMMENDATION_CONFIDENCE",
    "MIN_VIOLATION_SEVERITY",
    "WEIGHT_ARCHITECTURE",
    "WEIGHT_DEPENDENCIES",
    "WEIGHT_MAINTAINABILITY",
    "WEIGHT_PERFORMANCE",
    "WEIGHT_SECURITY",
    "CouplingMetrics",
    "DepthMetrics",
    "architecture_factor",
    "bound_score",
    "calculate_health",
    "coupling_metrics",
    "dependencies_factor",
    "depth_metrics",
    "determine_trend",
    "maintainability_factor",
    "performance_factor",
    "rating_for",
    "security_factor",
]
