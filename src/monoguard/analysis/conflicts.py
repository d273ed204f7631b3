"""Version conflict, duplicate and unused dependency analysis."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from monoguard.analysis.semver import NpmRangeStrategy, Version, VersionRangeStrategy
from monoguard.graph.builder import owning_package
from monoguard.models.conflicts import (
    RISK_LEVELS,
    AnalysisWarning,
    ConflictingVersion,
    DependencyReport,
    DuplicateDependency,
    RiskLevel,
    UnusedDependency,
    VersionConflict,
)
from monoguard.parse.imports import package_name_of
from monoguard.utils import format_size

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from monoguard.models.graph import DependencyGraph, DependencyType, PackageNode
    from monoguard.parse.imports import ImportStatement

logger = logging.getLogger(__name__)

# Rough installed footprint of one extra copy of a package.
ESTIMATED_COPY_SIZE_BYTES = 100 * 1024

_CONFLICT_DUPLICATE_CONFIDENCE = 0.95
_DOUBLE_DECLARATION_CONFIDENCE = 0.9
_DIVERGENT_MINOR_CONFIDENCE = 0.6
_COMPATIBLE_RANGE_CONFIDENCE = 0.4


@dataclass(frozen=True)
class Requirement:
    """One package requiring ``target`` at ``version_range``."""

    target: str
    consumer: str
    type: DependencyType
    version_range: str
    internal: bool


def iter_requirements(graph: DependencyGraph) -> Iterator[Requirement]:
    for edge in graph.edges:
        yield Requirement(
            edge.to_package, edge.from_package, edge.type, edge.version_range.strip(), True
        )
    for dep in graph.external_dependencies:
        yield Requirement(
            dep.name, dep.from_package, dep.type, dep.version_range.strip(), False
        )


def _escalate(level: RiskLevel) -> RiskLevel:
    return RISK_LEVELS[min(RISK_LEVELS.index(level) + 1, len(RISK_LEVELS) - 1)]


def assess_risk(
    bounds: Mapping[str, Version],
    consumers: Mapping[str, list[str]],
) -> tuple[RiskLevel, int]:
    """Risk level plus the majority major version of a conflict.

    Base level from the widest divergence between lower bounds (major: high,
    minor: medium, otherwise low). Three or more distinct majors is critical.
    A breaking range with a single consumer (an orphaned pin) escalates one
    level.
    """
    major_usage: Counter[int] = Counter()
    for version, packages in consumers.items():
        major_usage[bounds[version].major] += len(packages)
    majority_major = max(major_usage, key=lambda major: (major_usage[major], major))

    majors = {bound.major for bound in bounds.values()}
    minors = {(bound.major, bound.minor) for bound in bounds.values()}
    if len(majors) >= 3:
        level: RiskLevel = "critical"
    elif len(majors) == 2:
        level = "high"
    elif len(minors) > 1:
        level = "medium"
    else:
        level = "low"

    orphaned = any(
        bounds[version].major != majority_major and len(packages) == 1
        for version, packages in consumers.items()
    )
    if orphaned:
        level = _escalate(level)
    return level, majority_major


def build_conflict(
    name: str,
    consumers: Mapping[str, list[str]],
    strategy: VersionRangeStrategy,
) -> VersionConflict:
    bounds = {version: strategy.lower_bound(version) for version in consumers}
    risk, majority_major = assess_risk(bounds, consumers)
    ordered = sorted(consumers, key=lambda version: (bounds[version], version))
    resolution = ordered[-1]
    breaking = sorted({bounds[v].major for v in ordered if bounds[v].major != majority_major})

    impact = (
        f"{len({p for ps in consumers.values() for p in ps})} packages require "
        f"{name} at {len(consumers)} incompatible ranges"
    )
    if breaking:
        impact += f"; major version(s) {', '.join(map(str, breaking))} differ from {majority_major}"

    return VersionConflict(
        package_name=name,
        conflicting_versions=[
            ConflictingVersion(
                version=version,
                packages=sorted(consumers[version]),
                is_breaking=bounds[version].major != majority_major,
            )
            for version in ordered
        ],
        risk_level=risk,
        resolution=resolution,
        impact=impact,
    )


def _declared_overlaps(node: PackageNode) -> Iterator[DuplicateDependency]:
    by_name: dict[str, list[tuple[str, str]]] = defaultdict(list)
    for dep in node.declared:
        if dep.type != "peer":
            by_name[dep.name].append((dep.type, dep.version_range))
    for dep_name, entries in sorted(by_name.items()):
        if len(entries) < 2:
            continue
        kinds = sorted(kind for kind, _ in entries)
        yield DuplicateDependency(
            package_name=dep_name,
            versions=sorted({rng for _, rng in entries}),
            packages=[node.name],
            confidence=_DOUBLE_DECLARATION_CONFIDENCE,
            estimated_size=format_size(0),
            reason=f"{node.name} declares {dep_name} as both {' and '.join(kinds)}",
        )


def find_unused(
    graph: DependencyGraph,
    imports: Mapping[str, Sequence[ImportStatement]],
) -> list[UnusedDependency]:
    """Declared dependencies never imported by the declaring package's sources.

    Only packages with scanned sources are evaluated. Confidence grows with the
    number of source files and is lower for development dependencies, which
    are often used by tooling rather than imported.
    """
    packages = list(graph.nodes.values())
    file_counts: Counter[str] = Counter()
    imported: dict[str, set[str]] = defaultdict(set)
    for path, statements in imports.items():
        owner = owning_package(path, packages)
        if owner is None:
            continue
        file_counts[owner.name] += 1
        for statement in statements:
            package_name = package_name_of(statement.specifier)
            if package_name is not None:
                imported[owner.name].add(package_name)

    unused: list[UnusedDependency] = []
    for name, node in graph.nodes.items():
        count = file_counts[name]
        if count == 0:
            continue
        for dep in node.declared:
            if dep.type not in {"production", "development"}:
                continue
            if dep.name.startswith("@types/") or dep.name in imported[name]:
                continue
            if dep.type == "production":
                confidence = 0.5 + min(0.3, 0.03 * count)
            else:
                confidence = 0.3 + min(0.2, 0.02 * count)
            unused.append(
                UnusedDependency(
                    package_name=dep.name,
                    declared_in=name,
                    type=dep.type,
                    confidence=round(confidence, 2),
                    reason=f"not imported by any of {count} scanned source file(s)",
                )
            )
    unused.sort(key=lambda u: (u.declared_in, u.package_name, u.type))
    return unused


def analyze_dependencies(
    graph: DependencyGraph,
    imports: Mapping[str, Sequence[ImportStatement]] | None = None,
    *,
    strategy: VersionRangeStrategy | None = None,
) -> DependencyReport:
    """Build the version conflict, duplicate and unused dependency report.

    Requirements on the same package are grouped by target name. A group with
    more than one distinct range is a conflict only when no single version
    satisfies every range. Malformed ranges are reported as warnings and left
    out of the grouping.
    """
    strategy = strategy or NpmRangeStrategy()
    warnings: list[AnalysisWarning] = []
    unpinned = 0
    groups: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
    external_names: set[str] = set()

    for requirement in iter_requirements(graph):
        kind = strategy.classify(requirement.version_range)
        if kind == "invalid":
            warnings.append(
                AnalysisWarning(
                    code="INVALID_VERSION_RANGE",
                    message=(
                        f"{requirement.consumer} requires {requirement.target} at "
                        f"malformed range {requirement.version_range!r}"
                    ),
                    package_name=requirement.consumer,
                )
            )
            continue
        if kind in {"unpinned", "wildcard"} and not requirement.internal:
            unpinned += 1
            warnings.append(
                AnalysisWarning(
                    code="UNPINNED_SPECIFIER",
                    message=(
                        f"{requirement.consumer} requires {requirement.target} via "
                        f"unpinned specifier {requirement.version_range!r}"
                    ),
                    package_name=requirement.consumer,
                )
            )
        if kind == "unpinned":
            continue
        groups[requirement.target][requirement.version_range].add(requirement.consumer)
        if not requirement.internal:
            external_names.add(requirement.target)

    conflicts: list[VersionConflict] = []
    duplicates: list[DuplicateDependency] = []
    for name in sorted(groups):
        ranges = groups[name]
        if len(ranges) < 2:
            continue
        consumers = {version: sorted(packages) for version, packages in ranges.items()}
        all_consumers = sorted({p for ps in consumers.values() for p in ps})
        copies = len(consumers)

        if not strategy.intersects(sorted(consumers)):
            conflict = build_conflict(name, consumers, strategy)
            conflicts.append(conflict)
            if name in external_names:
                duplicates.append(
                    DuplicateDependency(
                        package_name=name,
                        versions=[entry.version for entry in conflict.conflicting_versions],
                        packages=all_consumers,
                        confidence=_CONFLICT_DUPLICATE_CONFIDENCE,
                        estimated_size=format_size((copies - 1) * ESTIMATED_COPY_SIZE_BYTES),
                        reason="incompatible ranges force separate installed copies",
                    )
                )
            continue

        if name not in external_names:
            continue
        bounds = {strategy.lower_bound(version) for version in consumers}
        divergent = len({(b.major, b.minor) for b in bounds}) > 1
        duplicates.append(
            DuplicateDependency(
                package_name=name,
                versions=sorted(consumers),
                packages=all_consumers,
                confidence=(
                    _DIVERGENT_MINOR_CONFIDENCE if divergent else _COMPATIBLE_RANGE_CONFIDENCE
                ),
                estimated_size=format_size((copies - 1) * ESTIMATED_COPY_SIZE_BYTES),
                reason="compatible but differing ranges may install more than one copy",
            )
        )

    for node in graph.nodes.values():
        duplicates.extend(_declared_overlaps(node))

    conflicts.sort(key=lambda c: (-RISK_LEVELS.index(c.risk_level), c.package_name))
    duplicates.sort(key=lambda d: (-d.confidence, d.package_name, d.packages))
    warnings.sort(key=lambda w: (w.code, w.package_name or "", w.message))

    savings = sum(
        (len(d.versions) - 1) * ESTIMATED_COPY_SIZE_BYTES
        for d in duplicates
        if len(d.packages) > 1
    )
    report = DependencyReport(
        version_conflicts=conflicts,
        duplicates=duplicates,
        unused=find_unused(graph, imports or {}),
        warnings=warnings,
        unpinned_specifiers=unpinned,
        total_estimated_savings=format_size(savings),
    )
    logger.debug(
        "dependency report: %d conflict(s), %d duplicate(s), %d unused",
        len(report.version_conflicts),
        len(report.duplicates),
        len(report.unused),
    )
    return report


__all__ = [
    "ESTIMATED_COPY_SIZE_BYTES",
    "Requirement",
    "analyze_dependencies",
    "assess_risk",
    "build_conflict",
    "find_unused",
    "iter_requirements",
]
