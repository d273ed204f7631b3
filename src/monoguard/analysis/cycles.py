"""Circular dependency detection and classification."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from monoguard.analysis.root_cause import RootCauseAnalyzer
from monoguard.analysis.traces import ImportIndex
from monoguard.graph.algos import (
    MAX_CYCLES_PER_SCC,
    IndexedGraph,
    enumerate_cycles,
    reachable,
    strongly_connected_components,
)
from monoguard.models.circular import (
    SEVERITY_RANK,
    CircularDependencyInfo,
    FixStrategy,
    Severity,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from monoguard.models.graph import DependencyGraph, DependencyType
    from monoguard.parse.imports import ImportStatement

logger = logging.getLogger(__name__)

# Strongest edge type wins when a hop has several parallel edges.
EDGE_STRENGTH: dict[str, int] = {
    "production": 4,
    "peer": 3,
    "optional": 2,
    "development": 1,
}
_NON_RUNTIME = frozenset({"development", "optional"})


@dataclass
class CycleDetection:
    cycles: list[CircularDependencyInfo] = field(default_factory=list)
    truncated_components: list[list[str]] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        return bool(self.truncated_components)


def hop_type(types: set[str]) -> DependencyType:
    return max(types, key=lambda t: EDGE_STRENGTH[t])  # type: ignore[return-value]


def classify_severity(hop_types: Sequence[str]) -> Severity:
    """Severity from the edge-type mix of a cycle's hops.

    Every hop production: critical. Every hop development or optional: info.
    Anything else (peer hops, or production mixed with weaker hops): warning.
    """
    kinds = set(hop_types)
    if kinds == {"production"}:
        return "critical"
    if kinds <= _NON_RUNTIME:
        return "info"
    return "warning"


def complexity_score(member_count: int, touching_edges: int) -> int:
    """``min(10, members + touching_edges // 2)``, at least 1."""
    return max(1, min(10, member_count + touching_edges // 2))


def describe_impact(members: Sequence[str], severity: Severity) -> str:
    if len(members) == 2:
        text = f"Direct circular dependency between {members[0]} and {members[1]}"
    else:
        chain = " -> ".join([*members, members[0]])
        text = f"Indirect circular dependency involving {len(members)} packages: {chain}"
    if severity == "critical":
        text += "; packages cannot be built or released independently"
    return text


def _join_names(names: Sequence[str]) -> str:
    if len(names) <= 2:
        return " and ".join(names)
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def _shared_package_name(members: Sequence[str], existing: set[str]) -> str:
    first = members[0]
    base = f"{first.split('/', 1)[0]}/shared" if first.startswith("@") else "shared"
    candidate, suffix = base, 2
    while candidate in existing:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


class _CycleContext:
    """Per-graph lookups shared by every cycle classification."""

    def __init__(self, graph: DependencyGraph, indexed: IndexedGraph) -> None:
        self.graph = graph
        self.indexed = indexed
        self.edge_types: dict[tuple[str, str], set[str]] = defaultdict(set)
        for edge in graph.edges:
            self.edge_types[(edge.from_package, edge.to_package)].add(edge.type)
        self.declared: dict[str, set[str]] = {
            name: {dep.name for dep in node.declared}
            for name, node in graph.nodes.items()
        }

    def touching_edges(self, members: Sequence[str], hops: set[tuple[str, str]]) -> int:
        member_set = set(members)
        return sum(
            1
            for pair in self.edge_types
            if (pair[0] in member_set or pair[1] in member_set) and pair not in hops
        )

    def shared_dependencies(self, members: Sequence[str]) -> list[str]:
        member_set = set(members)
        common = set.intersection(*(self.declared[name] for name in members))
        return sorted(common - member_set)

    def invertible_hops(
        self,
        hops: Sequence[tuple[str, str]],
        hop_types: Sequence[str],
        usage: Counter[tuple[str, str]],
    ) -> list[tuple[str, str]]:
        """Hops that can be inverted without touching any other dependency.

        A hop qualifies when its edge type is strictly weaker than every other
        hop in the cycle, no other enumerated cycle uses it, and its source
        has no other path to its target (so the reversed edge closes no loop).
        """
        index = self.indexed.index
        strengths = [EDGE_STRENGTH[kind] for kind in hop_types]
        result: list[tuple[str, str]] = []
        for position, (source, target) in enumerate(hops):
            others = strengths[:position] + strengths[position + 1 :]
            if not others or strengths[position] >= min(others):
                continue
            if usage[(source, target)] != 1:
                continue
            s, t = index[source], index[target]
            if not reachable(self.indexed, s, t, skip_edge=(s, t)):
                result.append((source, target))
        return result


def propose_fix(
    members: Sequence[str],
    hops: Sequence[tuple[str, str]],
    hop_types: Sequence[str],
    usage: Counter[tuple[str, str]],
    context: _CycleContext,
) -> FixStrategy:
    """Choose a fix: extract_module, then dependency_injection, then boundary_refactor."""
    size = len(members)
    shared = context.shared_dependencies(members)
    if shared:
        new_package = _shared_package_name(members, set(context.graph.nodes))
        return FixStrategy(
            type="extract_module",
            description=(
                f"Move the code {_join_names(list(members))} share into a new package "
                f"'{new_package}' so none of them import each other"
            ),
            target_packages=list(members),
            effort="medium" if size <= 3 else "high",
            suitability=min(10, 5 + len(shared)),
            shared_dependencies=shared,
            suggested_package_name=new_package,
            steps=[
                f"Create package {new_package}",
                f"Move shared code built on {', '.join(shared)} into {new_package}",
                "Point each cycle member at the new package",
                "Remove the direct imports between cycle members",
            ],
        )

    invertible = context.invertible_hops(hops, hop_types, usage)
    if len(invertible) == 1:
        source, target = invertible[0]
        return FixStrategy(
            type="dependency_injection",
            description=(
                f"Invert {source} -> {target}: define an interface in {source} "
                f"and let {target} provide the implementation"
            ),
            target_packages=[source, target],
            effort="low" if size <= 2 else "medium",
            suitability=10 if size == 2 else 8,
            invert_edge=[source, target],
            steps=[
                f"Declare the contract {source} needs from {target} inside {source}",
                f"Implement the contract in {target}",
                f"Inject the implementation where {source} is composed",
                f"Remove {target} from the dependencies of {source}",
            ],
        )

    return FixStrategy(
        type="boundary_refactor",
        description=(
            f"Redraw the boundaries between {_join_names(list(members))} so "
            "dependencies flow in one direction"
        ),
        target_packages=list(members),
        effort="high" if size > 3 else "medium",
        suitability=max(1, 6 - (size - 2)),
        steps=[
            "Identify which package owns each shared concept",
            "Move misplaced modules to their owning package",
            "Delete the dependency edges that point back up the hierarchy",
        ],
    )


def _cycle_sort_key(info: CircularDependencyInfo) -> tuple[int, int, str, list[str]]:
    return (-SEVERITY_RANK[info.severity], len(info.members), info.cycle[0], info.cycle)


def detect_cycles(
    graph: DependencyGraph,
    *,
    imports: Mapping[str, Sequence[ImportStatement]] | None = None,
    max_cycles_per_scc: int = MAX_CYCLES_PER_SCC,
    checkpoint: Callable[[], None] | None = None,
) -> CycleDetection:
    """Find and classify every elementary cycle among workspace packages.

    Only internal edges take part. Results are sorted by severity (critical
    first), then cycle length, then first package name, then the full cycle.

    Args:
        graph: The dependency graph.
        imports: Source imports keyed by file path, used to attach the
            import statements behind each hop.
        max_cycles_per_scc: Cap on cycles enumerated per component.
        checkpoint: Called periodically during enumeration; may raise to abort.
    """
    indexed = IndexedGraph(graph.adjacency())
    context = _CycleContext(graph, indexed)
    root_causes = RootCauseAnalyzer(graph)
    import_index = ImportIndex(graph, imports or {})
    detection = CycleDetection()

    for component in strongly_connected_components(indexed):
        enumeration = enumerate_cycles(
            indexed,
            component,
            max_cycles=max_cycles_per_scc,
            checkpoint=checkpoint,
        )
        if enumeration.truncated:
            names = [indexed.names[i] for i in component]
            detection.truncated_components.append(names)
            logger.warning(
                "cycle enumeration truncated for component of %d packages", len(names)
            )

        named = [[indexed.names[i] for i in cycle] for cycle in enumeration.cycles]
        usage: Counter[tuple[str, str]] = Counter()
        for members in named:
            usage.update(_hops(members))

        for members in named:
            hops = _hops(members)
            hop_types = [hop_type(context.edge_types[hop]) for hop in hops]
            severity = classify_severity(hop_types)
            detection.cycles.append(
                CircularDependencyInfo(
                    cycle=[*members, members[0]],
                    type="direct" if len(members) == 2 else "indirect",
                    severity=severity,
                    impact=describe_impact(members, severity),
                    complexity=complexity_score(
                        len(members), context.touching_edges(members, set(hops))
                    ),
                    edge_types=hop_types,
                    fix_strategy=propose_fix(members, hops, hop_types, usage, context),
                    root_cause=root_causes.analyze(members, hop_types),
                    import_traces=import_index.trace(members),
                )
            )

    detection.cycles.sort(key=_cycle_sort_key)
    logger.debug("detected %d cycle(s)", len(detection.cycles))
    return detection


def _hops(members: Sequence[str]) -> list[tuple[str, str]]:
    return [(members[i], members[(i + 1) % len(members)]) for i in range(len(members))]


__all__ = [
    "EDGE_STRENGTH",
    "CycleDetection",
    "classify_severity",
    "complexity_score",
    "describe_impact",
    "detect_cycles",
    "hop_type",
    "propose_fix",
]
