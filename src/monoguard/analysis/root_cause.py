"""Root cause heuristics for circular dependencies.

Every member of a cycle is scored out of 90:

- incoming: 30 minus 5 per internal edge pointing at the package
- outgoing: 20 minus 3 per internal edge leaving the package
- naming: 25 unless the name looks like a low-level package (core, utils, ...)
- position: 15 for the first member of the rotated cycle

High-level packages (few dependents, few dependencies, no foundation-style
name) are the most likely origin. Ties go to the smaller name.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from monoguard.models.circular import CycleEdge, RootCause

if TYPE_CHECKING:
    from collections.abc import Sequence

    from monoguard.models.graph import DependencyGraph, DependencyType

INCOMING_MAX = 30
INCOMING_PER_EDGE = 5
OUTGOING_MAX = 20
OUTGOING_PER_EDGE = 3
NAME_SCORE = 25
POSITION_SCORE = 15

LOW_LEVEL_NAME_PARTS = ("core", "common", "shared", "utils", "util", "lib", "base")

# Easiest hop to break first.
BREAK_PRIORITY: dict[str, int] = {
    "optional": 1,
    "peer": 2,
    "development": 3,
    "production": 4,
}

_TYPE_ADVICE: dict[str, str] = {
    "development": (
        "Since this is a dev dependency, it may be easier to break by "
        "restructuring test utilities."
    ),
    "optional": "Since this is an optional dependency, removing it may be the simplest fix.",
    "peer": "Since this is a peer dependency, consider restructuring the plugin architecture.",
}
_DEFAULT_ADVICE = (
    "Consider extracting shared code to a new package or using dependency injection."
)


class RootCauseAnalyzer:
    """Scores cycle members against edge counts precomputed from one graph."""

    def __init__(self, graph: DependencyGraph) -> None:
        self.incoming: Counter[str] = Counter(edge.to_package for edge in graph.edges)
        self.outgoing: Counter[str] = Counter(edge.from_package for edge in graph.edges)

    def package_score(self, name: str, position: int) -> int:
        incoming = max(0, INCOMING_MAX - INCOMING_PER_EDGE * self.incoming[name])
        outgoing = max(0, OUTGOING_MAX - OUTGOING_PER_EDGE * self.outgoing[name])
        lowered = name.lower()
        naming = 0 if any(part in lowered for part in LOW_LEVEL_NAME_PARTS) else NAME_SCORE
        return incoming + outgoing + naming + (POSITION_SCORE if position == 0 else 0)

    def analyze(
        self, members: Sequence[str], hop_types: Sequence[DependencyType]
    ) -> RootCause:
        """Attribute a cycle to one member.

        Args:
            members: Cycle members in order, without the closing repeat.
            hop_types: Effective edge type of each hop ``members[i] -> members[i+1]``.
        """
        best_name, best_score = members[0], -1
        for position, name in enumerate(members):
            score = self.package_score(name, position)
            if score > best_score or (score == best_score and name < best_name):
                best_name, best_score = name, score

        critical_at = min(
            range(len(hop_types)), key=lambda i: (BREAK_PRIORITY[hop_types[i]], i)
        )
        chain = [
            CycleEdge(
                from_package=name,
                to_package=members[(i + 1) % len(members)],
                type=hop_types[i],
                critical=i == critical_at,
            )
            for i, name in enumerate(members)
        ]
        critical = chain[critical_at]
        problematic = next(edge for edge in chain if edge.from_package == best_name)
        return RootCause(
            originating_package=best_name,
            problematic_dependency=problematic,
            confidence=best_score,
            explanation=explain(best_name, critical, best_score),
            chain=chain,
            critical_edge=critical,
        )


def explain(origin: str, critical: CycleEdge, confidence: int) -> str:
    if confidence >= 80:
        likelihood = "highly likely"
    elif confidence < 50:
        likelihood = "possibly"
    else:
        likelihood = "likely"
    return (
        f"Package '{origin}' is {likelihood} the root cause of this circular dependency. "
        f"The dependency from '{critical.from_package}' to '{critical.to_package}' "
        "creates the problematic relationship. "
        + _TYPE_ADVICE.get(critical.type, _DEFAULT_ADVICE)
    )


__all__ = ["BREAK_PRIORITY", "RootCauseAnalyzer", "explain"]
