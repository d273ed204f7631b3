"""Graph algorithms over an index-based adjacency representation."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

MAX_CYCLES_PER_SCC = 50
MAX_SEARCH_STEPS = 250_000
CHECKPOINT_INTERVAL = 1024


class IndexedGraph:
    """Nodes sorted by name and mapped to integer indices.

    ``successors[i]`` holds the sorted successor indices of node ``i``.
    """

    def __init__(self, adjacency: Mapping[str, Iterable[str]]) -> None:
        names: set[str] = set(adjacency)
        for targets in adjacency.values():
            names.update(targets)
        self.names: list[str] = sorted(names)
        self.index: dict[str, int] = {name: i for i, name in enumerate(self.names)}
        self.successors: list[list[int]] = [
            sorted({self.index[target] for target in adjacency.get(name, ())})
            for name in self.names
        ]

    def __len__(self) -> int:
        return len(self.names)

    def has_edge(self, source: int, target: int) -> bool:
        return target in self.successors[source]


class _TarjanState:
    """Mutable state container for Tarjan's SCC algorithm."""

    def __init__(self, size: int) -> None:
        self.index = 0
        self.indices: list[int] = [-1] * size
        self.low_link: list[int] = [0] * size
        self.on_stack: list[bool] = [False] * size
        self.stack: list[int] = []
        self.sccs: list[list[int]] = []


def _extract_scc(state: _TarjanState, root: int) -> list[int]:
    """Extract a strongly connected component from the stack."""
    scc: list[int] = []
    while state.stack:
        w = state.stack.pop()
        state.on_stack[w] = False
        scc.append(w)
        if w == root:
            break
    if root not in scc:
        msg = (
            f"Tarjan algorithm invariant violated: root node {root!r} "
            "not found in stack during SCC extraction."
        )
        raise RuntimeError(msg)
    return sorted(scc)


def _visit(state: _TarjanState, node: int) -> None:
    state.indices[node] = state.index
    state.low_link[node] = state.index
    state.index += 1
    state.stack.append(node)
    state.on_stack[node] = True


def _strongconnect(start: int, graph: IndexedGraph, state: _TarjanState) -> None:
    """Process a node in Tarjan's algorithm without recursion."""
    _visit(state, start)
    work: list[tuple[int, int]] = [(start, 0)]

    while work:
        node, position = work[-1]
        successors = graph.successors[node]

        if position < len(successors):
            work[-1] = (node, position + 1)
            neighbor = successors[position]
            if state.indices[neighbor] == -1:
                _visit(state, neighbor)
                work.append((neighbor, 0))
            elif state.on_stack[neighbor]:
                state.low_link[node] = min(state.low_link[node], state.indices[neighbor])
            continue

        work.pop()
        if work:
            parent = work[-1][0]
            state.low_link[parent] = min(state.low_link[parent], state.low_link[node])

        if state.low_link[node] == state.indices[node]:
            scc = _extract_scc(state, node)
            if len(scc) > 1 or graph.has_edge(node, node):
                state.sccs.append(scc)


def strongly_connected_components(graph: IndexedGraph) -> list[list[int]]:
    """Find cyclic SCCs (size >= 2 or self-looped) using Tarjan's algorithm.

    Returns:
        Components as sorted index lists, ordered by their smallest index.
    """
    state = _TarjanState(len(graph))

    for node in range(len(graph)):
        if state.indices[node] == -1:
            _strongconnect(node, graph, state)

    return sorted(state.sccs)


@dataclass
class CycleEnumeration:
    cycles: list[list[int]] = field(default_factory=list)
    truncated: bool = False


def _unblock(node: int, blocked: set[int], blocked_map: dict[int, set[int]]) -> None:
    pending = {node}
    while pending:
        current = pending.pop()
        if current in blocked:
            blocked.discard(current)
            pending.update(blocked_map.pop(current, set()))


def enumerate_cycles(
    graph: IndexedGraph,
    component: Sequence[int],
    *,
    max_cycles: int = MAX_CYCLES_PER_SCC,
    max_steps: int = MAX_SEARCH_STEPS,
    checkpoint: Callable[[], None] | None = None,
) -> CycleEnumeration:
    """Enumerate elementary cycles inside one SCC (Johnson's algorithm).

    Each cycle is returned open (no repeated closing node) and starts at its
    smallest index, so cycles come out in canonical rotation. Enumeration
    stops once ``max_cycles`` cycles are found and another exists, or after
    ``max_steps`` search steps; either sets ``truncated``.

    Args:
        graph: The indexed graph.
        component: Node indices of one strongly connected component.
        max_cycles: Maximum number of cycles kept for this component.
        max_steps: Hard bound on search iterations for this component.
        checkpoint: Called periodically; may raise to abort the search.
    """
    result = CycleEnumeration()
    members = set(component)
    steps = 0

    for start in sorted(members):

        def neighbors(node: int, start: int = start) -> list[int]:
            return [w for w in graph.successors[node] if w in members and w >= start]

        blocked: set[int] = {start}
        blocked_map: dict[int, set[int]] = defaultdict(set)
        path: list[int] = [start]
        stack = [(start, iter(neighbors(start)))]
        closed: list[bool] = [False]

        while stack:
            steps += 1
            if steps > max_steps:
                result.truncated = True
                return result
            if checkpoint is not None and steps % CHECKPOINT_INTERVAL == 0:
                checkpoint()

            node, successors = stack[-1]
            nxt = next(successors, None)

            if nxt is not None:
                if nxt == start:
                    if len(result.cycles) >= max_cycles:
                        result.truncated = True
                        return result
                    result.cycles.append(list(path))
                    closed[-1] = True
                elif nxt not in blocked:
                    path.append(nxt)
                    stack.append((nxt, iter(neighbors(nxt))))
                    closed.append(False)
                    blocked.add(nxt)
                continue

            if closed[-1]:
                _unblock(node, blocked, blocked_map)
            else:
                for w in neighbors(node):
                    blocked_map[w].add(node)
            stack.pop()
            path.pop()
            found = closed.pop()
            if closed and found:
                closed[-1] = True

    return result


def reachable(
    graph: IndexedGraph,
    source: int,
    target: int,
    *,
    skip_edge: tuple[int, int] | None = None,
) -> bool:
    """Whether ``target`` is reachable from ``source``, optionally ignoring one edge."""
    seen = {source}
    pending = [source]
    while pending:
        node = pending.pop()
        for neighbor in graph.successors[node]:
            if skip_edge is not None and (node, neighbor) == skip_edge:
                continue
            if neighbor == target:
                return True
            if neighbor not in seen:
                seen.add(neighbor)
                pending.append(neighbor)
    return False


def longest_paths(graph: IndexedGraph) -> list[int]:
    """Longest outgoing path, in edges, from every node of the condensation.

    Members of one strongly connected component share a value and edges
    inside a component add no length. Leaves have depth 0.
    """
    component = list(range(len(graph)))
    for scc in strongly_connected_components(graph):
        for node in scc:
            component[node] = scc[0]

    members: dict[int, list[int]] = defaultdict(list)
    for node in range(len(graph)):
        members[component[node]].append(node)
    successors = {
        rep: sorted(
            {component[t] for n in nodes for t in graph.successors[n]} - {rep}
        )
        for rep, nodes in members.items()
    }

    depth: dict[int, int] = {}
    for rep in sorted(successors):
        pending: list[tuple[int, bool]] = [(rep, False)]
        while pending:
            node, expanded = pending.pop()
            if expanded:
                depth[node] = max((depth[s] + 1 for s in successors[node]), default=0)
                continue
            if node in depth:
                continue
            pending.append((node, True))
            pending.extend((s, False) for s in successors[node] if s not in depth)

    return [depth[component[node]] for node in range(len(graph))]


__all__ = [
    "CHECKPOINT_INTERVAL",
    "MAX_CYCLES_PER_SCC",
    "MAX_SEARCH_STEPS",
    "CycleEnumeration",
    "IndexedGraph",
    "enumerate_cycles",
    "longest_paths",
    "reachable",
    "strongly_connected_components",
]
