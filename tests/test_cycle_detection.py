from __future__ import annotations

from monoguard.analysis.cycles import (
    classify_severity,
    complexity_score,
    describe_impact,
    detect_cycles,
)
from monoguard.models.graph import (
    DeclaredDependency,
    DependencyEdge,
    DependencyGraph,
    PackageNode,
)


def _graph(
    edges: list[tuple[str, str, str]],
    *,
    extra_deps: dict[str, list[str]] | None = None,
) -> DependencyGraph:
    extra_deps = extra_deps or {}
    names = sorted({name for edge in edges for name in edge[:2]} | set(extra_deps))
    nodes = {}
    for name in names:
        declared = [
            DeclaredDependency(name=target, version_range="*", type=kind)
            for source, target, kind in edges
            if source == name
        ]
        declared.extend(
            DeclaredDependency(name=dep, version_range="^1.0.0", type="production")
            for dep in extra_deps.get(name, [])
        )
        nodes[name] = PackageNode(name=name, path=f"packages/{name}", declared=declared)
    return DependencyGraph(
        nodes=nodes,
        edges=[
            DependencyEdge(from_package=s, to_package=t, type=k, version_range="*")
            for s, t, k in sorted(edges)
        ],
    )


def test_three_package_production_cycle_is_one_critical_indirect_cycle() -> None:
    graph = _graph(
        [("A", "B", "production"), ("B", "C", "production"), ("C", "A", "production")]
    )

    detection = detect_cycles(graph)

    assert len(detection.cycles) == 1
    cycle = detection.cycles[0]
    assert cycle.cycle == ["A", "B", "C", "A"]
    assert cycle.type == "indirect"
    assert cycle.severity == "critical"
    assert cycle.edge_types == ["production", "production", "production"]
    assert not detection.truncated


def test_every_reported_cycle_is_closed_over_existing_edges() -> None:
    graph = _graph(
        [
            ("a", "b", "production"),
            ("b", "a", "development"),
            ("b", "c", "peer"),
            ("c", "a", "production"),
            ("c", "d", "production"),
        ]
    )
    edges = {(e.from_package, e.to_package) for e in graph.edges}

    detection = detect_cycles(graph)

    assert detection.cycles
    for info in detection.cycles:
        assert info.cycle[0] == info.cycle[-1]
        assert len(set(info.members)) == len(info.members)
        for source, target in zip(info.cycle, info.cycle[1:]):
            assert (source, target) in edges


def test_acyclic_graph_has_no_cycles() -> None:
    graph = _graph([("a", "b", "production"), ("b", "c", "production")])

    assert detect_cycles(graph).cycles == []


def test_direct_cycle_description_and_type() -> None:
    graph = _graph([("api", "db", "production"), ("db", "api", "development")])

    (cycle,) = detect_cycles(graph).cycles

    assert cycle.type == "direct"
    assert cycle.severity == "warning"
    assert cycle.impact == "Direct circular dependency between api and db"


def test_development_only_cycle_is_info() -> None:
    assert classify_severity(["development", "optional"]) == "info"
    assert classify_severity(["production", "peer"]) == "warning"
    assert classify_severity(["production", "production"]) == "critical"


def test_results_sorted_by_severity_then_length() -> None:
    graph = _graph(
        [
            ("a", "b", "development"),
            ("b", "a", "development"),
            ("x", "y", "production"),
            ("y", "z", "production"),
            ("z", "x", "production"),
            ("p", "q", "production"),
            ("q", "p", "production"),
        ]
    )

    cycles = [info.cycle for info in detect_cycles(graph).cycles]

    assert cycles == [["p", "q", "p"], ["x", "y", "z", "x"], ["a", "b", "a"]]


def test_shared_dependency_suggests_extract_module() -> None:
    graph = _graph(
        [("@mono/a", "@mono/b", "production"), ("@mono/b", "@mono/a", "production")],
        extra_deps={"@mono/a": ["zod"], "@mono/b": ["zod"]},
    )

    (cycle,) = detect_cycles(graph).cycles
    fix = cycle.fix_strategy

    assert fix is not None
    assert fix.type == "extract_module"
    assert fix.shared_dependencies == ["zod"]
    assert fix.suggested_package_name == "@mono/shared"


def test_unique_weakest_hop_suggests_dependency_injection() -> None:
    graph = _graph([("api", "db", "production"), ("db", "api", "development")])

    (cycle,) = detect_cycles(graph).cycles
    fix = cycle.fix_strategy

    assert fix is not None
    assert fix.type == "dependency_injection"
    assert fix.invert_edge == ["db", "api"]
    assert fix.target_packages == ["db", "api"]
    assert fix.effort == "low"


def test_equally_typed_hops_fall_back_to_boundary_refactor() -> None:
    graph = _graph([("a", "b", "production"), ("b", "a", "production")])

    (cycle,) = detect_cycles(graph).cycles
    fix = cycle.fix_strategy

    assert fix is not None
    assert fix.type == "boundary_refactor"
    assert fix.invert_edge is None


def test_weak_hop_with_alternate_path_is_not_invertible() -> None:
    graph = _graph(
        [
            ("a", "b", "production"),
            ("b", "c", "production"),
            ("c", "a", "development"),
            ("c", "d", "production"),
            ("d", "a", "production"),
        ]
    )

    fixes = {tuple(info.members): info.fix_strategy for info in detect_cycles(graph).cycles}

    fix = fixes[("a", "b", "c")]
    assert fix is not None
    assert fix.type == "boundary_refactor"


def test_hop_shared_by_other_cycles_is_not_invertible() -> None:
    graph = _graph(
        [
            ("a", "b", "production"),
            ("b", "a", "production"),
            ("b", "c", "production"),
            ("c", "b", "production"),
        ]
    )

    fixes = {tuple(info.members): info.fix_strategy for info in detect_cycles(graph).cycles}

    assert set(fixes) == {("a", "b"), ("b", "c")}
    assert all(fix is not None for fix in fixes.values())


def test_truncated_component_is_reported() -> None:
    names = [f"p{i}" for i in range(7)]
    edges = [(n, m, "production") for n in names for m in names if n != m]

    detection = detect_cycles(_graph(edges), max_cycles_per_scc=5)

    assert detection.truncated
    assert detection.truncated_components == [names]
    assert len(detection.cycles) == 5


def test_complexity_score_is_bounded() -> None:
    assert complexity_score(2, 0) == 2
    assert complexity_score(3, 4) == 5
    assert complexity_score(9, 40) == 10


def test_describe_impact_for_indirect_cycle() -> None:
    text = describe_impact(["a", "b", "c"], "critical")

    assert text.startswith("Indirect circular dependency involving 3 packages: a -> b -> c -> a")
    assert "cannot be built or released independently" in text
