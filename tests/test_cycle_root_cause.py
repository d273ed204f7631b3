from __future__ import annotations

from monoguard.analysis.cycles import detect_cycles
from monoguard.analysis.root_cause import RootCauseAnalyzer
from monoguard.models.circular import ImportTrace
from monoguard.models.graph import DependencyEdge, DependencyGraph, PackageNode
from monoguard.parse.imports import ImportStatement


def _graph(edges: list[tuple[str, str, str]]) -> DependencyGraph:
    names = sorted({name for edge in edges for name in edge[:2]})
    return DependencyGraph(
        nodes={name: PackageNode(name=name, path=f"packages/{name}") for name in names},
        edges=[
            DependencyEdge(from_package=s, to_package=t, type=k, version_range="*")
            for s, t, k in edges
        ],
    )


def test_root_cause_prefers_first_high_level_member() -> None:
    graph = _graph([("api", "db", "production"), ("db", "api", "development")])

    (cycle,) = detect_cycles(graph).cycles

    root = cycle.root_cause
    assert root is not None
    assert root.originating_package == "api"
    assert root.confidence == 82
    assert root.problematic_dependency.to_package == "db"
    assert [(e.from_package, e.to_package, e.type) for e in root.chain] == [
        ("api", "db", "production"),
        ("db", "api", "development"),
    ]
    assert [e.critical for e in root.chain] == [False, True]
    assert root.critical_edge == root.chain[1]
    assert root.explanation.startswith(
        "Package 'api' is highly likely the root cause of this circular dependency."
    )
    assert "dev dependency" in root.explanation


def test_low_level_names_are_unlikely_origins() -> None:
    analyzer = RootCauseAnalyzer(
        _graph([("a-core", "web", "production"), ("web", "a-core", "production")])
    )

    root = analyzer.analyze(["a-core", "web"], ["production", "production"])

    assert root.originating_package == "web"
    assert root.confidence == 67
    assert root.critical_edge is not None
    assert root.critical_edge.from_package == "a-core"
    assert "likely the root cause" in root.explanation
    assert "extracting shared code" in root.explanation


def test_heavily_depended_on_member_scores_lower() -> None:
    graph = _graph(
        [
            ("a", "b", "production"),
            ("b", "a", "production"),
            ("c", "a", "production"),
            ("d", "a", "production"),
        ]
    )
    analyzer = RootCauseAnalyzer(graph)

    assert analyzer.package_score("a", 0) == 15 + 17 + 25 + 15
    assert analyzer.package_score("b", 1) == 25 + 17 + 25


def test_import_traces_follow_cycle_hops() -> None:
    graph = _graph([("a", "b", "production"), ("b", "a", "production")])
    imports = {
        "packages/a/src/index.ts": [
            ImportStatement(2, "b", "esm-named"),
            ImportStatement(3, "react", "esm-named"),
        ],
        "packages/b/src/self.ts": [ImportStatement(1, "b", "esm-named")],
        "packages/b/src/x.ts": [ImportStatement(1, "a/utils", "cjs-require")],
        "tools/script.ts": [ImportStatement(1, "a", "esm-default")],
    }

    (cycle,) = detect_cycles(graph, imports=imports).cycles

    assert cycle.import_traces == [
        ImportTrace(
            from_package="a",
            to_package="b",
            file="packages/a/src/index.ts",
            line=2,
            specifier="b",
        ),
        ImportTrace(
            from_package="b",
            to_package="a",
            file="packages/b/src/x.ts",
            line=1,
            specifier="a/utils",
        ),
    ]


def test_manifest_only_cycle_has_no_traces() -> None:
    graph = _graph([("a", "b", "production"), ("b", "a", "production")])

    (cycle,) = detect_cycles(graph).cycles

    assert cycle.import_traces == []


def test_enrichments_serialize_with_wire_aliases() -> None:
    graph = _graph([("a", "b", "production"), ("b", "a", "peer")])
    imports = {"packages/a/index.js": [ImportStatement(1, "b", "esm-default")]}

    (cycle,) = detect_cycles(graph, imports=imports).cycles
    payload = cycle.model_dump(by_alias=True)

    assert payload["rootCause"]["originatingPackage"] == "a"
    assert payload["rootCause"]["criticalEdge"] == {
        "from": "b",
        "to": "a",
        "type": "peer",
        "critical": True,
    }
    assert payload["importTraces"] == [
        {"from": "a", "to": "b", "file": "packages/a/index.js", "line": 1, "specifier": "b"}
    ]
