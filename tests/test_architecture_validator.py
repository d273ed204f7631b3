from __future__ import annotations

from monoguard.models.architecture import ArchitectureRule, ArchitectureRules, LayerDefinition
from monoguard.models.graph import PackageNode
from monoguard.parse.imports import ImportStatement
from monoguard.rules.validator import compliance_percentage, validate_architecture

_PACKAGES = [
    PackageNode(name="@mono/ui", path="packages/ui"),
    PackageNode(name="@mono/data", path="packages/data"),
    PackageNode(name="@mono/domain", path="packages/domain"),
]

_RULES = ArchitectureRules(
    layers=[
        LayerDefinition(name="ui", pattern="packages/ui/**", cannot_import=["data"]),
        LayerDefinition(name="data", pattern="packages/data/**"),
        LayerDefinition(name="domain", pattern="packages/domain/**"),
    ]
)


def _imports(*specifiers: str) -> list[ImportStatement]:
    return [
        ImportStatement(line, specifier, "esm-named")
        for line, specifier in enumerate(specifiers, start=1)
    ]


def test_forbidden_layer_import_is_one_violation() -> None:
    imports = {
        "packages/ui/src/app.tsx": _imports("react", "@mono/data"),
        "packages/data/src/db.ts": [],
    }

    results = validate_architecture(_RULES, imports, _PACKAGES)

    (violation,) = results.violations
    assert violation.violating_file == "packages/ui/src/app.tsx"
    assert violation.violating_import == "@mono/data"
    assert violation.source_layer == "ui"
    assert violation.actual_layer == "data"
    assert violation.severity == "critical"
    assert violation.rule == "layer-boundary"
    assert violation.line == 2


def test_compliance_per_layer_and_overall() -> None:
    imports = {
        "packages/ui/src/app.tsx": _imports("../../data/src/db"),
        "packages/ui/src/button.tsx": _imports("./theme"),
        "packages/data/src/db.ts": _imports("@mono/domain"),
    }

    results = validate_architecture(_RULES, imports, _PACKAGES)

    by_layer = {entry.layer: entry for entry in results.layer_compliance}
    assert by_layer["ui"].total_files == 2
    assert by_layer["ui"].violating_files == 1
    assert by_layer["ui"].compliance_percentage == 50.0
    assert by_layer["data"].compliance_percentage == 100.0
    assert by_layer["domain"].total_files == 0
    assert by_layer["domain"].compliance_percentage == 100.0
    assert results.overall_compliance == 66.7
    assert results.summary.total_violations == 1
    assert results.summary.by_severity == {"critical": 1}


def test_no_files_is_vacuously_compliant() -> None:
    results = validate_architecture(_RULES, {}, _PACKAGES)

    assert results.violations == []
    assert results.overall_compliance == 100.0
    assert all(entry.compliance_percentage == 100.0 for entry in results.layer_compliance)


def test_layer_rules_apply_inside_a_single_package() -> None:
    rules = ArchitectureRules(
        layers=[
            LayerDefinition(name="ui", pattern="src/ui/**", cannot_import=["data"]),
            LayerDefinition(name="data", pattern="src/data/**"),
        ]
    )
    imports = {
        "src/ui/page.ts": _imports("../data/repo"),
        "src/data/repo.ts": [],
    }

    results = validate_architecture(rules, imports, [PackageNode(name="app", path="")])

    (violation,) = results.violations
    assert violation.violating_file == "src/ui/page.ts"
    assert violation.violating_import == "../data/repo"
    assert violation.actual_layer == "data"
    by_layer = {entry.layer: entry for entry in results.layer_compliance}
    assert by_layer["ui"].violating_files == 1
    assert by_layer["data"].violating_files == 0


def test_nested_layers_within_one_package_are_enforced() -> None:
    rules = ArchitectureRules(
        layers=[
            LayerDefinition(name="views", pattern="packages/ui/src/views/**", cannot_import=["ui"]),
            LayerDefinition(name="ui", pattern="packages/ui/**"),
        ]
    )
    imports = {"packages/ui/src/views/home.tsx": _imports("./card", "../theme")}

    (violation,) = validate_architecture(rules, imports, _PACKAGES).violations

    assert violation.violating_import == "../theme"
    assert violation.source_layer == "views"
    assert violation.actual_layer == "ui"


def test_allowlist_violation_is_a_warning() -> None:
    rules = ArchitectureRules(
        layers=[
            LayerDefinition(name="ui", pattern="packages/ui/**", can_import=["domain"]),
            LayerDefinition(name="data", pattern="packages/data/**"),
            LayerDefinition(name="domain", pattern="packages/domain/**"),
        ]
    )
    imports = {"packages/ui/src/app.tsx": _imports("@mono/domain", "@mono/data")}

    (violation,) = validate_architecture(rules, imports, _PACKAGES).violations

    assert violation.rule == "layer-allowlist"
    assert violation.severity == "warning"
    assert violation.violating_import == "@mono/data"
    assert violation.expected_layer == "domain"


def test_disabled_boundary_rule_reports_nothing() -> None:
    rules = _RULES.model_copy(
        update={"rules": [ArchitectureRule(name="layer-boundary", enabled=False)]}
    )
    imports = {"packages/ui/src/app.tsx": _imports("@mono/data")}

    assert validate_architecture(rules, imports, _PACKAGES).violations == []


def test_unclassified_files_reported_when_enabled() -> None:
    rules = _RULES.model_copy(
        update={"rules": [ArchitectureRule(name="no-unclassified", enabled=True)]}
    )
    imports = {"tools/build.ts": [], "packages/ui/src/app.tsx": []}

    results = validate_architecture(rules, imports, _PACKAGES)

    (violation,) = results.violations
    assert violation.violating_file == "tools/build.ts"
    assert violation.actual_layer == "unclassified"
    assert results.summary.unclassified_files == 1
    assert results.summary.classified_files == 1


def test_compliance_percentage_bounds() -> None:
    assert compliance_percentage(0, 0) == 100.0
    assert compliance_percentage(0, 4) == 0.0
    assert compliance_percentage(1, 3) == 33.3
    assert compliance_percentage(3, 3) == 100.0
