"""Architecture rule validation over file-level imports.

Each source file moves through ``unclassified -> layer-assigned`` and then
``compliant`` or ``violating`` once all of its imports are checked.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import TYPE_CHECKING

from monoguard.models.architecture import (
    RULE_LAYER_ALLOWLIST,
    RULE_LAYER_BOUNDARY,
    RULE_NO_UNCLASSIFIED,
    ArchitectureSummary,
    ArchitectureValidationResults,
    ArchitectureViolation,
    LayerCompliance,
)
from monoguard.rules.layers import (
    classify_layer,
    compile_layers,
    is_forbidden,
    is_outside_allowlist,
    resolve_import_target,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from monoguard.models.architecture import ArchitectureRule, ArchitectureRules
    from monoguard.models.graph import PackageNode
    from monoguard.parse.imports import ImportStatement
    from monoguard.rules.layers import CompiledLayer

logger = logging.getLogger(__name__)

UNCLASSIFIED = "unclassified"


def compliance_percentage(compliant: int, total: int) -> float:
    """Percentage rounded to one decimal; an empty set is vacuously 100."""
    if total == 0:
        return 100.0
    return round(compliant / total * 100, 1)


def _boundary_violation(
    path: str,
    statement: ImportStatement,
    source: CompiledLayer,
    target_layer: str,
    rule: ArchitectureRule,
) -> ArchitectureViolation:
    allowed = source.definition.can_import
    expected = (
        ", ".join(allowed)
        if allowed
        else f"any layer except {', '.join(source.definition.cannot_import)}"
    )
    return ArchitectureViolation(
        violating_file=path,
        violating_import=statement.specifier,
        expected_layer=expected,
        actual_layer=target_layer,
        severity=rule.severity,
        suggestion=(
            f"Layer '{source.name}' must not import '{target_layer}'; move the shared "
            "code into a layer both may depend on or invert the dependency"
        ),
        source_layer=source.name,
        rule=rule.name,
        line=statement.line,
    )


def _allowlist_violation(
    path: str,
    statement: ImportStatement,
    source: CompiledLayer,
    target_layer: str,
    rule: ArchitectureRule,
) -> ArchitectureViolation:
    allowed = ", ".join(source.definition.can_import)
    return ArchitectureViolation(
        violating_file=path,
        violating_import=statement.specifier,
        expected_layer=allowed,
        actual_layer=target_layer,
        severity=rule.severity,
        suggestion=(
            f"Layer '{source.name}' may only import {allowed}; route this "
            "dependency through an allowed layer"
        ),
        source_layer=source.name,
        rule=rule.name,
        line=statement.line,
    )


def validate_architecture(
    rules: ArchitectureRules,
    imports: Mapping[str, Sequence[ImportStatement]],
    packages: Sequence[PackageNode],
) -> ArchitectureValidationResults:
    """Validate every source file's imports against the layer rules.

    Args:
        rules: Layer definitions and rule toggles.
        imports: Import statements keyed by source file path. Every key is
            counted as a file, including files without imports.
        packages: Workspace packages, used to resolve bare specifiers into
            package directories.
    """
    layers = compile_layers(rules.layers)
    effective = rules.effective_rules()
    boundary = effective[RULE_LAYER_BOUNDARY]
    allowlist = effective[RULE_LAYER_ALLOWLIST]
    unclassified_rule = effective[RULE_NO_UNCLASSIFIED]
    package_paths = {package.name: package.path for package in packages}

    violations: list[ArchitectureViolation] = []
    files_by_layer: dict[str, list[str]] = defaultdict(list)
    violating_files: set[str] = set()
    unclassified = 0

    for path in sorted(imports):
        layer = classify_layer(path, layers)
        if layer is None:
            unclassified += 1
            if unclassified_rule.enabled:
                violations.append(
                    ArchitectureViolation(
                        violating_file=path,
                        violating_import="",
                        expected_layer=", ".join(item.name for item in layers),
                        actual_layer=UNCLASSIFIED,
                        severity=unclassified_rule.severity,
                        suggestion="Add a layer pattern covering this file",
                        rule=unclassified_rule.name,
                    )
                )
            continue

        files_by_layer[layer.name].append(path)

        for statement in imports[path]:
            target_path = resolve_import_target(path, statement.specifier, package_paths)
            if target_path is None:
                continue
            target = classify_layer(target_path, layers)
            if target is None:
                continue

            if boundary.enabled and is_forbidden(layer, target.name):
                violations.append(
                    _boundary_violation(path, statement, layer, target.name, boundary)
                )
                violating_files.add(path)
            elif allowlist.enabled and is_outside_allowlist(layer, target.name):
                violations.append(
                    _allowlist_violation(path, statement, layer, target.name, allowlist)
                )
                violating_files.add(path)

    compliance: list[LayerCompliance] = []
    total_classified = 0
    total_compliant = 0
    for layer in layers:
        files = files_by_layer.get(layer.name, [])
        violating = sum(1 for path in files if path in violating_files)
        compliant = len(files) - violating
        total_classified += len(files)
        total_compliant += compliant
        compliance.append(
            LayerCompliance(
                layer=layer.name,
                total_files=len(files),
                compliant_files=compliant,
                violating_files=violating,
                compliance_percentage=compliance_percentage(compliant, len(files)),
            )
        )

    violations.sort(
        key=lambda v: (v.violating_file, v.line or 0, v.violating_import, v.rule)
    )
    by_severity = Counter(violation.severity for violation in violations)
    logger.debug(
        "architecture: %d file(s), %d violation(s)", len(imports), len(violations)
    )
    return ArchitectureValidationResults(
        violations=violations,
        layer_compliance=compliance,
        overall_compliance=compliance_percentage(total_compliant, total_classified),
        summary=ArchitectureSummary(
            total_files=len(imports),
            classified_files=total_classified,
            unclassified_files=unclassified,
            total_violations=len(violations),
            by_severity=dict(sorted(by_severity.items())),
        ),
    )


__all__ = ["UNCLASSIFIED", "compliance_percentage", "validate_architecture"]
