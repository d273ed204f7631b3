from __future__ import annotations

import pytest
from pydantic import ValidationError

from monoguard.models.architecture import ArchitectureRule, ArchitectureRules, LayerDefinition
from monoguard.rules.layers import (
    CompiledLayer,
    classify_layer,
    compile_layers,
    is_forbidden,
    is_outside_allowlist,
    resolve_import_target,
)


def _layers(*definitions: LayerDefinition) -> list[CompiledLayer]:
    return compile_layers(list(definitions))


def test_classify_layer_first_match_wins() -> None:
    layers = _layers(
        LayerDefinition(name="special", pattern="packages/ui/src/special/**"),
        LayerDefinition(name="ui", pattern="packages/ui/**"),
    )

    special = classify_layer("packages/ui/src/special/a.ts", layers)
    ui = classify_layer("packages/ui/src/b.ts", layers)

    assert special is not None
    assert special.name == "special"
    assert ui is not None
    assert ui.name == "ui"


def test_classify_layer_matches_exact_directory_pattern() -> None:
    layers = _layers(LayerDefinition(name="legacy", pattern="packages/legacy"))

    layer = classify_layer("packages/legacy/src/index.ts", layers)

    assert layer is not None
    assert layer.name == "legacy"


def test_classify_layer_returns_none_when_unmatched() -> None:
    layers = _layers(LayerDefinition(name="ui", pattern="packages/ui/**"))

    assert classify_layer("tools/build.ts", layers) is None


def test_cannot_import_matches_layer_names() -> None:
    (ui,) = _layers(
        LayerDefinition(name="ui", pattern="packages/ui/**", cannot_import=["data*"])
    )

    assert is_forbidden(ui, "data-access")
    assert not is_forbidden(ui, "domain")


def test_allowlist_is_closed_world_except_same_layer() -> None:
    (app,) = _layers(
        LayerDefinition(name="app", pattern="apps/**", can_import=["domain"])
    )
    (open_layer,) = _layers(LayerDefinition(name="open", pattern="libs/**"))

    assert is_outside_allowlist(app, "infra")
    assert not is_outside_allowlist(app, "domain")
    assert not is_outside_allowlist(app, "app")
    assert not is_outside_allowlist(open_layer, "infra")


@pytest.mark.parametrize(
    ("file_path", "specifier", "expected"),
    [
        ("packages/ui/src/a.ts", "./b", "packages/ui/src/b"),
        ("packages/ui/src/a.ts", "../../data/src/x", "packages/data/src/x"),
        ("packages/ui/src/a.ts", "../../../../outside", None),
        ("packages/ui/src/a.ts", "@mono/data/models", "packages/data/models"),
        ("packages/ui/src/a.ts", "@mono/data", "packages/data"),
        ("packages/ui/src/a.ts", "react", None),
    ],
)
def test_resolve_import_target(file_path: str, specifier: str, expected: str | None) -> None:
    package_paths = {"@mono/ui": "packages/ui", "@mono/data": "packages/data"}

    assert resolve_import_target(file_path, specifier, package_paths) == expected


def test_duplicate_layer_names_rejected() -> None:
    with pytest.raises(ValidationError):
        ArchitectureRules(
            layers=[
                LayerDefinition(name="ui", pattern="a/**"),
                LayerDefinition(name="ui", pattern="b/**"),
            ]
        )


def test_unknown_rule_name_rejected() -> None:
    with pytest.raises(ValidationError):
        ArchitectureRule(name="no-such-rule")


def test_unknown_layer_key_rejected() -> None:
    with pytest.raises(ValidationError):
        ArchitectureRules.model_validate(
            {"layers": [{"name": "ui", "pattern": "a/**", "globs": ["a/**"]}]}
        )


def test_user_rule_overrides_default() -> None:
    rules = ArchitectureRules(
        rules=[ArchitectureRule(name="no-unclassified", enabled=True, severity="warning")]
    )

    effective = rules.effective_rules()

    assert effective["no-unclassified"].enabled
    assert effective["layer-boundary"].severity == "critical"
