"""Layered-architecture rule and validation models."""

from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from monoguard.models.base import ContractModel
from monoguard.models.circular import Severity

# Rule names understood by the validator.
RULE_LAYER_BOUNDARY = "layer-boundary"
RULE_LAYER_ALLOWLIST = "layer-allowlist"
RULE_NO_UNCLASSIFIED = "no-unclassified"
KNOWN_RULES = frozenset({RULE_LAYER_BOUNDARY, RULE_LAYER_ALLOWLIST, RULE_NO_UNCLASSIFIED})


class _RulesModel(ContractModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class LayerDefinition(_RulesModel):
    """A named layer; ``pattern`` is an exact path, glob or ``regex:`` expression."""

    name: str = Field(min_length=1)
    pattern: str = Field(min_length=1)
    can_import: list[str] = Field(default_factory=list)
    cannot_import: list[str] = Field(default_factory=list)
    description: str = ""


class ArchitectureRule(_RulesModel):
    name: str
    severity: Severity = "warning"
    enabled: bool = True
    description: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if v not in KNOWN_RULES:
            msg = (
                f"Unknown architecture rule '{v}'. "
                f"Valid rules: {', '.join(sorted(KNOWN_RULES))}"
            )
            raise ValueError(msg)
        return v


DEFAULT_RULES: tuple[ArchitectureRule, ...] = (
    ArchitectureRule(
        name=RULE_LAYER_BOUNDARY,
        severity="critical",
        description="A layer imports a layer listed in its cannotImport",
    ),
    ArchitectureRule(
        name=RULE_LAYER_ALLOWLIST,
        severity="warning",
        description="A layer imports a layer missing from its non-empty canImport",
    ),
    ArchitectureRule(
        name=RULE_NO_UNCLASSIFIED,
        severity="info",
        enabled=False,
        description="A source file matches no layer pattern",
    ),
)


class ArchitectureRules(_RulesModel):
    """User-supplied layer definitions plus rule toggles (first match wins)."""

    layers: list[LayerDefinition] = Field(default_factory=list)
    rules: list[ArchitectureRule] = Field(default_factory=list)

    @field_validator("layers")
    @classmethod
    def validate_unique_layers(cls, v: list[LayerDefinition]) -> list[LayerDefinition]:
        seen: set[str] = set()
        for layer in v:
            if layer.name in seen:
                msg = f"Duplicate layer name '{layer.name}'"
                raise ValueError(msg)
            seen.add(layer.name)
        return v

    def effective_rules(self) -> dict[str, ArchitectureRule]:
        """Default rules overridden by any user-supplied rule of the same name."""
        merged = {rule.name: rule for rule in DEFAULT_RULES}
        for rule in self.rules:
            merged[rule.name] = rule
        return merged


class ArchitectureViolation(ContractModel):
    violating_file: str
    violating_import: str
    expected_layer: str
    actual_layer: str
    severity: Severity
    suggestion: str
    source_layer: str | None = None
    rule: str = RULE_LAYER_BOUNDARY
    line: int | None = None


class LayerCompliance(ContractModel):
    layer: str
    total_files: int = 0
    compliant_files: int = 0
    violating_files: int = 0
    compliance_percentage: float = Field(default=100.0, ge=0.0, le=100.0)


class ArchitectureSummary(ContractModel):
    total_files: int = 0
    classified_files: int = 0
    unclassified_files: int = 0
    total_violations: int = 0
    by_severity: dict[str, int] = Field(default_factory=dict)


class ArchitectureValidationResults(ContractModel):
    violations: list[ArchitectureViolation] = Field(default_factory=list)
    layer_compliance: list[LayerCompliance] = Field(default_factory=list)
    overall_compliance: float = Field(default=100.0, ge=0.0, le=100.0)
    summary: ArchitectureSummary = Field(default_factory=ArchitectureSummary)


__all__ = [
    "DEFAULT_RULES",
    "KNOWN_RULES",
    "RULE_LAYER_ALLOWLIST",
    "RULE_LAYER_BOUNDARY",
    "RULE_NO_UNCLASSIFIED",
    "ArchitectureRule",
    "ArchitectureRules",
    "ArchitectureSummary",
    "ArchitectureValidationResults",
    "ArchitectureViolation",
    "LayerCompliance",
    "LayerDefinition",
]
