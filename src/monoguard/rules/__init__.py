"""Configuration and architecture rules for monoguard."""

from monoguard.rules.config import (
    AnalysisConfig,
    ConfigError,
    Thresholds,
    load_config,
)
from monoguard.rules.layers import classify_layer, compile_layers
from monoguard.rules.patterns import PatternError, PatternSet, compile_pattern
from monoguard.rules.validator import validate_architecture

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "PatternError",
    "PatternSet",
    "Thresholds",
    "classify_layer",
    "compile_layers",
    "compile_pattern",
    "load_config",
    "validate_architecture",
]
