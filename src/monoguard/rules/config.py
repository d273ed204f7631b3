from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from monoguard.models.architecture import ArchitectureRules
from monoguard.models.base import ContractModel
from monoguard.rules.patterns import PatternError, compile_pattern

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "monoguard.toml"

FailOn = Literal["circular", "boundary", "conflict", "all"]


class _ConfigModel(ContractModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class Thresholds(_ConfigModel):
    """Minimum acceptable scores for ``check``."""

    health_score: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Fail check when the overall health score is below this value",
    )


class AnalysisConfig(_ConfigModel):
    """Per-run analysis configuration (``WorkspaceInput.config``)."""

    exclude: list[str] = Field(
        default_factory=list,
        description="Exact, glob or regex:-prefixed path patterns to drop before parsing",
    )
    architecture: ArchitectureRules | None = Field(
        default=None,
        description="Layer definitions and rule toggles (omit to skip validation)",
    )
    thresholds: Thresholds = Field(default_factory=Thresholds)
    fail_on: FailOn = Field(
        default="all",
        description="Finding kinds that fail check",
    )
    project_id: str | None = Field(
        default=None,
        description="Key for the persisted previous health score",
    )
    concurrent: bool = Field(
        default=True,
        description="Run cycle, conflict and architecture stages in parallel",
    )

    @field_validator("exclude")
    @classmethod
    def validate_exclude(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                compile_pattern(pattern)
            except PatternError as exc:
                raise ValueError(str(exc)) from exc
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> AnalysisConfig:
    """Load configuration from monoguard.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return AnalysisConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        config = AnalysisConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e

    logger.debug("loaded config from %s", config_path)
    return config


__all__ = [
    "CONFIG_FILENAME",
    "AnalysisConfig",
    "ConfigError",
    "FailOn",
    "Thresholds",
    "load_config",
]
