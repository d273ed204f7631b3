"""Engine input model."""

from __future__ import annotations

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from monoguard.models.base import ContractModel
from monoguard.rules.config import AnalysisConfig


class WorkspaceInput(ContractModel):
    """A workspace snapshot: relative path -> file content, plus options."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    files: dict[str, str] = Field(default_factory=dict)
    config: AnalysisConfig = Field(default_factory=AnalysisConfig)
    root_path: str = ""


__all__ = ["WorkspaceInput"]
