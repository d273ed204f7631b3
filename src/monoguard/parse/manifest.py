"""package.json manifest parsing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

import orjson

from monoguard.contract.errors import ManifestParseError
from monoguard.models.conflicts import AnalysisWarning
from monoguard.models.graph import (
    MANIFEST_DEPENDENCY_FIELDS,
    DeclaredDependency,
    PackageNode,
)
from monoguard.utils import parent_dir

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"
SYNTHETIC_NAME_PREFIX = "unnamed:"


@dataclass
class ManifestParseResult:
    """Packages parsed from every manifest, keyed for workspace detection."""

    packages: list[PackageNode] = field(default_factory=list)
    raw: dict[str, dict[str, Any]] = field(default_factory=dict)
    warnings: list[AnalysisWarning] = field(default_factory=list)

    @property
    def root_manifest(self) -> dict[str, Any] | None:
        return self.raw.get(MANIFEST_FILENAME)


def is_manifest_path(path: str) -> bool:
    parts = PurePosixPath(path).parts
    return bool(parts) and parts[-1] == MANIFEST_FILENAME and "node_modules" not in parts


def synthetic_name(directory: str) -> str:
    """Name assigned to a manifest without a ``name`` field."""
    return f"{SYNTHETIC_NAME_PREFIX}{directory or '.'}"


def _load_manifest(path: str, content: str) -> dict[str, Any]:
    if not content.strip():
        msg = "empty manifest"
        raise ValueError(msg)
    data = orjson.loads(content)
    if not isinstance(data, dict):
        msg = f"manifest root must be a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def _read_dependency_map(
    path: str,
    data: dict[str, Any],
    field_name: str,
    warnings: list[AnalysisWarning],
) -> list[tuple[str, str]]:
    value = data.get(field_name)
    if value is None:
        return []
    if not isinstance(value, dict):
        warnings.append(
            AnalysisWarning(
                code="INVALID_DEPENDENCY_FIELD",
                message=f"'{field_name}' must be an object; ignored",
                path=path,
            )
        )
        return []

    entries: list[tuple[str, str]] = []
    for name, version_range in value.items():
        if not isinstance(version_range, str) or not name:
            warnings.append(
                AnalysisWarning(
                    code="INVALID_DEPENDENCY_ENTRY",
                    message=f"'{field_name}.{name}' must map a name to a range string",
                    path=path,
                    package_name=name or None,
                )
            )
            continue
        entries.append((name, version_range))
    return entries


def parse_manifest(
    path: str, content: str
) -> tuple[PackageNode, dict[str, Any], list[AnalysisWarning]]:
    """Parse one manifest into a PackageNode.

    Raises:
        ValueError: If the content is not a JSON object (orjson.JSONDecodeError
            is a ValueError subclass).
    """
    data = _load_manifest(path, content)
    warnings: list[AnalysisWarning] = []
    directory = parent_dir(path)

    name = data.get("name")
    is_synthetic = not isinstance(name, str) or not name.strip()
    if is_synthetic:
        name = synthetic_name(directory)
        warnings.append(
            AnalysisWarning(
                code="MISSING_PACKAGE_NAME",
                message=f"Manifest has no name; using synthetic name '{name}'",
                path=path,
                package_name=name,
            )
        )

    version = data.get("version", "")
    if not isinstance(version, str):
        warnings.append(
            AnalysisWarning(
                code="INVALID_VERSION",
                message="'version' must be a string; ignored",
                path=path,
                package_name=name,
            )
        )
        version = ""

    declared: list[DeclaredDependency] = []
    names_by_field: dict[str, list[str]] = {}
    for field_name, dep_type in MANIFEST_DEPENDENCY_FIELDS.items():
        entries = _read_dependency_map(path, data, field_name, warnings)
        names_by_field[field_name] = [dep_name for dep_name, _ in entries]
        declared.extend(
            DeclaredDependency(name=dep_name, version_range=dep_range, type=dep_type)
            for dep_name, dep_range in entries
        )

    node = PackageNode(
        name=name,
        version=version,
        path=directory,
        dependencies=names_by_field["dependencies"],
        dev_dependencies=names_by_field["devDependencies"],
        peer_dependencies=names_by_field["peerDependencies"],
        optional_dependencies=names_by_field["optionalDependencies"],
        declared=declared,
        private=data.get("private") is True,
        synthetic_name=is_synthetic,
    )
    return node, data, warnings


def parse_manifests(files: Mapping[str, str]) -> ManifestParseResult:
    """Parse every package.json in the file mapping.

    All failures are collected before raising so the caller sees every
    offending path at once.

    Raises:
        ManifestParseError: If any manifest is malformed.
    """
    result = ManifestParseResult()
    failures: dict[str, str] = {}

    for path in sorted(files):
        if not is_manifest_path(path):
            continue
        try:
            node, data, warnings = parse_manifest(path, files[path])
        except ValueError as exc:
            failures[path] = str(exc)
            continue
        result.packages.append(node)
        result.raw[path] = data
        result.warnings.extend(warnings)

    if failures:
        raise ManifestParseError(failures)

    logger.debug("parsed %d manifest(s)", len(result.packages))
    return result


__all__ = [
    "MANIFEST_FILENAME",
    "SYNTHETIC_NAME_PREFIX",
    "ManifestParseResult",
    "is_manifest_path",
    "parse_manifest",
    "parse_manifests",
    "synthetic_name",
]
