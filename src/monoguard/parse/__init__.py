"""Parsing utilities for monoguard."""

from monoguard.parse.imports import (
    ImportStatement,
    extract_all_imports,
    extract_imports,
    is_source_path,
    package_name_of,
)
from monoguard.parse.manifest import (
    ManifestParseResult,
    is_manifest_path,
    parse_manifest,
    parse_manifests,
)
from monoguard.parse.workspace import WorkspaceDeclaration, detect_workspace

__all__ = [
    "ImportStatement",
    "ManifestParseResult",
    "WorkspaceDeclaration",
    "detect_workspace",
    "extract_all_imports",
    "extract_imports",
    "is_manifest_path",
    "is_source_path",
    "package_name_of",
    "parse_manifest",
    "parse_manifests",
]
