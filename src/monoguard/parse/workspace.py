"""Workspace declaration detection (npm, yarn, pnpm, nx, lerna)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import orjson
import yaml

from monoguard.contract.errors import ManifestParseError
from monoguard.models.conflicts import AnalysisWarning
from monoguard.rules.patterns import compile_pattern
from monoguard.utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Mapping

    from monoguard.models.graph import WorkspaceType
    from monoguard.rules.patterns import PathPattern

logger = logging.getLogger(__name__)

PNPM_WORKSPACE_FILE = "pnpm-workspace.yaml"
NX_FILES = ("nx.json", "workspace.json")
LERNA_FILE = "lerna.json"
LOCKFILES: dict[str, WorkspaceType] = {
    "pnpm-lock.yaml": "pnpm",
    "yarn.lock": "yarn",
    "package-lock.json": "npm",
}
PACKAGE_MANAGERS: tuple[WorkspaceType, ...] = ("npm", "yarn", "pnpm")


@dataclass(frozen=True)
class WorkspaceDeclaration:
    """Workspace type plus membership globs; ``!`` globs negate."""

    workspace_type: WorkspaceType = "unknown"
    globs: tuple[str, ...] = ()
    warnings: tuple[AnalysisWarning, ...] = field(default_factory=tuple)

    @property
    def include_patterns(self) -> tuple[PathPattern, ...]:
        return tuple(
            compile_pattern(_clean_glob(glob))
            for glob in self.globs
            if not glob.startswith("!")
        )

    @property
    def exclude_patterns(self) -> tuple[PathPattern, ...]:
        return tuple(
            compile_pattern(_clean_glob(glob[1:]))
            for glob in self.globs
            if glob.startswith("!")
        )

    @property
    def has_membership(self) -> bool:
        return bool(self.include_patterns)

    def includes(self, directory: str) -> bool:
        """Whether a package directory is a declared workspace member."""
        if not self.has_membership:
            return True
        if not any(pattern.matches(directory) for pattern in self.include_patterns):
            return False
        return not any(pattern.matches(directory) for pattern in self.exclude_patterns)


def _clean_glob(glob: str) -> str:
    cleaned = normalize_path(glob)
    if cleaned.endswith("/package.json"):
        cleaned = cleaned[: -len("/package.json")]
    return cleaned


def _string_list(value: Any) -> list[str] | None:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return None


def parse_pnpm_workspace(content: str) -> list[str]:
    """Return the ``packages`` globs of a pnpm-workspace.yaml document.

    Raises:
        ValueError: If the document is not valid YAML or has the wrong shape.
    """
    if not content.strip():
        return []
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = f"invalid YAML: {exc}"
        raise ValueError(msg) from exc
    if data is None:
        return []
    if not isinstance(data, dict):
        msg = "pnpm-workspace.yaml must be a mapping"
        raise ValueError(msg)
    packages = data.get("packages", [])
    globs = _string_list(packages or [])
    if globs is None:
        msg = "'packages' must be a list of strings"
        raise ValueError(msg)
    return globs


def extract_workspace_globs(manifest: Mapping[str, Any]) -> tuple[list[str], bool]:
    """Return ``(globs, has_nohoist)`` from a package.json ``workspaces`` field.

    Accepts the array form and the ``{packages, nohoist}`` object form.

    Raises:
        ValueError: If ``workspaces`` has neither supported shape.
    """
    value = manifest.get("workspaces")
    if value is None:
        return [], False

    globs = _string_list(value)
    if globs is not None:
        return globs, False

    if isinstance(value, dict):
        packages = _string_list(value.get("packages", []))
        if packages is not None:
            return packages, bool(value.get("nohoist"))

    msg = "workspaces field has unsupported format"
    raise ValueError(msg)


def _package_manager(manifest: Mapping[str, Any] | None) -> WorkspaceType | None:
    if manifest is None:
        return None
    value = manifest.get("packageManager")
    if not isinstance(value, str):
        return None
    name = value.split("@", 1)[0].strip()
    for manager in PACKAGE_MANAGERS:
        if name == manager:
            return manager
    return None


def _infer_type(
    files: Mapping[str, str],
    root_manifest: Mapping[str, Any] | None,
    *,
    has_nohoist: bool,
) -> WorkspaceType:
    if PNPM_WORKSPACE_FILE in files:
        return "pnpm"
    if any(name in files for name in NX_FILES):
        return "nx"

    declared_manager = _package_manager(root_manifest)
    if declared_manager is not None:
        return declared_manager

    lock_types = sorted({kind for name, kind in LOCKFILES.items() if name in files})
    if len(lock_types) == 1:
        return lock_types[0]
    if has_nohoist and not lock_types:
        return "yarn"
    return "unknown"


def detect_workspace(
    files: Mapping[str, str],
    root_manifest: Mapping[str, Any] | None,
) -> WorkspaceDeclaration:
    """Infer the workspace type and membership globs from root-level files.

    Raises:
        ManifestParseError: If a declaration file is syntactically malformed.
    """
    globs: list[str] = []
    warnings: list[AnalysisWarning] = []
    failures: dict[str, str] = {}
    has_nohoist = False

    if PNPM_WORKSPACE_FILE in files:
        try:
            globs.extend(parse_pnpm_workspace(files[PNPM_WORKSPACE_FILE]))
        except ValueError as exc:
            failures[PNPM_WORKSPACE_FILE] = str(exc)

    if root_manifest is not None:
        try:
            manifest_globs, has_nohoist = extract_workspace_globs(root_manifest)
            globs.extend(manifest_globs)
        except ValueError as exc:
            warnings.append(
                AnalysisWarning(
                    code="INVALID_WORKSPACES_FIELD",
                    message=str(exc),
                    path="package.json",
                )
            )

    if LERNA_FILE in files:
        try:
            lerna = orjson.loads(files[LERNA_FILE] or "{}")
        except orjson.JSONDecodeError as exc:
            failures[LERNA_FILE] = str(exc)
        else:
            if isinstance(lerna, dict):
                globs.extend(_string_list(lerna.get("packages")) or [])

    if failures:
        raise ManifestParseError(failures)

    workspace_type = _infer_type(files, root_manifest, has_nohoist=has_nohoist)
    unique_globs = tuple(dict.fromkeys(glob for glob in globs if glob.strip()))
    logger.debug("workspace type %s with globs %s", workspace_type, unique_globs)
    return WorkspaceDeclaration(
        workspace_type=workspace_type,
        globs=unique_globs,
        warnings=tuple(warnings),
    )


__all__ = [
    "LOCKFILES",
    "NX_FILES",
    "PNPM_WORKSPACE_FILE",
    "WorkspaceDeclaration",
    "detect_workspace",
    "extract_workspace_globs",
    "parse_pnpm_workspace",
]
