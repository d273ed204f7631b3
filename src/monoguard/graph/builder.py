"""Dependency graph construction from parsed packages."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from monoguard.contract.errors import InvalidInputError
from monoguard.models.conflicts import AnalysisWarning
from monoguard.models.graph import (
    DependencyEdge,
    DependencyGraph,
    ExternalDependency,
    PackageNode,
)
from monoguard.utils import is_within

if TYPE_CHECKING:
    from collections.abc import Sequence

    from monoguard.parse.workspace import WorkspaceDeclaration

logger = logging.getLogger(__name__)


def owning_package(path: str, packages: Sequence[PackageNode]) -> PackageNode | None:
    """The package whose directory is the longest prefix of ``path``."""
    owner: PackageNode | None = None
    for package in packages:
        if is_within(path, package.path) and (
            owner is None or len(package.path) > len(owner.path)
        ):
            owner = package
    return owner


def select_members(
    packages: Sequence[PackageNode],
    declaration: WorkspaceDeclaration,
) -> tuple[list[PackageNode], list[AnalysisWarning]]:
    """Keep packages matching the membership globs.

    The root manifest only counts as a package when the workspace declares
    no membership globs (a single-package repository).
    """
    members: list[PackageNode] = []
    warnings: list[AnalysisWarning] = []
    for package in packages:
        if package.path == "":
            if not declaration.has_membership:
                members.append(package)
            continue
        if declaration.includes(package.path):
            members.append(package)
            continue
        warnings.append(
            AnalysisWarning(
                code="NOT_WORKSPACE_MEMBER",
                message=f"{package.path} is not matched by the workspace globs; skipped",
                package_name=package.name,
                path=package.path,
            )
        )
    return members, warnings


def build_dependency_graph(
    packages: Sequence[PackageNode],
    declaration: WorkspaceDeclaration,
    *,
    root_path: str = "",
) -> tuple[DependencyGraph, list[AnalysisWarning]]:
    """Build the package dependency graph.

    Args:
        packages: Parsed packages from every manifest.
        declaration: Workspace type and membership globs.
        root_path: Workspace root recorded on the graph.

    Returns:
        The graph and any warnings raised while building it.

    Raises:
        InvalidInputError: If no packages remain or two packages share a name.
    """
    members, warnings = select_members(packages, declaration)

    if not members:
        msg = "No packages found in workspace"
        raise InvalidInputError(msg)

    counts = Counter(package.name for package in members)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    if duplicates:
        msg = f"Duplicate package names in workspace: {', '.join(duplicates)}"
        raise InvalidInputError(msg, details={"duplicates": duplicates})

    nodes = {package.name: package for package in sorted(members, key=lambda p: p.name)}

    edges: set[tuple[str, str, str, str]] = set()
    externals: set[tuple[str, str, str, str]] = set()
    for name, package in nodes.items():
        for dep in package.declared:
            if dep.name == name:
                warnings.append(
                    AnalysisWarning(
                        code="SELF_DEPENDENCY",
                        message=f"{name} declares a dependency on itself; ignored",
                        package_name=name,
                        path=package.path,
                    )
                )
                continue
            record = (name, dep.name, dep.type, dep.version_range)
            if dep.name in nodes:
                edges.add(record)
            else:
                externals.add(record)

    graph = DependencyGraph(
        nodes=nodes,
        edges=[
            DependencyEdge(
                from_package=source, to_package=target, type=dep_type, version_range=rng
            )
            for source, target, dep_type, rng in sorted(edges)
        ],
        external_dependencies=[
            ExternalDependency(
                from_package=source, name=target, type=dep_type, version_range=rng
            )
            for source, target, dep_type, rng in sorted(
                externals, key=lambda r: (r[1], r[0], r[2], r[3])
            )
        ],
        root_path=root_path,
        workspace_type=declaration.workspace_type,
        workspace_globs=list(declaration.globs),
    )
    logger.debug(
        "built graph: %d nodes, %d internal edges, %d external dependencies",
        len(graph.nodes),
        len(graph.edges),
        len(graph.external_dependencies),
    )
    return graph, warnings


__all__ = ["build_dependency_graph", "owning_package", "select_members"]
