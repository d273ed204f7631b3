"""Package and dependency-graph models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from monoguard.models.base import ContractModel

DependencyType = Literal["production", "development", "peer", "optional"]
WorkspaceType = Literal["npm", "yarn", "pnpm", "nx", "unknown"]

# Manifest field -> edge type, in manifest evaluation order.
MANIFEST_DEPENDENCY_FIELDS: dict[str, DependencyType] = {
    "dependencies": "production",
    "devDependencies": "development",
    "peerDependencies": "peer",
    "optionalDependencies": "optional",
}


class DeclaredDependency(ContractModel):
    """A single dependency entry exactly as written in a manifest."""

    name: str
    version_range: str
    type: DependencyType


class PackageNode(ContractModel):
    """One workspace package."""

    name: str
    version: str = ""
    path: str = ""
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    peer_dependencies: list[str] = Field(default_factory=list)
    optional_dependencies: list[str] = Field(default_factory=list)
    declared: list[DeclaredDependency] = Field(default_factory=list)
    private: bool = False
    synthetic_name: bool = False


class DependencyEdge(ContractModel):
    """Directed workspace-internal dependency edge."""

    from_package: str = Field(alias="from")
    to_package: str = Field(alias="to")
    type: DependencyType
    version_range: str


class ExternalDependency(ContractModel):
    """A declared dependency on a package outside the workspace."""

    from_package: str = Field(alias="from")
    name: str
    type: DependencyType
    version_range: str


class DependencyGraph(ContractModel):
    """Read-only dependency graph shared by every downstream stage."""

    nodes: dict[str, PackageNode] = Field(default_factory=dict)
    edges: list[DependencyEdge] = Field(default_factory=list)
    external_dependencies: list[ExternalDependency] = Field(default_factory=list)
    root_path: str = ""
    workspace_type: WorkspaceType = "unknown"
    workspace_globs: list[str] = Field(default_factory=list)

    def adjacency(self) -> dict[str, set[str]]:
        """Internal adjacency sets keyed by package name."""
        graph: dict[str, set[str]] = {name: set() for name in self.nodes}
        for edge in self.edges:
            graph[edge.from_package].add(edge.to_package)
        return graph


__all__ = [
    "MANIFEST_DEPENDENCY_FIELDS",
    "DeclaredDependency",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyType",
    "ExternalDependency",
    "PackageNode",
    "WorkspaceType",
]
