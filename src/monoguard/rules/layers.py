"""Layer classification and import target resolution."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING

from monoguard.parse.imports import package_name_of
from monoguard.rules.patterns import PatternSet, compile_pattern, matches_path
from monoguard.utils import normalize_path, parent_dir

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from monoguard.models.architecture import LayerDefinition
    from monoguard.rules.patterns import PathPattern


@dataclass(frozen=True)
class CompiledLayer:
    definition: LayerDefinition
    pattern: PathPattern
    can_import: PatternSet
    cannot_import: PatternSet

    @property
    def name(self) -> str:
        return self.definition.name


def compile_layers(layers: Sequence[LayerDefinition]) -> list[CompiledLayer]:
    """Compile layer patterns once, preserving authoring order."""
    return [
        CompiledLayer(
            definition=layer,
            pattern=compile_pattern(layer.pattern),
            can_import=PatternSet(layer.can_import),
            cannot_import=PatternSet(layer.cannot_import),
        )
        for layer in layers
    ]


def classify_layer(path: str, layers: Sequence[CompiledLayer]) -> CompiledLayer | None:
    """Classify a file path into an architectural layer.

    Uses first-match-wins semantics: the first layer whose pattern matches
    the path (or one of its ancestor directories) determines the layer.
    """
    for layer in layers:
        if matches_path(layer.pattern, path):
            return layer
    return None


def resolve_import_target(
    file_path: str,
    specifier: str,
    package_paths: Mapping[str, str],
) -> str | None:
    """Resolve an import specifier to a workspace-relative path.

    Relative specifiers resolve against the importing file's directory;
    bare specifiers naming a workspace package resolve into that package's
    directory. External packages and paths escaping the root yield None.
    """
    if specifier.startswith("."):
        joined = posixpath.normpath(posixpath.join(parent_dir(file_path), specifier))
        if joined == ".." or joined.startswith("../"):
            return None
        return normalize_path(joined) or None

    package_name = package_name_of(specifier)
    if package_name is None or package_name not in package_paths:
        return None
    subpath = specifier[len(package_name) :].lstrip("/")
    base = package_paths[package_name]
    return normalize_path(posixpath.join(base, subpath)) or None


def is_forbidden(source: CompiledLayer, target_layer: str) -> bool:
    """A ``cannotImport`` entry matches the target layer."""
    return source.cannot_import.matches(target_layer)


def is_outside_allowlist(source: CompiledLayer, target_layer: str) -> bool:
    """Closed-world check: a non-empty ``canImport`` omits the target layer.

    Imports within the same layer are always inside the allowlist.
    """
    if not source.can_import or target_layer == source.name:
        return False
    return not source.can_import.matches(target_layer)


__all__ = [
    "CompiledLayer",
    "classify_layer",
    "compile_layers",
    "is_forbidden",
    "is_outside_allowlist",
    "resolve_import_target",
]
