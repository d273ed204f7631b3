"""Workspace file collection for the CLI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

from monoguard.parse.imports import is_source_path
from monoguard.parse.manifest import MANIFEST_FILENAME
from monoguard.parse.workspace import LERNA_FILE, LOCKFILES, NX_FILES, PNPM_WORKSPACE_FILE
from monoguard.rules.patterns import PatternSet

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

SKIP_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", "dist", "build", "coverage"})
DECLARATION_FILES = frozenset(
    {MANIFEST_FILENAME, PNPM_WORKSPACE_FILE, LERNA_FILE, *NX_FILES}
)
# Only the presence of a lockfile matters; its content is never read.
PRESENCE_ONLY_FILES = frozenset(LOCKFILES)


def is_workspace_file(rel_path: str) -> bool:
    name = rel_path.rsplit("/", 1)[-1]
    if name == MANIFEST_FILENAME:
        return True
    if "/" not in rel_path and (name in DECLARATION_FILES or name in PRESENCE_ONLY_FILES):
        return True
    return is_source_path(rel_path)


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        path.resolve().relative_to(root.resolve())
    except (OSError, ValueError):
        return False
    return True


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Return sorted .gitignore files under root, skipping pruned directories."""
    found = [path for path in _walk(root, None) if path.name == ".gitignore"]
    return sorted(found, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = _iter_gitignore_files(root)
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        return any(matcher(path_str) for matcher in matchers)

    return matches


def _walk(root: Path, ignored: Callable[[str], bool] | None) -> Iterator[Path]:
    """Yield files under root, pruning skipped and gitignored directories."""
    pending = [root]
    while pending:
        directory = pending.pop()
        for entry in sorted(directory.iterdir()):
            if entry.is_symlink():
                continue
            if ignored is not None and ignored(str(entry)):
                continue
            if entry.is_dir():
                if entry.name not in SKIP_DIRS:
                    pending.append(entry)
            elif entry.is_file():
                yield entry


def collect_workspace_files(
    root: Path,
    *,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> dict[str, str]:
    """Read every manifest, declaration file and JS/TS source under root.

    Args:
        root: Workspace root directory.
        exclude_patterns: Exact, glob or ``regex:`` patterns matched against
            each relative path and its ancestor directories.
        nested_gitignore: Honour .gitignore files below the root as well.

    Returns:
        Mapping of POSIX relative path to file content, sorted by path.
        Lockfiles are included with empty content.
    """
    exclude = PatternSet(exclude_patterns or [])
    ignored = _build_gitignore_matcher(root, nested_gitignore=nested_gitignore)

    files: dict[str, str] = {}
    for path in _walk(root, ignored):
        if not _is_within_root(path, root):
            continue
        rel_path = path.relative_to(root).as_posix()
        if not is_workspace_file(rel_path):
            continue
        if exclude and exclude.matches_path(rel_path):
            continue
        if rel_path in PRESENCE_ONLY_FILES:
            files[rel_path] = ""
            continue
        files[rel_path] = path.read_text(encoding="utf-8", errors="replace")

    logger.debug("collected %d workspace file(s) under %s", len(files), root)
    return dict(sorted(files.items()))


__all__ = ["SKIP_DIRS", "collect_workspace_files", "is_workspace_file"]
