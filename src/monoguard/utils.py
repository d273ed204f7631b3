"""Shared utilities for monoguard."""

from __future__ import annotations

import posixpath
from datetime import datetime, timezone
from pathlib import PurePosixPath

_SIZE_UNITS = ("KB", "MB", "GB")


def normalize_path(path: str) -> str:
    """Normalize a workspace-relative path to POSIX form without leading ./.

    Examples:
        >>> normalize_path("./packages/ui/package.json")
        'packages/ui/package.json'
        >>> normalize_path("package.json")
        'package.json'
    """
    normalized = path.replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.strip("/")
    if not normalized:
        return ""
    normalized = posixpath.normpath(normalized)
    return "" if normalized == "." else normalized


def parent_dir(path: str) -> str:
    """Return the directory portion of a workspace-relative path ('' for root)."""
    parent = PurePosixPath(path).parent.as_posix()
    return "" if parent == "." else parent


def ancestors(path: str) -> list[str]:
    """Return the path followed by each ancestor directory, nearest first.

    Examples:
        >>> ancestors("apps/web/src/main.ts")
        ['apps/web/src/main.ts', 'apps/web/src', 'apps/web', 'apps']
    """
    parts = [part for part in path.split("/") if part]
    return ["/".join(parts[:end]) for end in range(len(parts), 0, -1)]


def is_within(path: str, directory: str) -> bool:
    """Return True when path equals or lives under directory ('' is the root)."""
    if not directory:
        return True
    return path == directory or path.startswith(directory + "/")


def utc_timestamp() -> str:
    """Current time as an ISO 8601 UTC string with a Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_size(num_bytes: int) -> str:
    """Format a byte count with a KB/MB/GB unit suffix.

    Examples:
        >>> format_size(0)
        '0.0 KB'
        >>> format_size(1536)
        '1.5 KB'
        >>> format_size(5 * 1024 * 1024)
        '5.0 MB'
    """
    value = max(num_bytes, 0) / 1024
    unit = _SIZE_UNITS[0]
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            break
        value /= 1024
    return f"{value:.1f} {unit}"


__all__ = [
    "ancestors",
    "format_size",
    "is_within",
    "normalize_path",
    "parent_dir",
    "utc_timestamp",
]
