"""Tree-sitter based import extraction for JavaScript and TypeScript sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Literal

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)

ImportKind = Literal[
    "esm-named",
    "esm-default",
    "esm-namespace",
    "esm-side-effect",
    "esm-dynamic",
    "cjs-require",
    "re-export",
]

Dialect = Literal["javascript", "typescript", "tsx"]

SOURCE_EXTENSIONS: dict[str, Dialect] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

_QUOTES = "\"'`"

_PARSERS: dict[Dialect, Parser] = {}


@dataclass(frozen=True, order=True)
class ImportStatement:
    line: int
    specifier: str
    kind: ImportKind


def _language(dialect: Dialect) -> Language:
    if dialect == "javascript":
        return Language(tree_sitter_javascript.language())
    if dialect == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    return Language(tree_sitter_typescript.language_tsx())


def _get_parser(dialect: Dialect) -> Parser:
    """Initialize and cache one Tree-sitter parser per dialect."""
    parser = _PARSERS.get(dialect)
    if parser is None:
        parser = Parser(_language(dialect))
        _PARSERS[dialect] = parser
    return parser


def dialect_for(path: str) -> Dialect | None:
    return SOURCE_EXTENSIONS.get(PurePosixPath(path).suffix.lower())


def is_source_path(path: str) -> bool:
    parts = PurePosixPath(path).parts
    return dialect_for(path) is not None and "node_modules" not in parts


def _string_value(node: Node | None) -> str | None:
    if node is None or node.type != "string" or node.text is None:
        return None
    return node.text.decode("utf8").strip(_QUOTES)


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _import_kind(node: Node) -> ImportKind:
    clause = next((c for c in node.named_children if c.type == "import_clause"), None)
    if clause is None:
        return "esm-side-effect"
    child_types = {child.type for child in clause.named_children}
    if "namespace_import" in child_types:
        return "esm-namespace"
    if "named_imports" in child_types:
        return "esm-named"
    return "esm-default"


def _import_require_source(node: Node) -> str | None:
    """``import x = require("y")`` in TypeScript."""
    for child in node.named_children:
        if child.type == "import_require_clause":
            source = child.child_by_field_name("source")
            if source is None:
                source = next(
                    (c for c in child.named_children if c.type == "string"), None
                )
            return _string_value(source)
    return None


def _call_import(node: Node) -> tuple[str, ImportKind] | None:
    function = node.child_by_field_name("function")
    arguments = node.child_by_field_name("arguments")
    if function is None or arguments is None:
        return None

    if function.type == "import":
        kind: ImportKind = "esm-dynamic"
    elif function.type == "identifier" and function.text == b"require":
        kind = "cjs-require"
    else:
        return None

    first = next(iter(arguments.named_children), None)
    specifier = _string_value(first)
    if specifier is None:
        return None
    return specifier, kind


def _walk(root: Node) -> Iterator[ImportStatement]:
    stack = [root]
    while stack:
        node = stack.pop()

        if node.type == "import_statement":
            specifier = _string_value(node.child_by_field_name("source"))
            if specifier is not None:
                yield ImportStatement(_line(node), specifier, _import_kind(node))
            else:
                required = _import_require_source(node)
                if required is not None:
                    yield ImportStatement(_line(node), required, "cjs-require")
            continue

        if node.type == "export_statement":
            specifier = _string_value(node.child_by_field_name("source"))
            if specifier is not None:
                yield ImportStatement(_line(node), specifier, "re-export")
                continue

        if node.type == "call_expression":
            found = _call_import(node)
            if found is not None:
                yield ImportStatement(_line(node), found[0], found[1])

        if node.type == "string":
            continue

        stack.extend(reversed(node.children))


def extract_imports(path: str, content: str) -> list[ImportStatement]:
    """Extract import statements from one source file, sorted by line."""
    dialect = dialect_for(path)
    if dialect is None:
        return []
    tree = _get_parser(dialect).parse(content.encode("utf8"))
    if tree.root_node.has_error:
        logger.debug("syntax errors in %s; extracting recoverable imports", path)
    return sorted(set(_walk(tree.root_node)))


def extract_all_imports(files: Mapping[str, str]) -> dict[str, list[ImportStatement]]:
    """Extract imports for every source file in the mapping, keyed by path."""
    return {
        path: extract_imports(path, files[path])
        for path in sorted(files)
        if is_source_path(path)
    }


def package_name_of(specifier: str) -> str | None:
    """Return the npm package an import specifier refers to.

    Examples:
        >>> package_name_of("@mono/ui/button")
        '@mono/ui'
        >>> package_name_of("lodash/fp")
        'lodash'
        >>> package_name_of("./local") is None
        True
    """
    if not specifier or specifier.startswith((".", "/")) or ":" in specifier:
        return None
    parts = specifier.split("/")
    if specifier.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


__all__ = [
    "SOURCE_EXTENSIONS",
    "ImportKind",
    "ImportStatement",
    "dialect_for",
    "extract_all_imports",
    "extract_imports",
    "is_source_path",
    "package_name_of",
]
