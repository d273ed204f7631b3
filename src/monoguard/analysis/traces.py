"""Map cycle hops back to the source imports that create them."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from monoguard.graph.builder import owning_package
from monoguard.models.circular import ImportTrace
from monoguard.parse.imports import package_name_of

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from monoguard.models.graph import DependencyGraph
    from monoguard.parse.imports import ImportStatement


class ImportIndex:
    """Workspace imports grouped by ``(importing package, imported package)``."""

    def __init__(
        self,
        graph: DependencyGraph,
        imports: Mapping[str, Sequence[ImportStatement]],
    ) -> None:
        packages = list(graph.nodes.values())
        self._by_hop: dict[tuple[str, str], list[ImportTrace]] = defaultdict(list)
        for path in sorted(imports):
            owner = owning_package(path, packages)
            if owner is None:
                continue
            for statement in imports[path]:
                target = package_name_of(statement.specifier)
                if target is None or target == owner.name or target not in graph.nodes:
                    continue
                self._by_hop[(owner.name, target)].append(
                    ImportTrace(
                        from_package=owner.name,
                        to_package=target,
                        file=path,
                        line=statement.line,
                        specifier=statement.specifier,
                    )
                )

    def trace(self, members: Sequence[str]) -> list[ImportTrace]:
        """Imports behind each hop, in cycle order then file and line.

        Hops declared only in manifests contribute nothing.
        """
        traces: list[ImportTrace] = []
        for i, source in enumerate(members):
            traces.extend(self._by_hop.get((source, members[(i + 1) % len(members)]), []))
        return traces


__all__ = ["ImportIndex"]
