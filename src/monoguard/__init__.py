"""monoguard: dependency-graph analysis for JavaScript/TypeScript monorepos."""

from monoguard.engine import analyze, check
from monoguard.models.results import ENGINE_VERSION as __version__

__all__ = ["__version__", "analyze", "check"]
