"""Engine entry points: ``analyze`` and ``check``.

Both accept a :class:`~monoguard.models.workspace.WorkspaceInput` (or a
mapping in its wire shape) and always return a ``Result`` envelope. Stage
exceptions are converted at this boundary and never escape.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from monoguard.analysis.conflicts import analyze_dependencies
from monoguard.analysis.cycles import detect_cycles
from monoguard.analysis.health import calculate_health
from monoguard.contract.errors import (
    AnalysisTimeoutError,
    EngineError,
    ErrorCode,
    InvalidInputError,
)
from monoguard.contract.result import Result
from monoguard.graph.builder import build_dependency_graph
from monoguard.models.results import (
    AnalysisMetadata,
    AnalysisResult,
    CheckIssue,
    CheckResult,
)
from monoguard.models.workspace import WorkspaceInput
from monoguard.parse.imports import extract_imports, is_source_path
from monoguard.parse.manifest import parse_manifests
from monoguard.parse.workspace import detect_workspace
from monoguard.rules.patterns import PatternError, PatternSet
from monoguard.rules.validator import validate_architecture
from monoguard.utils import normalize_path, utc_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable

    from monoguard.analysis.semver import VersionRangeStrategy
    from monoguard.analysis.store import ScoreStore
    from monoguard.parse.imports import ImportStatement
    from monoguard.rules.config import AnalysisConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGE_CYCLES = "cycles"
STAGE_DEPENDENCIES = "dependencies"
STAGE_ARCHITECTURE = "architecture"

UNEXPECTED_FAILURE_MESSAGE = "Analysis failed due to an internal error"


class Deadline:
    """Cooperative cancellation: a wall-clock budget plus an optional event.

    ``check`` is passed to long-running stages as their checkpoint and raises
    :class:`AnalysisTimeoutError` once the budget is spent or the event is set.
    """

    def __init__(
        self,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if timeout is not None and timeout < 0:
            msg = f"timeout must be non-negative, got {timeout}"
            raise InvalidInputError(msg)
        self.timeout = timeout
        self.expires_at = None if timeout is None else time.monotonic() + timeout
        self.cancel_event = cancel_event
        self._aborted = threading.Event()

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def abort(self) -> None:
        self._aborted.set()

    def check(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            msg = "Analysis was cancelled"
            raise AnalysisTimeoutError(msg)
        if self._aborted.is_set() or (
            self.expires_at is not None and time.monotonic() >= self.expires_at
        ):
            msg = f"Analysis exceeded the {self.timeout}s time budget"
            raise AnalysisTimeoutError(msg, details={"timeoutSeconds": self.timeout})


def coerce_input(value: WorkspaceInput | Mapping[str, Any]) -> WorkspaceInput:
    """Validate a raw mapping into a ``WorkspaceInput``.

    Raises:
        InvalidInputError: If the mapping does not match the input schema.
    """
    if isinstance(value, WorkspaceInput):
        return value
    if not isinstance(value, Mapping):
        msg = f"Expected a WorkspaceInput or mapping, got {type(value).__name__}"
        raise InvalidInputError(msg)
    try:
        return WorkspaceInput.model_validate(dict(value))
    except ValidationError as exc:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in exc.errors(include_url=False)
        ]
        msg = f"Invalid workspace input: {len(errors)} validation error(s)"
        raise InvalidInputError(msg, details={"errors": errors}) from exc


def filter_excluded(
    files: Mapping[str, str],
    exclude: PatternSet,
) -> tuple[dict[str, str], int]:
    """Normalize paths and drop every file matched by an exclusion pattern.

    Raises:
        InvalidInputError: If two keys normalize to the same path.
    """
    kept: dict[str, str] = {}
    sources: dict[str, str] = {}
    excluded = 0
    for raw_path in sorted(files):
        path = normalize_path(raw_path)
        if not path:
            continue
        if path in sources:
            msg = f"Files {sources[path]!r} and {raw_path!r} both normalize to {path!r}"
            raise InvalidInputError(
                msg, details={"path": path, "keys": [sources[path], raw_path]}
            )
        sources[path] = raw_path
        if exclude and exclude.matches_path(path):
            excluded += 1
            continue
        kept[path] = files[raw_path]
    return kept, excluded


def _scan_imports(
    files: Mapping[str, str], deadline: Deadline
) -> dict[str, list[ImportStatement]]:
    imports: dict[str, list[ImportStatement]] = {}
    for path in sorted(files):
        if not is_source_path(path):
            continue
        deadline.check()
        imports[path] = extract_imports(path, files[path])
    return imports


def _run_stages(
    stages: dict[str, Callable[[], Any]],
    *,
    concurrent: bool,
    deadline: Deadline,
) -> dict[str, Any]:
    """Run independent stages, sequentially or on a thread pool.

    Results are keyed by stage name, so completion order never matters.
    """
    if not concurrent:
        results = {}
        for name, stage in stages.items():
            deadline.check()
            results[name] = stage()
        return results

    executor = ThreadPoolExecutor(max_workers=len(stages), thread_name_prefix="monoguard")
    try:
        futures = {name: executor.submit(stage) for name, stage in stages.items()}
        _, pending = wait(
            futures.values(), timeout=deadline.remaining(), return_when=FIRST_EXCEPTION
        )
        for future in futures.values():
            error = future.exception() if future.done() else None
            if error is not None:
                deadline.abort()
                raise error
        if pending:
            deadline.abort()
            deadline.check()
        return {name: future.result() for name, future in futures.items()}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _project_id(workspace: WorkspaceInput) -> str | None:
    return workspace.config.project_id or workspace.root_path or None


def run_analysis(
    workspace: WorkspaceInput,
    *,
    deadline: Deadline,
    score_store: ScoreStore | None = None,
    range_strategy: VersionRangeStrategy | None = None,
) -> AnalysisResult:
    """Run the full pipeline, raising on failure.

    Raises:
        EngineError: On invalid input, malformed manifests or timeout.
    """
    config = workspace.config
    if not workspace.files:
        msg = "Workspace input contains no files"
        raise InvalidInputError(msg)

    files, excluded = filter_excluded(workspace.files, PatternSet(config.exclude))
    logger.debug("%d file(s) kept, %d excluded", len(files), excluded)

    deadline.check()
    manifests = parse_manifests(files)
    declaration = detect_workspace(files, manifests.root_manifest)
    imports = _scan_imports(files, deadline)
    graph, build_warnings = build_dependency_graph(
        manifests.packages, declaration, root_path=workspace.root_path
    )

    stages: dict[str, Callable[[], Any]] = {
        STAGE_CYCLES: lambda: detect_cycles(
            graph, imports=imports, checkpoint=deadline.check
        ),
        STAGE_DEPENDENCIES: lambda: analyze_dependencies(
            graph, imports, strategy=range_strategy
        ),
    }
    if config.architecture is not None:
        rules = config.architecture
        stages[STAGE_ARCHITECTURE] = lambda: validate_architecture(
            rules, imports, list(graph.nodes.values())
        )
    results = _run_stages(stages, concurrent=config.concurrent, deadline=deadline)
    deadline.check()

    detection = results[STAGE_CYCLES]
    report = results[STAGE_DEPENDENCIES]
    architecture = results.get(STAGE_ARCHITECTURE)

    project_id = _project_id(workspace)
    previous = None
    if score_store is not None and project_id is not None:
        previous = score_store.get_previous(project_id)

    created_at = utc_timestamp()
    health = calculate_health(
        graph,
        detection.cycles,
        report,
        architecture,
        previous=previous,
        timestamp=created_at,
    )

    result = AnalysisResult(
        health_score=health,
        graph=graph,
        circular_dependencies=detection.cycles,
        dependency_report=report,
        architecture=architecture,
        metadata=AnalysisMetadata(
            packages=len(graph.nodes),
            excluded_files=excluded,
            files_analyzed=len(files),
            source_files_scanned=len(imports),
            cycles_truncated=detection.truncated,
            truncated_components=detection.truncated_components,
            warnings=[*manifests.warnings, *declaration.warnings, *build_warnings],
            created_at=created_at,
        ),
    )

    if score_store is not None and project_id is not None:
        score_store.save(project_id, health.overall)
    logger.info(
        "analysis complete: %d package(s), %d cycle(s), health %d",
        len(graph.nodes),
        len(detection.cycles),
        health.overall,
    )
    return result


def _guard(result_type: type[Result[T]], operation: Callable[[], T]) -> Result[T]:
    """Convert stage exceptions into a failed ``Result``."""
    try:
        return result_type.success(operation())
    except EngineError as exc:
        logger.warning("%s: %s", exc.code.value, exc.message)
        return result_type.from_exception(exc)
    except PatternError as exc:
        logger.warning("invalid pattern: %s", exc)
        return result_type.failure(ErrorCode.INVALID_INPUT, str(exc))
    except (RecursionError, MemoryError) as exc:
        logger.exception("runtime resource failure during analysis")
        return result_type.failure(
            ErrorCode.WASM_ERROR,
            f"Engine runtime failure: {type(exc).__name__}",
        )
    except Exception:
        logger.exception("unexpected failure during analysis")
        return result_type.failure(ErrorCode.ANALYSIS_FAILED, UNEXPECTED_FAILURE_MESSAGE)


def analyze(
    workspace: WorkspaceInput | Mapping[str, Any],
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
    score_store: ScoreStore | None = None,
    range_strategy: VersionRangeStrategy | None = None,
) -> Result[AnalysisResult]:
    """Analyze a workspace snapshot.

    Args:
        workspace: Files and configuration to analyze.
        timeout: Wall-clock budget in seconds; None means unbounded.
        cancel_event: Setting this event aborts the run with ``TIMEOUT``.
        score_store: Previous-score store used for the health trend.
        range_strategy: Version range semantics; npm semver by default.
    """

    def operation() -> AnalysisResult:
        deadline = Deadline(timeout, cancel_event)
        return run_analysis(
            coerce_input(workspace),
            deadline=deadline,
            score_store=score_store,
            range_strategy=range_strategy,
        )

    return _guard(Result[AnalysisResult], operation)


def build_check_result(result: AnalysisResult, config: AnalysisConfig) -> CheckResult:
    """Turn analysis findings into pass/fail issues.

    Critical findings are errors when their kind is selected by ``failOn``
    and warnings otherwise. Warning-level findings are always warnings.
    """
    fail_on = config.fail_on
    errors: list[CheckIssue] = []
    warnings: list[CheckIssue] = []

    def report(kind: str, critical: bool, issue: CheckIssue) -> None:
        if critical and fail_on in {"all", kind}:
            errors.append(issue)
        else:
            warnings.append(issue)

    for cycle in result.circular_dependencies:
        if cycle.severity == "info":
            continue
        report(
            "circular",
            cycle.severity == "critical",
            CheckIssue(
                code=ErrorCode.CIRCULAR_DETECTED.value,
                message=f"Circular dependency: {' -> '.join(cycle.cycle)}",
            ),
        )

    for conflict in result.dependency_report.version_conflicts:
        if conflict.risk_level == "low":
            continue
        versions = ", ".join(entry.version for entry in conflict.conflicting_versions)
        report(
            "conflict",
            conflict.risk_level == "critical",
            CheckIssue(
                code="VERSION_CONFLICT",
                message=(
                    f"{conflict.package_name} is required at incompatible versions "
                    f"({versions}); {conflict.risk_level} risk"
                ),
            ),
        )

    if result.architecture is not None:
        for violation in result.architecture.violations:
            if violation.severity == "info":
                continue
            report(
                "boundary",
                violation.severity == "critical",
                CheckIssue(
                    code="LAYER_VIOLATION",
                    message=(
                        f"Layer '{violation.source_layer}' imports '{violation.actual_layer}' "
                        f"via {violation.violating_import!r}"
                    ),
                    file=violation.violating_file,
                ),
            )

    threshold = config.thresholds.health_score
    overall = result.health_score.overall
    if threshold is not None and overall < threshold:
        errors.append(
            CheckIssue(
                code="HEALTH_THRESHOLD",
                message=f"Health score {overall} is below the threshold of {threshold}",
            )
        )

    return CheckResult(
        passed=not errors,
        errors=errors,
        warnings=warnings,
        health_score=overall,
    )


def check(
    workspace: WorkspaceInput | Mapping[str, Any],
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
    score_store: ScoreStore | None = None,
    range_strategy: VersionRangeStrategy | None = None,
) -> Result[CheckResult]:
    """Run analysis and report whether the workspace passes its gates."""

    def operation() -> CheckResult:
        deadline = Deadline(timeout, cancel_event)
        validated = coerce_input(workspace)
        result = run_analysis(
            validated,
            deadline=deadline,
            score_store=score_store,
            range_strategy=range_strategy,
        )
        return build_check_result(result, validated.config)

    return _guard(Result[CheckResult], operation)


__all__ = [
    "Deadline",
    "analyze",
    "build_check_result",
    "check",
    "coerce_input",
    "filter_excluded",
    "run_analysis",
]
