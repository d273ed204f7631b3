"""Command-line interface for monoguard."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import get_args

from pydantic import ValidationError

from monoguard.analysis.store import JsonFileScoreStore
from monoguard.engine import analyze, check
from monoguard.models.workspace import WorkspaceInput
from monoguard.rules.config import AnalysisConfig, ConfigError, FailOn, load_config
from monoguard.scan.files import collect_workspace_files
from monoguard.verify.verify import verify_determinism

SCORE_STORE_FILENAME = ".monoguard/scores.json"


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Workspace root (default: .)",
    )


def _add_timeout(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort analysis after this many seconds",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="monoguard")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a workspace")
    _add_common_paths(analyze_parser)
    _add_timeout(analyze_parser)
    analyze_parser.add_argument(
        "--output",
        default=None,
        help="Write the result JSON to this file instead of stdout",
    )

    check_parser = subparsers.add_parser("check", help="Check a workspace against its gates")
    _add_common_paths(check_parser)
    _add_timeout(check_parser)
    check_parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Minimum health score (overrides thresholds.healthScore)",
    )
    check_parser.add_argument(
        "--fail-on",
        choices=get_args(FailOn),
        default=None,
        help="Finding kinds that fail the check (overrides failOn)",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify determinism of analysis results"
    )
    _add_common_paths(verify_parser)
    verify_parser.add_argument(
        "--baseline",
        default=None,
        help="Compare against a previously written result file instead of a second run",
    )

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_workspace(root: Path, config: AnalysisConfig) -> WorkspaceInput:
    # config.exclude is applied once, by the engine.
    files = collect_workspace_files(root)
    return WorkspaceInput(files=files, config=config, root_path=root.as_posix())


def _score_store(root: Path, config: AnalysisConfig) -> JsonFileScoreStore | None:
    if config.project_id is None:
        return None
    return JsonFileScoreStore(root / SCORE_STORE_FILENAME)


def _handle_analyze(
    root: Path, config: AnalysisConfig, output: str | None, timeout: float | None
) -> int:
    workspace = _load_workspace(root, config)
    result = analyze(workspace, timeout=timeout, score_store=_score_store(root, config))
    payload = result.to_json(indent=True)
    if output is None:
        sys.stdout.write(payload.decode("utf-8") + "\n")
    else:
        out_path = Path(output).expanduser().resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(payload + b"\n")
    if result.error is not None:
        sys.stderr.write(f"{result.error.code.value}: {result.error.message}\n")
        return 1
    return 0


def _handle_check(
    root: Path,
    config: AnalysisConfig,
    threshold: int | None,
    fail_on: str | None,
    timeout: float | None,
) -> int:
    updates: dict[str, object] = {}
    if threshold is not None:
        updates["thresholds"] = {"health_score": threshold}
    if fail_on is not None:
        updates["fail_on"] = fail_on
    if updates:
        try:
            config = AnalysisConfig.model_validate({**config.model_dump(), **updates})
        except ValidationError as exc:
            sys.stderr.write(f"error: invalid option: {exc}\n")
            return 2

    workspace = _load_workspace(root, config)
    result = check(workspace, timeout=timeout, score_store=_score_store(root, config))
    if result.error is not None:
        sys.stderr.write(f"{result.error.code.value}: {result.error.message}\n")
        return 2

    outcome = result.data
    assert outcome is not None
    for issue in outcome.errors:
        location = f" ({issue.file})" if issue.file else ""
        sys.stderr.write(f"error: {issue.code}: {issue.message}{location}\n")
    for issue in outcome.warnings:
        location = f" ({issue.file})" if issue.file else ""
        sys.stderr.write(f"warning: {issue.code}: {issue.message}{location}\n")
    status = "passed" if outcome.passed else "failed"
    sys.stdout.write(f"health score: {outcome.health_score} ({status})\n")
    return 0 if outcome.passed else 1


def _handle_verify(root: Path, config: AnalysisConfig, baseline: str | None) -> int:
    workspace = _load_workspace(root, config)
    baseline_path = None if baseline is None else Path(baseline).expanduser().resolve()
    try:
        result = verify_determinism(workspace, baseline=baseline_path)
    except (FileNotFoundError, IsADirectoryError, ValueError) as exc:
        sys.stderr.write(f"baseline: {baseline_path}\n")
        sys.stderr.write(f"error: {exc}\n")
        return 2
    if not result.ok:
        for label, paths in (
            ("missing", result.missing),
            ("extra", result.extra),
            ("mismatches", result.mismatches),
        ):
            for path in paths:
                sys.stderr.write(f"{label}: {path}\n")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        sys.stderr.write(f"error: workspace root is not a directory: {root}\n")
        return 2
    try:
        config = load_config(root)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    if args.command == "analyze":
        return _handle_analyze(root, config, args.output, args.timeout)

    if args.command == "check":
        return _handle_check(root, config, args.threshold, args.fail_on, args.timeout)

    if args.command == "verify":
        return _handle_verify(root, config, args.baseline)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
