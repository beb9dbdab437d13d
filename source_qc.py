"""CLI to validate evidence bundles against the coverage gate."""

from __future__ import annotations

import argparse
import json
import logging
import statistics
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from config import PlinthConfig
from coverage_score import compute_coverage_score
from logging_utils import log_exception, setup_run_logging
from models import CoverageScoreResult, CoverageThreshold, EvidenceBundle
from score_utils import percentile

logger = logging.getLogger(__name__)

BUNDLE_FILENAME = "evidence_bundle.json"


def _load_bundle(path: Path) -> Tuple[Path, EvidenceBundle]:
    target = path
    if target.is_dir():
        target = target / BUNDLE_FILENAME
    if not target.exists():
        raise FileNotFoundError(f"{target} does not exist")
    data = json.loads(target.read_text(encoding="utf-8"))
    return target, EvidenceBundle.model_validate(data)


def _format_result(target: Path, result: CoverageScoreResult) -> List[str]:
    if result.is_sufficient:
        return [f"{target}: Coverage OK score10={result.score10:.1f} ({result.score_label.value})"]
    return [f"{target}: ERROR: {check}" for check in result.reasons.failed_checks]


def _check_path(
    raw_path: str, threshold: CoverageThreshold
) -> Tuple[List[str], Optional[CoverageScoreResult]]:
    try:
        target, bundle = _load_bundle(Path(raw_path))
    except FileNotFoundError as exc:
        return [f"{raw_path}: ERROR: {exc}"], None
    except (json.JSONDecodeError, ValidationError, OSError) as exc:
        log_exception(logger, exc, "Unable to read evidence bundle", path=raw_path)
        return [f"{raw_path}: ERROR: unable to read bundle ({type(exc).__name__})"], None
    result = compute_coverage_score(bundle, threshold=threshold)
    return _format_result(target, result), result


def _print_dashboard(results: List[CoverageScoreResult]) -> None:
    if not results:
        print("\nCoverage dashboard: no bundles read.")
        return
    print("\nCoverage dashboard:")
    metrics = [
        ("total_sources", [r.reasons.first_party_count + r.reasons.third_party_count for r in results]),
        ("evidence_types", [r.reasons.type_count for r in results]),
        ("score10", [r.score10 for r in results if r.score10 is not None]),
    ]
    for label, values in metrics:
        numeric_values = [float(v) for v in values]
        if not numeric_values:
            continue
        print(
            f"  {label}: min={min(numeric_values):.1f} "
            f"median={statistics.median(numeric_values):.1f} "
            f"p75={percentile(numeric_values, 75):.1f} "
            f"p90={percentile(numeric_values, 90):.1f} "
            f"max={max(numeric_values):.1f}"
        )
    insufficient = sum(1 for r in results if not r.is_sufficient)
    if insufficient:
        print(f"  Insufficient bundles: {insufficient} of {len(results)}")


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate evidence bundle coverage.")
    parser.add_argument("paths", nargs="+", help=f"Bundle JSON files or directories holding {BUNDLE_FILENAME}.")
    parser.add_argument(
        "--threshold-sources",
        type=int,
        default=None,
        help=f"Minimum number of sources (default {PlinthConfig.GATE_MIN_TOTAL_SOURCES}).",
    )
    parser.add_argument(
        "--dashboard",
        action="store_true",
        help="After validation, print percentile summaries across all readable bundles.",
    )
    parser.add_argument("--log-dir", default=None, help="Also write a DEBUG run log into this directory.")
    args = parser.parse_args(argv)

    if args.log_dir:
        setup_run_logging(args.log_dir, f"source_qc ({len(args.paths)} bundles)")

    threshold = CoverageThreshold()
    if args.threshold_sources is not None:
        threshold = threshold.model_copy(update={"min_total_sources": args.threshold_sources})

    exit_code = 0
    results: List[CoverageScoreResult] = []
    for raw_path in args.paths:
        messages, result = _check_path(raw_path, threshold)
        if result is not None:
            results.append(result)
        for message in messages:
            print(message)
            if "ERROR:" in message:
                exit_code = 1
    if args.dashboard:
        _print_dashboard(results)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
