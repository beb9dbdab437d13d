"""Deterministic coverage scoring for competitor evidence bundles.

The score rewards three things: breadth of evidence types, fresh material,
and a healthy share of first-party sources. A separate gate decides whether
the evidence is strong enough for the number to be shown at all.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from config import PlinthConfig
from date_utils import parse_datetime, utc_now, whole_days_between
from evidence_types import ALL_EVIDENCE_TYPES, EvidenceType
from models import (
    CoverageGap,
    CoverageReasons,
    CoverageScoreResult,
    CoverageThreshold,
    EvidenceBundle,
    EvidenceCoverage,
    EvidenceItem,
    ScoreLabel,
)
from score_utils import clamp, median, round_half_up
from url_utils import extract_competitor_domains, is_first_party

logger = logging.getLogger(__name__)

NO_BUNDLE_CHECK = "No evidence bundle available"

GAP_SUGGESTIONS: Dict[EvidenceType, str] = {
    EvidenceType.PRICING: 'Try searching for "/pricing" or "/plans" pages',
    EvidenceType.DOCS: 'Try searching for "/docs" or documentation sites',
    EvidenceType.REVIEWS: "Try searching for product reviews on G2, Capterra, or Trustpilot",
    EvidenceType.CHANGELOG: "Try adding /releases or /blog product updates",
    EvidenceType.JOBS: "Try searching for job postings on company careers pages",
    EvidenceType.SECURITY: "Try searching for security pages or compliance docs",
    EvidenceType.COMMUNITY: "Try searching for community forums or Discord servers",
    EvidenceType.BLOG: "Try searching for company blog or news pages",
    EvidenceType.OTHER: "Try broadening search terms",
}

BundleInput = Union[EvidenceBundle, Dict[str, Any], None]


def coerce_bundle(bundle: BundleInput) -> Optional[EvidenceBundle]:
    if bundle is None:
        return None
    if isinstance(bundle, EvidenceBundle):
        return bundle
    return EvidenceBundle.model_validate(bundle)


def _item_timestamp(item: EvidenceItem) -> Tuple[Optional[str], Optional[datetime]]:
    # publishedAt wins whenever it is present, even if it turns out unparseable.
    raw = item.published_at if item.published_at else item.retrieved_at
    if not raw:
        return None, None
    return raw, parse_datetime(raw)


def compute_recency_score(
    median_age_days: Optional[float],
    *,
    fresh_days: float = PlinthConfig.RECENCY_FRESH_DAYS,
    aging_days: float = PlinthConfig.RECENCY_AGING_DAYS,
    stale_days: float = PlinthConfig.RECENCY_STALE_DAYS,
    aging_score: float = PlinthConfig.RECENCY_AGING_SCORE,
    unknown_score: float = PlinthConfig.RECENCY_UNKNOWN_SCORE,
) -> float:
    """Piecewise-linear recency on the median evidence age.

    1.0 up to ``fresh_days``, sliding to ``aging_score`` at ``aging_days``,
    then to 0.0 at ``stale_days``. Unknown age scores ``unknown_score``.
    """
    if median_age_days is None:
        return unknown_score
    if median_age_days <= fresh_days:
        return 1.0
    if median_age_days <= aging_days:
        slope = (aging_score - 1.0) / (aging_days - fresh_days)
        return 1.0 + slope * (median_age_days - fresh_days)
    if median_age_days <= stale_days:
        slope = (0.0 - aging_score) / (stale_days - aging_days)
        return aging_score + slope * (median_age_days - aging_days)
    return 0.0


def label_for_score(score10: float) -> ScoreLabel:
    for label, floor in PlinthConfig.score_label_bands():
        if score10 >= floor:
            return ScoreLabel(label)
    return ScoreLabel.INSUFFICIENT


def _failed_checks(
    threshold: CoverageThreshold,
    total_sources: int,
    type_count: int,
    first_party_ratio: float,
    median_age_days: Optional[float],
) -> List[str]:
    failed: List[str] = []
    if total_sources < threshold.min_total_sources:
        failed.append(f"Need {threshold.min_total_sources} sources, have {total_sources}")
    if type_count < threshold.min_evidence_types:
        failed.append(f"Need {threshold.min_evidence_types} evidence types, have {type_count}")
    if first_party_ratio < threshold.min_first_party_ratio:
        failed.append(
            f"Need {threshold.min_first_party_ratio * 100:.0f}% first-party sources, "
            f"have {first_party_ratio * 100:.0f}%"
        )
    # Undated evidence never fails the age check.
    if median_age_days is not None and median_age_days > threshold.max_median_age_days:
        failed.append(
            f"Median evidence age {median_age_days:g} days exceeds maximum "
            f"{threshold.max_median_age_days:g} days"
        )
    return failed


def compute_coverage_score(
    bundle: BundleInput,
    *,
    threshold: Optional[CoverageThreshold] = None,
    competitor_domains: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
    coverage_weight: float = PlinthConfig.COVERAGE_WEIGHT,
    recency_weight: float = PlinthConfig.RECENCY_WEIGHT,
    first_party_weight: float = PlinthConfig.FIRST_PARTY_WEIGHT,
    first_party_target: float = PlinthConfig.FIRST_PARTY_TARGET_RATIO,
) -> CoverageScoreResult:
    """Score a bundle 0-10 and gate it against ``threshold``.

    ``score10`` is only present on the result when every gate check passes;
    an insufficient bundle never exposes a number, even though all the
    intermediate quantities are still reported in ``reasons``.
    """
    threshold = threshold or CoverageThreshold()
    evidence = coerce_bundle(bundle)

    if evidence is None or not evidence.items:
        return CoverageScoreResult(
            is_sufficient=False,
            score_label=ScoreLabel.INSUFFICIENT,
            reasons=CoverageReasons(threshold=threshold, failed_checks=[NO_BUNDLE_CHECK]),
        )

    now = now or utc_now()
    if competitor_domains is None:
        competitor_domains = extract_competitor_domains(evidence.primary_url, evidence.company)
    items = evidence.items

    # dict preserves first-seen order of types
    types_present: List[EvidenceType] = list(dict.fromkeys(item.type for item in items))
    types_missing = [t for t in ALL_EVIDENCE_TYPES if t not in types_present]
    type_count = len(types_present)
    total_types = len(ALL_EVIDENCE_TYPES)

    first_party_count = sum(1 for item in items if is_first_party(item, competitor_domains))
    third_party_count = len(items) - first_party_count
    total_sources = first_party_count + third_party_count
    first_party_ratio = first_party_count / total_sources if total_sources else 0.0

    ages: List[int] = []
    dated: List[Tuple[datetime, str]] = []
    for item in items:
        raw, parsed = _item_timestamp(item)
        if parsed is None:
            continue
        dated.append((parsed, raw))
        ages.append(whole_days_between(now, parsed))

    median_age_days = median(ages) if ages else None
    newest_at = max(dated, key=lambda pair: pair[0])[1] if dated else None
    oldest_at = min(dated, key=lambda pair: pair[0])[1] if dated else None

    coverage_score = clamp(type_count / total_types)
    recency_score = compute_recency_score(median_age_days)
    first_party_score = clamp(first_party_ratio / first_party_target) if first_party_target > 0 else 0.0

    final_score01 = (
        coverage_weight * coverage_score
        + recency_weight * recency_score
        + first_party_weight * first_party_score
    )
    score10 = clamp(round_half_up(final_score01 * 10, 1), 0.0, 10.0)
    score_label = label_for_score(score10)

    failed = _failed_checks(threshold, total_sources, type_count, first_party_ratio, median_age_days)
    is_sufficient = not failed

    logger.debug(
        "coverage score: types=%d first_party=%.2f median_age=%s recency=%.3f score10=%.1f failed=%s",
        type_count,
        first_party_ratio,
        median_age_days,
        recency_score,
        score10,
        failed,
    )

    reasons = CoverageReasons(
        types_present=types_present,
        types_missing=types_missing,
        type_count=type_count,
        total_types_considered=total_types,
        first_party_count=first_party_count,
        third_party_count=third_party_count,
        first_party_ratio=first_party_ratio,
        newest_at=newest_at,
        oldest_at=oldest_at,
        median_age_days=median_age_days,
        recency_score=recency_score,
        coverage_score=coverage_score,
        first_party_score=first_party_score,
        threshold=threshold,
        failed_checks=failed,
    )
    if not is_sufficient:
        return CoverageScoreResult(is_sufficient=False, score_label=ScoreLabel.INSUFFICIENT, reasons=reasons)
    return CoverageScoreResult(is_sufficient=True, score10=score10, score_label=score_label, reasons=reasons)


def compute_stepwise_recency(median_age_days: Optional[float]) -> float:
    """Coarse recency buckets used by the minimum-viable-coverage report."""
    if median_age_days is None:
        return 0.5
    if median_age_days <= 30:
        return 1.0
    if median_age_days <= 90:
        return 0.8
    if median_age_days <= 180:
        return 0.6
    if median_age_days <= 365:
        return 0.4
    return 0.2


def meets_minimum_viable_coverage(counts_by_type: Dict[str, int]) -> bool:
    present = [t for t in PlinthConfig.MVC_TYPES if counts_by_type.get(t, 0) > 0]
    if len(present) < PlinthConfig.MVC_MIN_TYPES:
        return False
    return counts_by_type.get("pricing", 0) > 0 or counts_by_type.get("reviews", 0) > 0


def coverage_gaps(counts_by_type: Dict[str, int]) -> List[CoverageGap]:
    gaps: List[CoverageGap] = []
    for type_name in PlinthConfig.MVC_TYPES:
        if counts_by_type.get(type_name, 0) == 0:
            evidence_type = EvidenceType(type_name)
            gaps.append(
                CoverageGap(
                    type=evidence_type,
                    reason=f"No {type_name} evidence found",
                    suggestion=GAP_SUGGESTIONS.get(evidence_type, f"Try searching for {type_name} information"),
                )
            )
    return gaps[: PlinthConfig.MVC_MAX_GAPS]


def compute_evidence_coverage(
    bundle: BundleInput,
    competitor_domains: Optional[Sequence[str]] = None,
    *,
    now: Optional[datetime] = None,
) -> EvidenceCoverage:
    """Minimum-viable-coverage view of a bundle with actionable gaps."""

    evidence = coerce_bundle(bundle)
    items: List[EvidenceItem] = list(evidence.items) if evidence else []
    if competitor_domains is None:
        competitor_domains = (
            extract_competitor_domains(evidence.primary_url, evidence.company) if evidence else []
        )
    now = now or utc_now()

    counter = Counter(item.type.value for item in items)
    counts_by_type = {t.value: counter.get(t.value, 0) for t in ALL_EVIDENCE_TYPES}
    types_present = [t for t in ALL_EVIDENCE_TYPES if counts_by_type[t.value] > 0]

    first_party = sum(1 for item in items if is_first_party(item, competitor_domains))
    first_party_ratio = first_party / len(items) if items else 0.0

    ages = []
    for item in items:
        _, parsed = _item_timestamp(item)
        if parsed is not None:
            ages.append(whole_days_between(now, parsed))
    recency_score = compute_stepwise_recency(median(ages) if ages else None)

    total_types = len(ALL_EVIDENCE_TYPES)
    type_coverage = len(types_present) / total_types
    min_count_coverage = sum(1 for t in types_present if counts_by_type[t.value] >= 2) / total_types
    coverage_score = (type_coverage + min_count_coverage) / 2

    meets_mvc = meets_minimum_viable_coverage(counts_by_type)
    if not meets_mvc:
        label = ScoreLabel.INSUFFICIENT
    elif coverage_score >= 0.7 and recency_score >= 0.7 and first_party_ratio >= 0.3:
        label = ScoreLabel.HIGH
    elif coverage_score >= 0.5 and recency_score >= 0.5:
        label = ScoreLabel.MEDIUM
    else:
        label = ScoreLabel.LOW

    return EvidenceCoverage(
        types_present=types_present,
        counts_by_type=counts_by_type,
        first_party_ratio=first_party_ratio,
        recency_score=recency_score,
        coverage_score=coverage_score,
        meets_minimum_viable=meets_mvc,
        overall_confidence_label=label,
        gaps=coverage_gaps(counts_by_type),
    )


__all__ = [
    "NO_BUNDLE_CHECK",
    "compute_coverage_score",
    "compute_evidence_coverage",
    "compute_recency_score",
    "compute_stepwise_recency",
    "coverage_gaps",
    "label_for_score",
    "meets_minimum_viable_coverage",
]
