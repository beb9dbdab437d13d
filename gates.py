"""Evidence gating for numeric score display.

A numeric score is only shown when the citations behind it are broad and
recent enough to defend it. Otherwise callers get a directional label
(strong/mixed/weak/unclear) computed from the same underlying score.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from citations import summarize_citations
from config import PlinthConfig
from date_utils import days_since, utc_now
from models import ConfidenceLevel, CoverageStatus, DirectionalSignal, EvidenceSummary, GatedScore


def compute_coverage(
    summary: EvidenceSummary,
    *,
    min_partial: int = PlinthConfig.CITATION_MIN_PARTIAL,
    min_partial_types: int = PlinthConfig.CITATION_MIN_PARTIAL_TYPES,
    min_complete: int = PlinthConfig.CITATION_MIN_COMPLETE,
    min_complete_types: int = PlinthConfig.CITATION_MIN_COMPLETE_TYPES,
) -> CoverageStatus:
    total = summary.total_citations
    type_count = len(summary.source_types)
    if total < min_partial or type_count < min_partial_types:
        return CoverageStatus.INSUFFICIENT
    if total >= min_complete and type_count >= min_complete_types:
        return CoverageStatus.COMPLETE
    return CoverageStatus.PARTIAL


def compute_confidence(
    summary: EvidenceSummary,
    *,
    now: Optional[datetime] = None,
    high_citations: int = PlinthConfig.CONFIDENCE_HIGH_CITATIONS,
    high_types: int = PlinthConfig.CONFIDENCE_HIGH_TYPES,
    high_max_days: int = PlinthConfig.CONFIDENCE_HIGH_MAX_DAYS,
    moderate_citations: int = PlinthConfig.CONFIDENCE_MODERATE_CITATIONS,
    moderate_max_days: int = PlinthConfig.CONFIDENCE_MODERATE_MAX_DAYS,
) -> ConfidenceLevel:
    """Confidence in a summary's evidence.

    high: many citations across many types with a recent newest date.
    moderate: complete coverage that is undated or reasonably recent, or
    enough citations with a reasonably recent newest date.
    An unparseable newest date counts as absent for recency, but does not
    earn the undated allowance.
    """
    now = now or utc_now()
    total = summary.total_citations
    type_count = len(summary.source_types)
    days_ago = days_since(summary.newest_citation_date, now)

    if (
        total >= high_citations
        and type_count >= high_types
        and days_ago is not None
        and days_ago <= high_max_days
    ):
        return ConfidenceLevel.HIGH

    recent = days_ago is not None and days_ago <= moderate_max_days
    if compute_coverage(summary) == CoverageStatus.COMPLETE:
        if not summary.newest_citation_date or recent:
            return ConfidenceLevel.MODERATE

    if total >= moderate_citations and recent:
        return ConfidenceLevel.MODERATE

    return ConfidenceLevel.LOW


def should_show_numeric_score(coverage: CoverageStatus, confidence: ConfidenceLevel) -> bool:
    return coverage == CoverageStatus.COMPLETE and confidence in (ConfidenceLevel.MODERATE, ConfidenceLevel.HIGH)


def directional_from_score(score: Optional[float]) -> DirectionalSignal:
    if score is None:
        return DirectionalSignal.UNCLEAR
    for label, floor in PlinthConfig.directional_bands():
        if score >= floor:
            return DirectionalSignal(label)
    return DirectionalSignal.UNCLEAR


def gate_score(
    score: Optional[float],
    citations: Optional[Iterable[Any]],
    *,
    now: Optional[datetime] = None,
) -> GatedScore:
    """Decide whether ``score`` may be displayed given its citations.

    The directional label always comes from the original score, so a
    suppressed number can still be described as a "mixed signal".
    """
    summary = summarize_citations(citations)
    coverage = compute_coverage(summary)
    confidence = compute_confidence(summary, now=now)
    show_numeric = should_show_numeric_score(coverage, confidence)

    return GatedScore(
        coverage=coverage,
        confidence=confidence,
        show_numeric=show_numeric,
        score=score if show_numeric else None,
        directional=directional_from_score(score),
        summary=summary,
    )


__all__ = [
    "compute_confidence",
    "compute_coverage",
    "directional_from_score",
    "gate_score",
    "should_show_numeric_score",
]
