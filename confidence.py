"""Deterministic decision-confidence scoring for individual opportunities."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from config import PlinthConfig
from date_utils import first_parseable, utc_now, whole_days_between
from models import (
    AggregateConfidence,
    Citation,
    DecisionConfidence,
    DecisionConfidenceLevel,
    Opportunity,
)

logger = logging.getLogger(__name__)

OpportunityInput = Union[Opportunity, Dict[str, Any]]


@dataclass
class CitationFacts:
    """What the de-duplicated citations of one opportunity actually establish."""

    evidence_count: int = 0
    source_types: List[str] = field(default_factory=list)
    newest: Optional[datetime] = None
    days_since_newest: Optional[int] = None


def _coerce_opportunity(opportunity: OpportunityInput) -> Opportunity:
    if isinstance(opportunity, Opportunity):
        return opportunity
    try:
        return Opportunity.model_validate(opportunity or {})
    except ValidationError as exc:
        logger.warning("Unreadable opportunity payload treated as empty: %s", exc)
        return Opportunity()


def collect_citations(opportunity: Opportunity) -> List[Citation]:
    """Proof-point citations followed by top-level ones, unique by URL.

    A URL keeps the position of its first occurrence and the content of its
    last one.
    """
    merged: Dict[str, Citation] = {}
    for proof in opportunity.proof_points:
        for citation in proof.citations:
            if citation.url:
                merged[citation.url] = citation
    for citation in opportunity.citations:
        if citation.url:
            merged[citation.url] = citation
    return list(merged.values())


def _extracted_at(citation: Citation) -> Optional[datetime]:
    return first_parseable([citation.extracted_at, citation.extracted_at_alt])


def citation_facts(citations: Iterable[Citation], now: datetime) -> CitationFacts:
    citations = list(citations)
    source_types = list(dict.fromkeys(c.source_type for c in citations if c.source_type))
    dates = [d for d in (_extracted_at(c) for c in citations) if d is not None]
    newest = max(dates) if dates else None
    return CitationFacts(
        evidence_count=len(citations),
        source_types=source_types,
        newest=newest,
        days_since_newest=whole_days_between(now, newest) if newest else None,
    )


def describe_recency(days_ago: Optional[int]) -> Optional[str]:
    if days_ago is None:
        return None
    if days_ago <= 0:
        return "Today"
    if days_ago == 1:
        return "1 day ago"
    if days_ago < 30:
        return f"{days_ago} days ago"
    if days_ago < 90:
        weeks = days_ago // 7
        return f"{weeks} week{'s' if weeks != 1 else ''} ago"
    return "90+ days ago"


def _recency_confidence(opportunity: Opportunity) -> Optional[float]:
    if opportunity.scoring is None:
        return None
    breakdown = opportunity.scoring.breakdown
    value = breakdown.get("recencyConfidence", breakdown.get("recency_confidence"))
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _type_label(source_type: str) -> str:
    return source_type.replace("_", " ")


def _build_reasons(facts: CitationFacts, recency_confidence: Optional[float], has_breakdown: bool) -> List[str]:
    reasons: List[str] = []
    count = facts.evidence_count
    if count > 0:
        reasons.append(f"{count} source{'s' if count != 1 else ''}")

    type_count = len(facts.source_types)
    if type_count >= 3:
        labels = ", ".join(_type_label(t) for t in facts.source_types[:3])
        reasons.append(f"{labels} signals")
    elif type_count == 2:
        labels = " + ".join(_type_label(t) for t in facts.source_types)
        reasons.append(f"{labels} signals")

    days = facts.days_since_newest
    if days is not None:
        if days <= PlinthConfig.DECISION_HIGH_MAX_DAYS:
            reasons.append("Signals are recent and consistent")
        elif days <= PlinthConfig.DECISION_MODERATE_MAX_DAYS:
            reasons.append("Signals from last quarter")

    if recency_confidence is not None and recency_confidence >= PlinthConfig.DECISION_HIGH_RECENCY_CONFIDENCE:
        reasons.append("Strong external evidence")
    if has_breakdown:
        reasons.append("Detailed score breakdown")
    return reasons


def _level(
    facts: CitationFacts,
    recency_confidence: Optional[float],
    *,
    high_evidence: int = PlinthConfig.DECISION_HIGH_EVIDENCE,
    high_source_types: int = PlinthConfig.DECISION_HIGH_SOURCE_TYPES,
    high_max_days: int = PlinthConfig.DECISION_HIGH_MAX_DAYS,
    high_recency_confidence: float = PlinthConfig.DECISION_HIGH_RECENCY_CONFIDENCE,
    moderate_evidence: int = PlinthConfig.DECISION_MODERATE_EVIDENCE,
    moderate_source_types: int = PlinthConfig.DECISION_MODERATE_SOURCE_TYPES,
    moderate_max_days: int = PlinthConfig.DECISION_MODERATE_MAX_DAYS,
) -> DecisionConfidenceLevel:
    days = facts.days_since_newest
    type_count = len(facts.source_types)

    recent = days is not None and days <= high_max_days
    strong_recency = recency_confidence is not None and recency_confidence >= high_recency_confidence
    if facts.evidence_count >= high_evidence and type_count >= high_source_types and (recent or strong_recency):
        return DecisionConfidenceLevel.HIGH

    if (
        facts.evidence_count >= moderate_evidence
        and type_count >= moderate_source_types
        and (facts.newest is None or days <= moderate_max_days)
    ):
        return DecisionConfidenceLevel.MODERATE

    return DecisionConfidenceLevel.EXPLORATORY


def compute_decision_confidence(
    opportunity: OpportunityInput,
    *,
    now: Optional[datetime] = None,
    **level_thresholds: Any,
) -> DecisionConfidence:
    """Confidence tier for one opportunity, with reasons backed by its citations.

    ``level_thresholds`` override the tier cutoffs (``high_evidence``,
    ``high_source_types``, ``high_max_days``, ``high_recency_confidence``,
    ``moderate_evidence``, ``moderate_source_types``, ``moderate_max_days``).
    """

    now = now or utc_now()
    opp = _coerce_opportunity(opportunity)
    facts = citation_facts(collect_citations(opp), now)
    has_breakdown = bool(opp.scoring and opp.scoring.breakdown)
    recency_confidence = _recency_confidence(opp)

    if facts.evidence_count == 0 and not has_breakdown:
        level = DecisionConfidenceLevel.EXPLORATORY
        reasons = [PlinthConfig.DECISION_EARLY_SIGNAL_REASON]
    else:
        level = _level(facts, recency_confidence, **level_thresholds)
        reasons = _build_reasons(facts, recency_confidence, has_breakdown) or [
            PlinthConfig.DECISION_EARLY_SIGNAL_REASON
        ]

    return DecisionConfidence(
        level=level,
        reasons=reasons,
        evidence_count=facts.evidence_count,
        evidence_recency=describe_recency(facts.days_since_newest),
        source_type_count=len(facts.source_types),
        has_score_breakdown=has_breakdown,
    )


def _describe_average_recency(days_ago: Optional[int]) -> Optional[str]:
    if days_ago is None:
        return None
    if days_ago > 90:
        return "last 90 days"
    if days_ago <= 0:
        return "today"
    if days_ago == 1:
        return "1 day ago"
    if days_ago < 30:
        return f"{days_ago} days ago"
    weeks = days_ago // 7
    return f"{weeks} week{'s' if weeks != 1 else ''} ago"


def compute_aggregate_confidence(
    opportunities: Iterable[OpportunityInput],
    *,
    now: Optional[datetime] = None,
) -> AggregateConfidence:
    """Fold per-opportunity confidence into one summary level."""

    now = now or utc_now()
    opps = [_coerce_opportunity(o) for o in opportunities or []]
    if not opps:
        return AggregateConfidence(overall_level=DecisionConfidenceLevel.EXPLORATORY)

    results = [compute_decision_confidence(o, now=now) for o in opps]
    total_evidence = sum(r.evidence_count for r in results)

    source_types = set()
    newest: Optional[datetime] = None
    for opp in opps:
        facts = citation_facts(collect_citations(opp), now)
        source_types.update(facts.source_types)
        if facts.newest and (newest is None or facts.newest > newest):
            newest = facts.newest

    high = sum(1 for r in results if r.level == DecisionConfidenceLevel.HIGH)
    moderate = sum(1 for r in results if r.level == DecisionConfidenceLevel.MODERATE)
    n = len(results)

    if high > moderate + n / 3:
        overall = DecisionConfidenceLevel.HIGH
    elif moderate > 0 or (high > 0 and n <= 3):
        overall = DecisionConfidenceLevel.MODERATE
    else:
        overall = DecisionConfidenceLevel.EXPLORATORY

    return AggregateConfidence(
        overall_level=overall,
        total_evidence_count=total_evidence,
        source_types=sorted(source_types),
        average_recency=_describe_average_recency(whole_days_between(now, newest) if newest else None),
    )


__all__ = [
    "CitationFacts",
    "citation_facts",
    "collect_citations",
    "compute_aggregate_confidence",
    "compute_decision_confidence",
    "describe_recency",
]
