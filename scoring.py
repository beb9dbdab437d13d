"""
Weighted multi-criteria and opportunity scoring.

All functions are deterministic: the same criteria, dimension scores and
vocabulary inputs always produce the same numbers. Weighted competitor
scores keep full decimal precision; rounding is left to presentation.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, Optional, Union

from config import PlinthConfig
from models import (
    CriterionDimensionScores,
    CriterionScore,
    JtbdItem,
    JtbdScoreReasons,
    JtbdScoreResult,
    ScoreLabel,
    ScoringCriterion,
)
from score_utils import clamp, round_half_up

logger = logging.getLogger(__name__)

POSITIVE_DIMENSIONS = ("discovery_support", "execution_support", "reliability", "flexibility")


def aggregate_dimension_scores(dimensions: CriterionDimensionScores) -> float:
    """Mean of the four positive dimensions and inverted friction, in [0, 1]."""
    values = [getattr(dimensions, name) for name in POSITIVE_DIMENSIONS]
    values.append(1.0 - dimensions.friction)
    return clamp(sum(values) / len(values))


def compute_weighted_competitor_scores(
    criteria: Iterable[ScoringCriterion],
    scores: Iterable[CriterionScore],
) -> Dict[str, float]:
    """Weighted 0-100 score per competitor.

    Criterion weights are normalized to sum to 1. A competitor with no score
    for a criterion gets no contribution from it (missing is not zero-filled
    into the average, it is simply absent from the sum). Competitors appear
    in the order they are first seen in ``scores``. With zero total weight
    no criterion contributes, so every competitor scores 0.
    """
    criteria = list(criteria)
    total_weight = sum(c.weight for c in criteria)
    if total_weight <= 0:
        logger.warning("Criteria have zero total weight; every competitor scores 0")
        weights: Dict[str, float] = {}
    else:
        weights = {c.id: c.weight / total_weight for c in criteria}

    by_competitor: "OrderedDict[str, Dict[str, CriterionDimensionScores]]" = OrderedDict()
    for score in scores:
        by_competitor.setdefault(score.competitor_name, {})[score.criteria_id] = score.dimensions

    totals: Dict[str, float] = {}
    for competitor, dims_by_criterion in by_competitor.items():
        total = 0.0
        for criterion_id, weight in weights.items():
            dims = dims_by_criterion.get(criterion_id)
            if dims is None:
                continue
            total += aggregate_dimension_scores(dims) * 100 * weight
        totals[competitor] = total
        logger.debug("Weighted score for %s: %.4f", competitor, total)
    return totals


def compute_jtbd_opportunity_score(importance_score: float, satisfaction_score: float) -> int:
    """Opportunity gap for a job: high importance and low satisfaction score highest."""
    opportunity = round_half_up(importance_score * 20 + (5 - satisfaction_score) * 20)
    return int(clamp(round_half_up(opportunity / 2), 0, 100))


def _lookup(table: Dict[str, int], value: str, name: str) -> int:
    if value not in table:
        logger.warning("Unknown %s %r contributes 0 points (expected one of %s)", name, value, sorted(table))
        return 0
    return table[value]


def compute_opportunity_score(
    impact: str,
    effort: str,
    confidence: str,
    linked_jtbd_score: Optional[float] = None,
) -> int:
    """Score an opportunity from its impact/effort/confidence vocabulary.

    impact: low | med | high
    effort: S | M | L
    confidence: low | med | high
    linked_jtbd_score: optional 0-100 JTBD opportunity score, contributes up to 20 points

    A value outside its vocabulary adds 0 points and is logged.
    """
    score = 0
    score += _lookup(PlinthConfig.IMPACT_POINTS, impact, "impact")
    score += _lookup(PlinthConfig.EFFORT_POINTS, effort, "effort")
    score += _lookup(PlinthConfig.CONFIDENCE_POINTS, confidence, "confidence")
    if linked_jtbd_score is not None:
        score += int(round_half_up(linked_jtbd_score * PlinthConfig.JTBD_LINK_FACTOR))
    return int(clamp(score, 0, 100))


def _statement_points(length: int) -> int:
    if length < 40:
        return 0
    if length < 80:
        return 1
    if length < 120:
        return 2
    return 3


def _jtbd_label(score10: float) -> ScoreLabel:
    for label, floor in sorted(PlinthConfig.JTBD_LABEL_BANDS.items(), key=lambda item: item[1], reverse=True):
        if score10 >= floor:
            return ScoreLabel(label)
    return ScoreLabel.INSUFFICIENT


def compute_jtbd_score(jtbd: Union[JtbdItem, Dict[str, Any], None]) -> JtbdScoreResult:
    """Completeness score (0-10) for a single Job To Be Done.

    Points: outcomes (max 3), constraints (max 2), who and context (1 each),
    statement length (0-3). ``score10`` is only reported when the job has a
    long enough statement, at least one outcome, and a who or a context.
    """
    if not jtbd:
        return JtbdScoreResult(
            is_sufficient=False,
            score_label=ScoreLabel.INSUFFICIENT,
            reasons=JtbdScoreReasons(failed_checks=["No JTBD item provided"]),
        )
    if not isinstance(jtbd, JtbdItem):
        jtbd = JtbdItem.model_validate(jtbd)

    statement_length = len(jtbd.job_statement or "")
    has_who = bool(jtbd.who and jtbd.who.strip())
    has_context = bool(jtbd.context and jtbd.context.strip())
    outcomes_count = len(jtbd.desired_outcomes)
    constraints_count = len(jtbd.constraints)

    min_chars = PlinthConfig.JTBD_MIN_STATEMENT_CHARS
    failed = []
    if statement_length < min_chars:
        failed.append(f"Statement too short ({statement_length} chars, need {min_chars}+)")
    if outcomes_count < 1:
        failed.append("Need at least 1 desired outcome")
    if not has_context and not has_who:
        failed.append("Need either context or who field")

    reasons = JtbdScoreReasons(
        has_who=has_who,
        has_context=has_context,
        outcomes_count=outcomes_count,
        constraints_count=constraints_count,
        statement_length=statement_length,
        failed_checks=failed,
    )
    if failed:
        return JtbdScoreResult(is_sufficient=False, score_label=ScoreLabel.INSUFFICIENT, reasons=reasons)

    total = (
        min(outcomes_count, 3)
        + min(constraints_count, 2)
        + int(has_who)
        + int(has_context)
        + _statement_points(statement_length)
    )
    score10 = round_half_up(total, 1)
    return JtbdScoreResult(is_sufficient=True, score10=score10, score_label=_jtbd_label(score10), reasons=reasons)


__all__ = [
    "aggregate_dimension_scores",
    "compute_jtbd_opportunity_score",
    "compute_jtbd_score",
    "compute_opportunity_score",
    "compute_weighted_competitor_scores",
]
