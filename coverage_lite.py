"""Lightweight evidence coverage over raw evidence-source rows.

Rows only need a ``competitor_id`` and a ``source_type``; dicts and
attribute-style objects are both accepted. The result feeds project status
and the decision run state machine.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Protocol

from config import PlinthConfig
from evidence_types import normalize_evidence_type
from models import EvidenceCoverageLite

logger = logging.getLogger(__name__)

# Shared reference value for comparisons; defaults handed to callers are fresh instances.
EMPTY_EVIDENCE_COVERAGE_LITE = EvidenceCoverageLite()


class CoverageLiteReader(Protocol):
    def coverage_for_project(self, project_id: str) -> EvidenceCoverageLite: ...


def _field(row: Any, name: str) -> Any:
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def compute_evidence_coverage_lite(
    rows: Optional[Iterable[Any]],
    *,
    min_evidence_types: int = PlinthConfig.MIN_EVIDENCE_TYPES_OVERALL,
    min_competitors_with_evidence: int = PlinthConfig.MIN_COMPETITORS_WITH_EVIDENCE,
) -> EvidenceCoverageLite:
    type_counts: Dict[str, int] = {}
    competitor_counts: Dict[str, int] = {}
    total = 0

    for row in rows or []:
        total += 1
        evidence_type = normalize_evidence_type(_field(row, "source_type")).value
        type_counts[evidence_type] = type_counts.get(evidence_type, 0) + 1

        competitor_id = _field(row, "competitor_id")
        if isinstance(competitor_id, str) and competitor_id.strip():
            cid = competitor_id.strip()
            competitor_counts[cid] = competitor_counts.get(cid, 0) + 1

    types_present = sorted(type_counts)
    competitors_with_evidence = sorted(competitor_counts)

    enough_types = len(types_present) >= min_evidence_types
    enough_competitors = len(competitors_with_evidence) >= min_competitors_with_evidence

    reasons = []
    if total == 0:
        reasons.append("No public evidence collected yet.")
    else:
        if not enough_types:
            reasons.append(f"Need evidence across at least {min_evidence_types} evidence types.")
        if not enough_competitors:
            reasons.append(f"Need evidence for at least {min_competitors_with_evidence} competitors.")

    logger.debug("Coverage-lite: %d rows, %d types, %d competitors", total, len(types_present), len(competitor_counts))
    return EvidenceCoverageLite(
        total_sources=total,
        evidence_types_present=types_present,
        evidence_type_counts=type_counts,
        competitor_ids_with_evidence=competitors_with_evidence,
        competitor_evidence_counts=competitor_counts,
        is_evidence_sufficient=total > 0 and enough_types and enough_competitors,
        reasons_missing=reasons,
    )


__all__ = [
    "CoverageLiteReader",
    "EMPTY_EVIDENCE_COVERAGE_LITE",
    "compute_evidence_coverage_lite",
]
