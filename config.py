"""
Plinth Engine Configuration

Policy constants for evidence coverage, score gating, decision confidence and
run-state derivation. Every value can be overridden through a ``PLINTH_*``
environment variable (or a ``.env`` file) so thresholds can be tuned per
deployment without touching the formulas that consume them.
"""

import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()


class PlinthConfig:
    """Policy constants used across the scoring and gating engine."""

    # Closed evidence-type universe (order is stable and used for reporting)
    EVIDENCE_TYPES: List[str] = [
        "pricing",
        "docs",
        "reviews",
        "jobs",
        "changelog",
        "blog",
        "community",
        "security",
        "other",
    ]

    # Coverage score weights
    COVERAGE_WEIGHT = float(os.getenv("PLINTH_COVERAGE_WEIGHT", "0.45"))
    RECENCY_WEIGHT = float(os.getenv("PLINTH_RECENCY_WEIGHT", "0.35"))
    FIRST_PARTY_WEIGHT = float(os.getenv("PLINTH_FIRST_PARTY_WEIGHT", "0.20"))
    FIRST_PARTY_TARGET_RATIO = float(os.getenv("PLINTH_FIRST_PARTY_TARGET", "0.6"))

    # Piecewise-linear recency curve on median age (days)
    RECENCY_FRESH_DAYS = float(os.getenv("PLINTH_RECENCY_FRESH_DAYS", "14"))
    RECENCY_AGING_DAYS = float(os.getenv("PLINTH_RECENCY_AGING_DAYS", "90"))
    RECENCY_STALE_DAYS = float(os.getenv("PLINTH_RECENCY_STALE_DAYS", "180"))
    RECENCY_AGING_SCORE = float(os.getenv("PLINTH_RECENCY_AGING_SCORE", "0.2"))
    RECENCY_UNKNOWN_SCORE = float(os.getenv("PLINTH_RECENCY_UNKNOWN_SCORE", "0.5"))

    # score10 label bands
    SCORE_LABEL_BANDS: Dict[str, float] = {
        "High": float(os.getenv("PLINTH_LABEL_HIGH", "7.5")),
        "Medium": float(os.getenv("PLINTH_LABEL_MEDIUM", "5.0")),
        "Low": float(os.getenv("PLINTH_LABEL_LOW", "2.5")),
    }

    # Default coverage gate
    GATE_MIN_TOTAL_SOURCES = int(os.getenv("PLINTH_GATE_MIN_SOURCES", "5"))
    GATE_MIN_EVIDENCE_TYPES = int(os.getenv("PLINTH_GATE_MIN_TYPES", "3"))
    GATE_MIN_FIRST_PARTY_RATIO = float(os.getenv("PLINTH_GATE_MIN_FIRST_PARTY", "0.2"))
    GATE_MAX_MEDIAN_AGE_DAYS = float(os.getenv("PLINTH_GATE_MAX_MEDIAN_AGE", "180"))

    # Minimum viable coverage (MVC) report
    MVC_TYPES: List[str] = ["pricing", "reviews", "changelog", "jobs", "docs"]
    MVC_MIN_TYPES = int(os.getenv("PLINTH_MVC_MIN_TYPES", "3"))
    MVC_MAX_GAPS = int(os.getenv("PLINTH_MVC_MAX_GAPS", "3"))

    # Citation coverage / confidence classification
    CITATION_MIN_PARTIAL = int(os.getenv("PLINTH_CITATION_MIN_PARTIAL", "2"))
    CITATION_MIN_PARTIAL_TYPES = int(os.getenv("PLINTH_CITATION_MIN_PARTIAL_TYPES", "2"))
    CITATION_MIN_COMPLETE = int(os.getenv("PLINTH_CITATION_MIN_COMPLETE", "4"))
    CITATION_MIN_COMPLETE_TYPES = int(os.getenv("PLINTH_CITATION_MIN_COMPLETE_TYPES", "3"))
    CONFIDENCE_HIGH_CITATIONS = int(os.getenv("PLINTH_CONFIDENCE_HIGH_CITATIONS", "8"))
    CONFIDENCE_HIGH_TYPES = int(os.getenv("PLINTH_CONFIDENCE_HIGH_TYPES", "4"))
    CONFIDENCE_HIGH_MAX_DAYS = int(os.getenv("PLINTH_CONFIDENCE_HIGH_DAYS", "60"))
    CONFIDENCE_MODERATE_CITATIONS = int(os.getenv("PLINTH_CONFIDENCE_MODERATE_CITATIONS", "4"))
    CONFIDENCE_MODERATE_MAX_DAYS = int(os.getenv("PLINTH_CONFIDENCE_MODERATE_DAYS", "120"))

    # Directional labels shown in place of a suppressed numeric score
    DIRECTIONAL_BANDS: Dict[str, float] = {
        "strong": float(os.getenv("PLINTH_DIRECTIONAL_STRONG", "7")),
        "mixed": float(os.getenv("PLINTH_DIRECTIONAL_MIXED", "4")),
        "weak": float(os.getenv("PLINTH_DIRECTIONAL_WEAK", "1")),
    }

    # Per-opportunity decision confidence
    DECISION_HIGH_EVIDENCE = int(os.getenv("PLINTH_DECISION_HIGH_EVIDENCE", "8"))
    DECISION_HIGH_SOURCE_TYPES = int(os.getenv("PLINTH_DECISION_HIGH_TYPES", "3"))
    DECISION_HIGH_MAX_DAYS = int(os.getenv("PLINTH_DECISION_HIGH_DAYS", "30"))
    DECISION_HIGH_RECENCY_CONFIDENCE = float(os.getenv("PLINTH_DECISION_RECENCY_CONFIDENCE", "7"))
    DECISION_MODERATE_EVIDENCE = int(os.getenv("PLINTH_DECISION_MODERATE_EVIDENCE", "4"))
    DECISION_MODERATE_SOURCE_TYPES = int(os.getenv("PLINTH_DECISION_MODERATE_TYPES", "2"))
    DECISION_MODERATE_MAX_DAYS = int(os.getenv("PLINTH_DECISION_MODERATE_DAYS", "90"))
    DECISION_EARLY_SIGNAL_REASON = "Early signal, worth validating"

    # Opportunity scoring tables
    IMPACT_POINTS: Dict[str, int] = {"low": 20, "med": 50, "high": 80}
    EFFORT_POINTS: Dict[str, int] = {"S": 15, "M": 0, "L": -15}
    CONFIDENCE_POINTS: Dict[str, int] = {"low": -10, "med": 0, "high": 10}
    JTBD_LINK_FACTOR = float(os.getenv("PLINTH_JTBD_LINK_FACTOR", "0.2"))

    # JTBD completeness score
    JTBD_MIN_STATEMENT_CHARS = int(os.getenv("PLINTH_JTBD_MIN_STATEMENT", "40"))
    JTBD_LABEL_BANDS: Dict[str, float] = {"High": 8.0, "Medium": 6.0, "Low": 4.0}

    # Decision run state machine
    MIN_EVIDENCE_COVERAGE = int(os.getenv("PLINTH_MIN_EVIDENCE_COVERAGE", "5"))
    MIN_COMPETITORS_COVERED = int(os.getenv("PLINTH_MIN_COMPETITORS_COVERED", "2"))
    MIN_COMPETITORS_FOR_ANALYSIS = int(os.getenv("PLINTH_MIN_COMPETITORS", "3"))

    # Coverage-lite (project status)
    MIN_EVIDENCE_TYPES_OVERALL = int(os.getenv("PLINTH_MIN_EVIDENCE_TYPES_OVERALL", "2"))
    MIN_COMPETITORS_WITH_EVIDENCE = int(os.getenv("PLINTH_MIN_COMPETITORS_WITH_EVIDENCE", "2"))

    # Evidence report / QC
    REPORT_TOP_DOMAINS = int(os.getenv("PLINTH_REPORT_TOP_DOMAINS", "10"))
    LOG_DIR = os.getenv("PLINTH_LOG_DIR", "plinth_logs")

    @classmethod
    def score_label_bands(cls) -> List[tuple]:
        return sorted(cls.SCORE_LABEL_BANDS.items(), key=lambda item: item[1], reverse=True)

    @classmethod
    def directional_bands(cls) -> List[tuple]:
        return sorted(cls.DIRECTIONAL_BANDS.items(), key=lambda item: item[1], reverse=True)
