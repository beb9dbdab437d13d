from datetime import datetime, timedelta, timezone

import pytest

from gates import compute_confidence, compute_coverage, directional_from_score, gate_score, should_show_numeric_score
from models import ConfidenceLevel, CoverageStatus, DirectionalSignal, EvidenceSummary

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _days_ago(days):
    return (NOW - timedelta(days=days)).isoformat()


def _summary(total, type_count, newest=None):
    return EvidenceSummary(
        total_citations=total,
        source_types=[f"type{i}" for i in range(type_count)],
        newest_citation_date=newest,
    )


def _citations(count, types, days_ago=None):
    citations = []
    for i in range(count):
        citation = {"url": f"https://example{i}.com", "source_type": types[i % len(types)]}
        if days_ago is not None:
            citation["date"] = _days_ago(days_ago)
        citations.append(citation)
    return citations


@pytest.mark.parametrize(
    "total, type_count, expected",
    [
        (0, 0, CoverageStatus.INSUFFICIENT),
        (1, 2, CoverageStatus.INSUFFICIENT),
        (5, 1, CoverageStatus.INSUFFICIENT),
        (2, 2, CoverageStatus.PARTIAL),
        (4, 2, CoverageStatus.PARTIAL),
        (3, 3, CoverageStatus.PARTIAL),
        (4, 3, CoverageStatus.COMPLETE),
    ],
)
def test_compute_coverage_thresholds(total, type_count, expected):
    assert compute_coverage(_summary(total, type_count)) == expected


def test_confidence_high_requires_recent_broad_evidence():
    assert compute_confidence(_summary(8, 4, _days_ago(10)), now=NOW) == ConfidenceLevel.HIGH
    assert compute_confidence(_summary(8, 4, _days_ago(61)), now=NOW) == ConfidenceLevel.MODERATE
    assert compute_confidence(_summary(8, 4), now=NOW) == ConfidenceLevel.MODERATE


def test_complete_coverage_without_dates_is_moderate():
    assert compute_confidence(_summary(4, 3), now=NOW) == ConfidenceLevel.MODERATE


def test_stale_or_unparseable_dates_fall_to_low():
    assert compute_confidence(_summary(4, 3, _days_ago(200)), now=NOW) == ConfidenceLevel.LOW
    assert compute_confidence(_summary(4, 3, "not-a-date"), now=NOW) == ConfidenceLevel.LOW


def test_moderate_from_volume_and_recency():
    assert compute_confidence(_summary(4, 1, _days_ago(100)), now=NOW) == ConfidenceLevel.MODERATE
    assert compute_confidence(_summary(3, 1, _days_ago(100)), now=NOW) == ConfidenceLevel.LOW


def test_confidence_cutoffs_can_be_overridden():
    summary = _summary(8, 4, _days_ago(61))
    assert compute_confidence(summary, now=NOW, high_max_days=90) == ConfidenceLevel.HIGH
    assert compute_confidence(summary, now=NOW, high_citations=9) == ConfidenceLevel.MODERATE
    volume_only = _summary(4, 1, _days_ago(100))
    assert compute_confidence(volume_only, now=NOW, moderate_max_days=60) == ConfidenceLevel.LOW
    assert compute_confidence(volume_only, now=NOW, moderate_citations=5) == ConfidenceLevel.LOW


def test_should_show_numeric_score():
    assert should_show_numeric_score(CoverageStatus.COMPLETE, ConfidenceLevel.MODERATE)
    assert should_show_numeric_score(CoverageStatus.COMPLETE, ConfidenceLevel.HIGH)
    assert not should_show_numeric_score(CoverageStatus.COMPLETE, ConfidenceLevel.LOW)
    assert not should_show_numeric_score(CoverageStatus.PARTIAL, ConfidenceLevel.HIGH)


@pytest.mark.parametrize(
    "score, expected",
    [
        (None, DirectionalSignal.UNCLEAR),
        (0.5, DirectionalSignal.UNCLEAR),
        (1, DirectionalSignal.WEAK),
        (3.9, DirectionalSignal.WEAK),
        (4, DirectionalSignal.MIXED),
        (7, DirectionalSignal.STRONG),
        (9.5, DirectionalSignal.STRONG),
    ],
)
def test_directional_from_score(score, expected):
    assert directional_from_score(score) == expected


def test_gate_score_shows_defensible_number():
    gated = gate_score(7.8, _citations(8, ["pricing", "reviews", "docs", "jobs"], days_ago=5), now=NOW)
    assert gated.coverage == CoverageStatus.COMPLETE
    assert gated.confidence == ConfidenceLevel.HIGH
    assert gated.show_numeric is True
    assert gated.score == 7.8
    assert gated.directional == DirectionalSignal.STRONG
    assert gated.summary.total_citations == 8


def test_gate_score_suppresses_number_but_keeps_direction():
    gated = gate_score(5.5, _citations(2, ["pricing", "reviews"]), now=NOW)
    assert gated.coverage == CoverageStatus.PARTIAL
    assert gated.show_numeric is False
    assert gated.score is None
    assert gated.directional == DirectionalSignal.MIXED


def test_gate_score_never_leaks_score_when_gated_off():
    cases = [
        [],
        _citations(3, ["pricing"]),
        _citations(4, ["pricing", "reviews", "docs"], days_ago=400),
        _citations(10, ["pricing", "reviews", "docs", "jobs"], days_ago=2),
    ]
    for citations in cases:
        gated = gate_score(6.0, citations, now=NOW)
        if gated.score is not None:
            assert gated.coverage == CoverageStatus.COMPLETE
            assert gated.confidence in (ConfidenceLevel.MODERATE, ConfidenceLevel.HIGH)
