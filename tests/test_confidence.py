from datetime import datetime, timedelta, timezone

import pytest

from confidence import collect_citations, compute_aggregate_confidence, compute_decision_confidence, describe_recency
from models import DecisionConfidenceLevel, Opportunity

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _citations(count, types, days_ago=None, prefix="c"):
    citations = []
    for i in range(count):
        citation = {"url": f"https://{prefix}{i}.example.com", "source_type": types[i % len(types)]}
        if days_ago is not None:
            citation["extracted_at"] = (NOW - timedelta(days=days_ago)).isoformat()
        citations.append(citation)
    return citations


def test_empty_opportunity_is_early_signal():
    confidence = compute_decision_confidence({}, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.EXPLORATORY
    assert confidence.reasons == ["Early signal, worth validating"]
    assert confidence.evidence_count == 0
    assert confidence.evidence_recency is None
    assert confidence.has_score_breakdown is False


def test_high_confidence_with_recent_diverse_evidence():
    opportunity = {"citations": _citations(8, ["pricing", "reviews", "marketing_site"], days_ago=5)}
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.HIGH
    assert confidence.reasons == [
        "8 sources",
        "pricing, reviews, marketing site signals",
        "Signals are recent and consistent",
    ]
    assert confidence.evidence_recency == "5 days ago"
    assert confidence.source_type_count == 3


def test_citations_are_deduplicated_across_proof_points():
    shared = {"url": "https://acme.com/pricing", "source_type": "pricing"}
    opportunity = Opportunity.model_validate(
        {
            "proof_points": [{"claim": "Cheaper", "citations": [shared, {"url": "https://g2.com/acme"}]}],
            "citations": [shared, {"title": "no url"}],
        }
    )
    urls = [c.url for c in collect_citations(opportunity)]
    assert urls == ["https://acme.com/pricing", "https://g2.com/acme"]
    assert compute_decision_confidence(opportunity, now=NOW).evidence_count == 2


def test_duplicate_url_keeps_last_citation():
    opportunity = Opportunity.model_validate(
        {
            "proof_points": [
                {
                    "citations": [
                        {"url": "https://acme.com/pricing", "source_type": "reviews"},
                        {"url": "https://g2.com/acme", "source_type": "reviews"},
                    ]
                }
            ],
            "citations": [{"url": "https://acme.com/pricing", "source_type": "pricing"}],
        }
    )
    citations = collect_citations(opportunity)
    assert [c.url for c in citations] == ["https://acme.com/pricing", "https://g2.com/acme"]
    assert citations[0].source_type == "pricing"
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.source_type_count == 2


def test_tier_cutoffs_can_be_overridden():
    opportunity = {"citations": _citations(4, ["pricing", "reviews"], days_ago=5)}
    assert compute_decision_confidence(opportunity, now=NOW).level == DecisionConfidenceLevel.MODERATE
    relaxed = compute_decision_confidence(opportunity, now=NOW, high_evidence=4, high_source_types=2)
    assert relaxed.level == DecisionConfidenceLevel.HIGH
    strict = compute_decision_confidence(opportunity, now=NOW, moderate_evidence=5)
    assert strict.level == DecisionConfidenceLevel.EXPLORATORY


def test_moderate_with_undated_evidence():
    opportunity = {"citations": _citations(4, ["pricing", "reviews"])}
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.MODERATE
    assert confidence.reasons == ["4 sources", "pricing + reviews signals"]


def test_recency_confidence_substitutes_for_dates():
    opportunity = {
        "citations": _citations(8, ["pricing", "reviews", "docs"]),
        "scoring": {"total": 71, "breakdown": {"recencyConfidence": 8}},
    }
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.HIGH
    assert "Strong external evidence" in confidence.reasons
    assert confidence.reasons[-1] == "Detailed score breakdown"
    assert confidence.has_score_breakdown is True


def test_old_evidence_stays_exploratory():
    opportunity = {"citations": _citations(8, ["pricing", "reviews", "docs"], days_ago=120)}
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.EXPLORATORY
    assert confidence.evidence_recency == "90+ days ago"
    assert "Signals from last quarter" not in confidence.reasons


def test_last_quarter_reason():
    opportunity = {"citations": _citations(4, ["pricing", "reviews"], days_ago=60)}
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.MODERATE
    assert "Signals from last quarter" in confidence.reasons


def test_breakdown_without_citations_is_not_forced():
    confidence = compute_decision_confidence({"scoring": {"breakdown": {"impact": 7}}}, now=NOW)
    assert confidence.level == DecisionConfidenceLevel.EXPLORATORY
    assert confidence.reasons == ["Detailed score breakdown"]


def test_loose_payload_is_tolerated():
    opportunity = {"title": 123, "proof_points": "nope", "citations": ["https://acme.com", 5], "scoring": "n/a"}
    confidence = compute_decision_confidence(opportunity, now=NOW)
    assert confidence.evidence_count == 1
    assert confidence.reasons == ["1 source"]


@pytest.mark.parametrize(
    "days, phrase",
    [
        (None, None),
        (0, "Today"),
        (1, "1 day ago"),
        (29, "29 days ago"),
        (30, "4 weeks ago"),
        (89, "12 weeks ago"),
        (90, "90+ days ago"),
    ],
)
def test_describe_recency(days, phrase):
    assert describe_recency(days) == phrase


def _high():
    return {"citations": _citations(8, ["pricing", "reviews", "docs"], days_ago=5, prefix="h")}


def _moderate():
    return {"citations": _citations(4, ["pricing", "jobs"], prefix="m")}


def _exploratory():
    return {"citations": _citations(1, ["blog"], days_ago=120, prefix="e")}


def test_aggregate_empty():
    aggregate = compute_aggregate_confidence([], now=NOW)
    assert aggregate.overall_level == DecisionConfidenceLevel.EXPLORATORY
    assert aggregate.total_evidence_count == 0
    assert aggregate.average_recency is None


def test_aggregate_levels():
    assert compute_aggregate_confidence([_high()], now=NOW).overall_level == DecisionConfidenceLevel.HIGH
    assert (
        compute_aggregate_confidence([_moderate(), _exploratory()], now=NOW).overall_level
        == DecisionConfidenceLevel.MODERATE
    )
    assert (
        compute_aggregate_confidence([_exploratory(), _exploratory()], now=NOW).overall_level
        == DecisionConfidenceLevel.EXPLORATORY
    )
    mixed = [_high(), _moderate(), _moderate(), _exploratory()]
    assert compute_aggregate_confidence(mixed, now=NOW).overall_level == DecisionConfidenceLevel.MODERATE


def test_aggregate_summary_fields():
    aggregate = compute_aggregate_confidence([_high(), _moderate(), _exploratory()], now=NOW)
    assert aggregate.total_evidence_count == 13
    assert aggregate.source_types == ["blog", "docs", "jobs", "pricing", "reviews"]
    assert aggregate.average_recency == "5 days ago"

    stale = compute_aggregate_confidence([_exploratory()], now=NOW)
    assert stale.average_recency == "last 90 days"
