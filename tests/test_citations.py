"""Tests for citation summarization and normalization."""

import pytest

from citations import DEFAULT_SOURCE_TYPE, extract_source_type, normalize_citations, summarize_citations
from models import Citation


def test_summarize_empty():
    summary = summarize_citations(None)
    assert summary.total_citations == 0
    assert summary.source_types == []
    assert summary.newest_citation_date is None
    assert summary.evidence_window_days is None


def test_summarize_mixed_citations():
    citations = [
        {"url": "https://acme.com/pricing", "source_type": "Pricing Page", "date": "2025-05-01"},
        {"url": "https://acme.com/docs", "sourceType": "documentation", "extracted_at": "2025-04-01"},
        {"source_type": "reviews", "date": "2025-05-30"},
        {"url": "https://g2.com/acme", "source_type": "G2 Reviews", "timestamp": "bad"},
        "https://acme.com/blog",
    ]
    summary = summarize_citations(citations)
    assert summary.total_citations == 4
    assert summary.source_types == ["pricing", "docs", "reviews", "other"]
    assert summary.newest_citation_date == "2025-05-01T00:00:00Z"
    assert summary.oldest_citation_date == "2025-04-01T00:00:00Z"
    assert summary.evidence_window_days == 30


@pytest.mark.parametrize("field", ["date", "published_at", "extracted_at", "extractedAt", "publishedAt", "timestamp"])
def test_legacy_date_fields_parse_identically(field):
    summary = summarize_citations([{"url": "https://acme.com", field: "2025-05-01T00:00:00Z"}])
    assert summary.newest_citation_date == "2025-05-01T00:00:00Z"


def test_date_field_priority():
    citation = {"url": "https://acme.com", "date": "2025-05-01", "published_at": "2024-01-01"}
    assert summarize_citations([citation]).newest_citation_date == "2025-05-01T00:00:00Z"

    citation = {"url": "https://acme.com", "date": "garbage", "published_at": "2024-01-01"}
    assert summarize_citations([citation]).newest_citation_date == "2024-01-01T00:00:00Z"


def test_unparseable_dates_never_raise():
    summary = summarize_citations([{"url": "https://acme.com", "date": "yesterday-ish", "timestamp": {"a": 1}}])
    assert summary.total_citations == 1
    assert summary.newest_citation_date is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("pricing", "pricing"),
        ("Docs Site", "docs"),
        ("Status Page", "status"),
        ("Marketing", "marketing_site"),
        ("Podcast", "podcast"),
        (None, "other"),
    ],
)
def test_extract_source_type(raw, expected):
    assert extract_source_type(Citation(url="https://acme.com", source_type=raw)) == expected


def test_normalize_citations():
    raw = [
        "https://acme.com/pricing",
        {"url": "https://acme.com/pricing"},
        {"url": "ftp://acme.com/file"},
        "not a url",
        {"url": "https://g2.com/acme", "source_type": "reviews"},
        42,
    ]
    normalized = normalize_citations(raw)
    assert [c.url for c in normalized] == ["https://acme.com/pricing", "https://g2.com/acme"]
    assert normalized[0].source_type == DEFAULT_SOURCE_TYPE
    assert normalized[1].source_type == "reviews"


def test_normalize_citations_requires_list():
    assert normalize_citations("https://acme.com") == []
    assert normalize_citations(None) == []
