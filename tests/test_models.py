import pytest
from pydantic import ValidationError

from evidence_types import EvidenceType
from models import (
    Citation,
    CoverageReasons,
    CoverageScoreResult,
    EvidenceBundle,
    EvidenceItem,
    EvidenceSummary,
    GatedScore,
    RunRecord,
    ScoreLabel,
)


def test_evidence_item_accepts_camel_case_and_normalizes_type():
    item = EvidenceItem.model_validate(
        {"id": 7, "url": "https://acme.com/docs", "type": "Documentation", "publishedAt": "2025-05-01", "extra": 1}
    )
    assert item.id == "7"
    assert item.type == EvidenceType.DOCS
    assert item.published_at == "2025-05-01"


def test_evidence_item_is_immutable():
    item = EvidenceItem(id="1", url="https://acme.com")
    with pytest.raises(ValidationError):
        item.url = "https://other.com"


def test_bundle_aliases():
    bundle = EvidenceBundle.model_validate({"primaryUrl": "https://acme.com", "items": []})
    assert bundle.primary_url == "https://acme.com"


def test_citation_keeps_legacy_fields():
    citation = Citation.model_validate({"url": " https://acme.com ", "sourceType": "pricing", "extractedAt": 5})
    assert citation.url == "https://acme.com"
    assert citation.source_type == "pricing"
    assert citation.extracted_at_alt == 5


def test_score_is_never_attached_to_insufficient_result():
    with pytest.raises(ValidationError):
        CoverageScoreResult(
            is_sufficient=False, score10=6.0, score_label=ScoreLabel.INSUFFICIENT, reasons=CoverageReasons()
        )


def test_gated_score_invariant():
    with pytest.raises(ValidationError):
        GatedScore(
            coverage="partial",
            confidence="low",
            show_numeric=False,
            score=4.0,
            directional="mixed",
            summary=EvidenceSummary(),
        )


def test_run_record_normalizes_status():
    assert RunRecord.model_validate({"status": " Running "}).status == "running"
