from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from config import PlinthConfig
from date_utils import to_iso
from evidence_types import ALL_EVIDENCE_TYPES, EvidenceType, normalize_evidence_type


class ScoreLabel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INSUFFICIENT = "Insufficient"


class CoverageStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    INSUFFICIENT = "insufficient"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class DirectionalSignal(str, Enum):
    STRONG = "strong"
    MIXED = "mixed"
    WEAK = "weak"
    UNCLEAR = "unclear"


class DecisionConfidenceLevel(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    EXPLORATORY = "exploratory"


class RunStatus(str, Enum):
    NONE = "none"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


class EvidenceStatus(str, Enum):
    NOT_STARTED = "not_started"
    COLLECTING = "collecting"
    PARTIAL = "partial"
    COMPLETE = "complete"


class OpportunitiesStatus(str, Enum):
    NONE = "none"
    GENERATED = "generated"


class PrimaryRoute(str, Enum):
    COMPETITORS = "competitors"
    OPPORTUNITIES = "opportunities"


class PrimaryCta(str, Enum):
    RUN_EVIDENCE = "run_evidence"
    GENERATE_ANALYSIS = "generate_analysis"
    VIEW_RESULTS = "view_results"


def _stringify_date(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        return to_iso(value)
    return value


class _LooseModel(BaseModel):
    """Upstream payloads carry extra keys and camelCase names; both are tolerated."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Evidence normalization model
# ---------------------------------------------------------------------------


class EvidenceItem(_LooseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    url: str
    domain: Optional[str] = None
    type: EvidenceType = EvidenceType.OTHER
    title: Optional[str] = None
    snippet: Optional[str] = None
    published_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("published_at", "publishedAt")
    )
    retrieved_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("retrieved_at", "retrievedAt")
    )
    score_hint: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("score_hint", "scoreHint")
    )

    @field_validator("type", mode="before")
    def coerce_type(cls, v: Any) -> EvidenceType:
        return normalize_evidence_type(v)

    @field_validator("id", mode="before")
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("published_at", "retrieved_at", mode="before")
    def coerce_dates(cls, v: Any) -> Any:
        return _stringify_date(v)


class EvidenceBundle(_LooseModel):
    items: List[EvidenceItem] = Field(default_factory=list)
    primary_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("primary_url", "primaryUrl")
    )
    company: Optional[str] = None
    id: Optional[str] = None
    project_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("project_id", "projectId")
    )
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )


class Citation(_LooseModel):
    """Loose citation shape; every legacy date key is kept so the summarizer can rank them."""

    url: Optional[str] = None
    title: Optional[str] = None
    source_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("source_type", "sourceType")
    )
    domain: Optional[str] = None
    source_kind: Optional[str] = None
    confidence: Optional[Any] = None
    date: Optional[Any] = None
    published_at: Optional[Any] = None
    extracted_at: Optional[Any] = None
    extracted_at_alt: Optional[Any] = Field(default=None, alias="extractedAt")
    published_at_alt: Optional[Any] = Field(default=None, alias="publishedAt")
    timestamp: Optional[Any] = None
    retrieved_at: Optional[Any] = Field(
        default=None, validation_alias=AliasChoices("retrieved_at", "retrievedAt")
    )
    evidence_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("evidence_type", "evidenceType")
    )

    @field_validator("url", "title", "source_type", "domain", "evidence_type", mode="before")
    def coerce_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    def date_candidates(self) -> List[Any]:
        """Date fields in the fixed priority order used for citation dating."""
        return [
            self.date,
            self.published_at,
            self.extracted_at,
            self.extracted_at_alt,
            self.published_at_alt,
            self.timestamp,
        ]


class EvidenceSummary(BaseModel):
    total_citations: int = 0
    source_types: List[str] = Field(default_factory=list)
    newest_citation_date: Optional[str] = None
    oldest_citation_date: Optional[str] = None
    evidence_window_days: Optional[int] = None


# ---------------------------------------------------------------------------
# Coverage score
# ---------------------------------------------------------------------------


class CoverageThreshold(BaseModel):
    min_total_sources: int = Field(default_factory=lambda: PlinthConfig.GATE_MIN_TOTAL_SOURCES, ge=0)
    min_evidence_types: int = Field(default_factory=lambda: PlinthConfig.GATE_MIN_EVIDENCE_TYPES, ge=0)
    min_first_party_ratio: float = Field(
        default_factory=lambda: PlinthConfig.GATE_MIN_FIRST_PARTY_RATIO, ge=0.0, le=1.0
    )
    max_median_age_days: float = Field(default_factory=lambda: PlinthConfig.GATE_MAX_MEDIAN_AGE_DAYS, ge=0)


class CoverageReasons(BaseModel):
    types_present: List[EvidenceType] = Field(default_factory=list)
    types_missing: List[EvidenceType] = Field(default_factory=lambda: list(ALL_EVIDENCE_TYPES))
    type_count: int = 0
    total_types_considered: int = len(ALL_EVIDENCE_TYPES)
    first_party_count: int = 0
    third_party_count: int = 0
    first_party_ratio: float = 0.0
    newest_at: Optional[str] = None
    oldest_at: Optional[str] = None
    median_age_days: Optional[float] = None
    recency_score: float = 0.0
    coverage_score: float = 0.0
    first_party_score: float = 0.0
    threshold: CoverageThreshold = Field(default_factory=CoverageThreshold)
    failed_checks: List[str] = Field(default_factory=list)


class CoverageScoreResult(BaseModel):
    is_sufficient: bool
    score10: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    score_label: ScoreLabel
    reasons: CoverageReasons

    @model_validator(mode="after")
    def hide_score_when_insufficient(self) -> "CoverageScoreResult":
        if not self.is_sufficient and self.score10 is not None:
            raise ValueError("score10 must be omitted when evidence is insufficient")
        return self


class CoverageGap(BaseModel):
    type: EvidenceType
    reason: str
    suggestion: str


class EvidenceCoverage(BaseModel):
    types_present: List[EvidenceType] = Field(default_factory=list)
    counts_by_type: Dict[str, int] = Field(default_factory=dict)
    first_party_ratio: float = 0.0
    recency_score: float = 0.0
    coverage_score: float = 0.0
    meets_minimum_viable: bool = False
    overall_confidence_label: ScoreLabel = ScoreLabel.INSUFFICIENT
    gaps: List[CoverageGap] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Score gating
# ---------------------------------------------------------------------------


class GatedScore(BaseModel):
    coverage: CoverageStatus
    confidence: ConfidenceLevel
    show_numeric: bool
    score: Optional[float] = None
    directional: DirectionalSignal
    summary: EvidenceSummary

    @model_validator(mode="after")
    def suppress_score_unless_shown(self) -> "GatedScore":
        if not self.show_numeric and self.score is not None:
            raise ValueError("score must be null when numeric display is gated off")
        return self


# ---------------------------------------------------------------------------
# Opportunity decision confidence
# ---------------------------------------------------------------------------


def _coerce_citation_list(value: Any) -> List[Any]:
    """Bare URL strings become citations; anything else unusable is dropped."""
    if not isinstance(value, list):
        return []
    coerced: List[Any] = []
    for entry in value:
        if isinstance(entry, str):
            coerced.append({"url": entry})
        elif isinstance(entry, (dict, Citation)):
            coerced.append(entry)
    return coerced


class ProofPoint(_LooseModel):
    claim: Optional[str] = None
    citations: List[Citation] = Field(default_factory=list)

    @field_validator("claim", mode="before")
    def coerce_claim(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("citations", mode="before")
    def coerce_citations(cls, v: Any) -> List[Any]:
        return _coerce_citation_list(v)


class OpportunityScoring(_LooseModel):
    total: Optional[float] = None
    breakdown: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("total", mode="before")
    def coerce_total(cls, v: Any) -> Optional[float]:
        if isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @field_validator("breakdown", mode="before")
    def coerce_breakdown(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


class Opportunity(_LooseModel):
    title: Optional[str] = None
    proof_points: List[ProofPoint] = Field(default_factory=list)
    citations: List[Citation] = Field(default_factory=list)
    scoring: Optional[OpportunityScoring] = None

    @field_validator("title", mode="before")
    def coerce_title(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("proof_points", mode="before")
    def coerce_proof_points(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, (dict, ProofPoint))]

    @field_validator("citations", mode="before")
    def coerce_citations(cls, v: Any) -> List[Any]:
        return _coerce_citation_list(v)

    @field_validator("scoring", mode="before")
    def coerce_scoring(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, OpportunityScoring)) else None


class DecisionConfidence(BaseModel):
    level: DecisionConfidenceLevel
    reasons: List[str] = Field(default_factory=list)
    evidence_count: int = 0
    evidence_recency: Optional[str] = None
    source_type_count: int = 0
    has_score_breakdown: bool = False


class AggregateConfidence(BaseModel):
    overall_level: DecisionConfidenceLevel
    total_evidence_count: int = 0
    source_types: List[str] = Field(default_factory=list)
    average_recency: Optional[str] = None


# ---------------------------------------------------------------------------
# Multi-criteria scoring
# ---------------------------------------------------------------------------


class ScoringCriterion(BaseModel):
    id: str
    name: str
    description: str = ""
    weight: int = Field(ge=1, le=5)
    how_to_score: str = ""


class CriterionDimensionScores(BaseModel):
    discovery_support: float = Field(ge=0.0, le=1.0)
    execution_support: float = Field(ge=0.0, le=1.0)
    reliability: float = Field(ge=0.0, le=1.0)
    flexibility: float = Field(ge=0.0, le=1.0)
    friction: float = Field(ge=0.0, le=1.0)


class CriterionScore(BaseModel):
    competitor_name: str
    criteria_id: str
    dimensions: CriterionDimensionScores


class JtbdItem(_LooseModel):
    job_statement: str = ""
    who: Optional[str] = None
    context: Optional[str] = None
    desired_outcomes: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    importance_score: Optional[float] = None
    satisfaction_score: Optional[float] = None

    @field_validator("desired_outcomes", "constraints", mode="before")
    def coerce_lists(cls, v: Any) -> Any:
        return v or []


class JtbdScoreReasons(BaseModel):
    has_who: bool = False
    has_context: bool = False
    outcomes_count: int = 0
    constraints_count: int = 0
    statement_length: int = 0
    failed_checks: List[str] = Field(default_factory=list)


class JtbdScoreResult(BaseModel):
    is_sufficient: bool
    score10: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    score_label: ScoreLabel
    reasons: JtbdScoreReasons


# ---------------------------------------------------------------------------
# Decision run state
# ---------------------------------------------------------------------------


class RunRecord(_LooseModel):
    id: Optional[str] = None
    status: str = ""
    completed_at: Optional[str] = None
    finished_at: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("completed_at", "finished_at", "created_at", mode="before")
    def coerce_dates(cls, v: Any) -> Any:
        return _stringify_date(v)

    @field_validator("status", mode="before")
    def coerce_status(cls, v: Any) -> str:
        return str(v or "").strip().lower()


class CompetitorRecord(_LooseModel):
    id: str
    name: Optional[str] = None
    url: Optional[str] = None


class EvidenceCoverageLite(BaseModel):
    total_sources: int = 0
    evidence_types_present: List[EvidenceType] = Field(default_factory=list)
    evidence_type_counts: Dict[str, int] = Field(default_factory=dict)
    competitor_ids_with_evidence: List[str] = Field(default_factory=list)
    competitor_evidence_counts: Dict[str, int] = Field(default_factory=dict)
    is_evidence_sufficient: bool = False
    reasons_missing: List[str] = Field(default_factory=list)


class DecisionRunSummary(BaseModel):
    competitors_count: int = 0
    evidence_count: int = 0
    opportunities_count: int = 0


class DecisionRunState(BaseModel):
    project_id: str
    run_id: Optional[str] = None
    run_status: RunStatus
    evidence_status: EvidenceStatus
    opportunities_status: OpportunitiesStatus
    primary_route: PrimaryRoute
    primary_cta: Optional[PrimaryCta] = None
    summary: DecisionRunSummary = Field(default_factory=DecisionRunSummary)


# ---------------------------------------------------------------------------
# Evidence report
# ---------------------------------------------------------------------------


class EvidenceRecency(BaseModel):
    most_recent_retrieved_at: Optional[str] = None
    oldest_retrieved_at: Optional[str] = None
    published_at_coverage: int = 0


class DomainCount(BaseModel):
    domain: str
    count: int


class EvidenceReport(BaseModel):
    total_sources: int = 0
    counts_by_type: Dict[str, int] = Field(default_factory=lambda: {t.value: 0 for t in ALL_EVIDENCE_TYPES})
    first_party_count: int = 0
    third_party_count: int = 0
    unknown_party_count: int = 0
    recency: EvidenceRecency = Field(default_factory=EvidenceRecency)
    top_domains: List[DomainCount] = Field(default_factory=list)
    missing_types: List[EvidenceType] = Field(default_factory=lambda: list(ALL_EVIDENCE_TYPES))
    coverage: int = 0
