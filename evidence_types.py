"""Evidence type vocabulary, normalization, and heuristic detection."""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse


class EvidenceType(str, Enum):
    """Closed set of evidence categories every bundle item is filed under."""

    PRICING = "pricing"
    DOCS = "docs"
    REVIEWS = "reviews"
    JOBS = "jobs"
    CHANGELOG = "changelog"
    BLOG = "blog"
    COMMUNITY = "community"
    SECURITY = "security"
    OTHER = "other"


ALL_EVIDENCE_TYPES: List[EvidenceType] = list(EvidenceType)

EVIDENCE_TYPE_SYNONYMS: Dict[str, EvidenceType] = {
    "price": EvidenceType.PRICING,
    "prices": EvidenceType.PRICING,
    "plans": EvidenceType.PRICING,
    "billing": EvidenceType.PRICING,
    "doc": EvidenceType.DOCS,
    "documentation": EvidenceType.DOCS,
    "api_docs": EvidenceType.DOCS,
    "guide": EvidenceType.DOCS,
    "guides": EvidenceType.DOCS,
    "review": EvidenceType.REVIEWS,
    "ratings": EvidenceType.REVIEWS,
    "testimonials": EvidenceType.REVIEWS,
    "job": EvidenceType.JOBS,
    "careers": EvidenceType.JOBS,
    "hiring": EvidenceType.JOBS,
    "release_notes": EvidenceType.CHANGELOG,
    "releases": EvidenceType.CHANGELOG,
    "updates": EvidenceType.CHANGELOG,
    "status": EvidenceType.CHANGELOG,
    "status_page": EvidenceType.CHANGELOG,
    "news": EvidenceType.BLOG,
    "press": EvidenceType.BLOG,
    "marketing_site": EvidenceType.BLOG,
    "case_study": EvidenceType.BLOG,
    "case_studies": EvidenceType.BLOG,
    "forum": EvidenceType.COMMUNITY,
    "forums": EvidenceType.COMMUNITY,
    "discussion": EvidenceType.COMMUNITY,
    "trust": EvidenceType.SECURITY,
    "compliance": EvidenceType.SECURITY,
}


def normalize_evidence_type(raw: Optional[object]) -> EvidenceType:
    """Map a free-text type label onto the closed vocabulary (``other`` if unknown)."""

    if isinstance(raw, EvidenceType):
        return raw
    key = re.sub(r"[\s\-]+", "_", str(raw or "").strip().lower())
    if not key:
        return EvidenceType.OTHER
    try:
        return EvidenceType(key)
    except ValueError:
        return EVIDENCE_TYPE_SYNONYMS.get(key, EvidenceType.OTHER)


# Rules are evaluated in order; first match wins.
_PATH_RULES: Sequence[Tuple[EvidenceType, Tuple[str, ...]]] = (
    (EvidenceType.PRICING, ("/pricing", "/plans", "/billing", "/price")),
    (EvidenceType.DOCS, ("/docs", "/documentation", "/api", "/guide")),
    (
        EvidenceType.CHANGELOG,
        ("/changelog", "/release-notes", "/releases", "/updates", "/whats-new", "/what-s-new"),
    ),
)
_COMMUNITY_HOSTS = ("reddit.com", "producthunt.com")
_REVIEW_HOSTS = ("g2.com", "capterra.com", "trustpilot.com", "trustradius.com")
_LATE_PATH_RULES: Sequence[Tuple[EvidenceType, Tuple[str, ...]]] = (
    (
        EvidenceType.SECURITY,
        ("/security", "/trust", "/compliance", "/soc-2", "/soc2", "/gdpr", "/privacy-policy"),
    ),
    (EvidenceType.JOBS, ("/careers", "/jobs", "/hiring", "/openings")),
)
_JOB_HOSTS = ("greenhouse.io", "lever.co", "workable.com")
_CASE_STUDY_PATHS = ("/case-study", "/case-studies", "/customers", "/customer-stories", "/success-stories")
_KEYWORD_RULES: Sequence[Tuple[EvidenceType, Tuple[str, ...]]] = (
    (EvidenceType.PRICING, ("pricing", "plans", "cost", "price", "tier", "subscription")),
    (EvidenceType.DOCS, ("how to", "guide", "api", "documentation", "tutorial", "getting started")),
    (EvidenceType.CHANGELOG, ("what's new", "release", "changelog", "update", "announcement")),
    (EvidenceType.REVIEWS, ("review", "rating", "feedback", "testimonial")),
    (EvidenceType.COMMUNITY, ("forum", "community", "discussion", "thread", "discord", "slack")),
    (EvidenceType.SECURITY, ("security", "compliance", "soc 2", "gdpr", "encryption")),
    (EvidenceType.JOBS, ("careers", "hiring", "job opening", "we are hiring")),
    (EvidenceType.BLOG, ("case study", "customer story", "success story")),
)


def _split_url(url: str) -> Tuple[str, str]:
    candidate = url if url.startswith(("http://", "https://")) else f"https://{url}"
    try:
        parsed = urlparse(candidate)
        return (parsed.path or "").lower(), (parsed.hostname or "").lower()
    except ValueError:
        return "", ""


def detect_evidence_type(url: str, title: Optional[str] = None, snippet: Optional[str] = None) -> EvidenceType:
    """Classify a page from its URL first, then from title/snippet keywords."""

    path, host = _split_url((url or "").strip())

    for evidence_type, needles in _PATH_RULES:
        if any(needle in path for needle in needles):
            return evidence_type
    if any(h in host for h in _COMMUNITY_HOSTS):
        return EvidenceType.COMMUNITY
    if any(h in host for h in _REVIEW_HOSTS):
        return EvidenceType.REVIEWS
    for evidence_type, needles in _LATE_PATH_RULES:
        if any(needle in path for needle in needles):
            return evidence_type
    if any(h in host for h in _JOB_HOSTS):
        return EvidenceType.JOBS
    if any(needle in path for needle in _CASE_STUDY_PATHS):
        return EvidenceType.BLOG

    text = f"{(title or '').lower()} {(snippet or '').lower()}".strip()
    if not text:
        return EvidenceType.OTHER
    for evidence_type, needles in _KEYWORD_RULES:
        if any(needle in text for needle in needles):
            return evidence_type
    if "how " in text and " uses " in text:
        return EvidenceType.BLOG
    return EvidenceType.OTHER


__all__ = [
    "ALL_EVIDENCE_TYPES",
    "EVIDENCE_TYPE_SYNONYMS",
    "EvidenceType",
    "detect_evidence_type",
    "normalize_evidence_type",
]
