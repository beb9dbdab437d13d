"""Citation normalization and summarization.

Citations reach the engine from several generations of opportunity payloads,
so field names vary (``source_type`` vs ``sourceType``, half a dozen date
keys). Everything here reads them defensively and never raises on bad input.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from date_utils import first_parseable, to_iso, whole_days_between
from models import Citation, EvidenceSummary
from url_utils import is_http_url

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_TYPE = "marketing_site"

# Checked in order against the lowercased label; first substring hit wins.
SOURCE_TYPE_RULES = (
    ("pricing", "pricing"),
    ("review", "reviews"),
    ("job", "jobs"),
    ("changelog", "changelog"),
    ("doc", "docs"),
    ("status", "status"),
    ("marketing", "marketing_site"),
)


def coerce_citation(raw: Any) -> Optional[Citation]:
    """Turn a citation-ish value into a ``Citation``; ``None`` if it cannot be read."""

    if isinstance(raw, Citation):
        return raw
    if isinstance(raw, str):
        return Citation(url=raw)
    if not isinstance(raw, dict):
        return None
    try:
        return Citation.model_validate(raw)
    except ValidationError as exc:
        logger.debug("Skipping unreadable citation %r: %s", raw, exc)
        return None


def extract_source_type(citation: Citation) -> str:
    """Collapse source-type variants (``documentation``, ``Pricing Page``...) to one label.

    Labels outside the known set are kept in lowercased form so that distinct
    unknown kinds still count as distinct source types.
    """
    normalized = str(citation.source_type or "other").strip().lower()
    for needle, label in SOURCE_TYPE_RULES:
        if needle in normalized:
            return label
    return normalized or "other"


def citation_date(citation: Citation) -> Optional[datetime]:
    """Best available date, trying legacy fields in their fixed priority order."""
    return first_parseable(citation.date_candidates())


def summarize_citations(citations: Optional[Iterable[Any]]) -> EvidenceSummary:
    """Reduce a raw citation list to counts, source-type mix and date window."""

    valid: List[Citation] = []
    for raw in citations or []:
        citation = coerce_citation(raw)
        if citation is not None and citation.url:
            valid.append(citation)

    if not valid:
        return EvidenceSummary()

    source_types = list(dict.fromkeys(extract_source_type(c) for c in valid))

    dates = [d for d in (citation_date(c) for c in valid) if d is not None]
    dates.sort(reverse=True)

    newest = dates[0] if dates else None
    oldest = dates[-1] if dates else None
    window = whole_days_between(newest, oldest) if newest and oldest else None

    return EvidenceSummary(
        total_citations=len(valid),
        source_types=source_types,
        newest_citation_date=to_iso(newest) if newest else None,
        oldest_citation_date=to_iso(oldest) if oldest else None,
        evidence_window_days=window,
    )


def normalize_citations(raw: Any) -> List[Citation]:
    """Normalize mixed citation inputs (URL strings, dicts, models).

    Entries without a valid http(s) URL are dropped, duplicates by URL keep
    their first occurrence, and a missing ``source_type`` defaults to
    ``marketing_site``.
    """
    if not isinstance(raw, list):
        return []

    normalized: List[Citation] = []
    seen = set()
    for entry in raw:
        citation = coerce_citation(entry)
        if citation is None or not is_http_url(citation.url):
            continue
        url = citation.url.strip()
        if url in seen:
            continue
        seen.add(url)
        updates = {"url": url}
        if not citation.source_type:
            updates["source_type"] = DEFAULT_SOURCE_TYPE
        normalized.append(citation.model_copy(update=updates))
    return normalized


def filter_citations_by_allowed_urls(citations: Iterable[Citation], allowed_urls: Iterable[str]) -> List[Citation]:
    allowed = set(allowed_urls)
    return [c for c in citations if c.url in allowed]


__all__ = [
    "DEFAULT_SOURCE_TYPE",
    "citation_date",
    "coerce_citation",
    "extract_source_type",
    "filter_citations_by_allowed_urls",
    "normalize_citations",
    "summarize_citations",
]
