"""URL and domain helpers used for first-party classification."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from models import EvidenceItem

TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
    "mc_cid",
    "mc_eid",
    "ref",
    "_ga",
    "_gid",
}

_DOMAIN_FALLBACK = re.compile(r"(?:https?://)?(?:www\.)?([^/\s?#]+)", re.IGNORECASE)
_DOMAIN_LIKE = re.compile(r"^[a-z0-9-]+(\.[a-z0-9-]+)+$")


def _strip_www(host: str) -> str:
    host = host.strip().lower()
    return host[4:] if host.startswith("www.") else host


def extract_domain(url: Optional[str]) -> str:
    """Hostname without ``www.``; empty string when nothing usable is present."""

    if not url or not isinstance(url, str):
        return ""
    text = url.strip()
    candidate = text if text.lower().startswith("http") else f"https://{text}"
    try:
        host = urlparse(candidate).hostname or ""
    except ValueError:
        host = ""
    if host:
        return _strip_www(host)
    match = _DOMAIN_FALLBACK.match(text)
    if match and match.group(1):
        return _strip_www(match.group(1))
    return ""


def canonicalize_url(url: str) -> str:
    """Normalize a URL for de-duplication; returns the input unchanged if unparseable."""

    if not url or not isinstance(url, str):
        return url
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    netloc = _strip_www(parsed.netloc)
    path = parsed.path
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")
    query = urlencode(
        [(key, value) for key, value in parse_qsl(parsed.query, keep_blank_values=True) if key not in TRACKING_PARAMS]
    )
    return urlunparse((parsed.scheme.lower(), netloc, path, parsed.params, query, parsed.fragment))


def is_http_url(url: Optional[str]) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_competitor_domains(primary_url: Optional[str], company: Optional[str] = None) -> List[str]:
    """Domains that count as first-party for a bundle.

    The primary URL always contributes its host. The company name contributes
    only when it is itself domain-shaped (``acme.io``), never a guessed domain.
    """

    domains: List[str] = []
    primary = extract_domain(primary_url)
    if primary:
        domains.append(primary)
    if company:
        candidate = _strip_www(company)
        if _DOMAIN_LIKE.match(candidate) and candidate not in domains:
            domains.append(candidate)
    return domains


def domain_matches(domain: str, competitor_domains: Iterable[str]) -> bool:
    host = _strip_www(domain or "")
    if not host:
        return False
    for raw in competitor_domains:
        target = _strip_www(raw or "")
        if target and (host == target or host.endswith(f".{target}")):
            return True
    return False


def item_domain(item: EvidenceItem) -> str:
    return _strip_www(item.domain) if item.domain else extract_domain(item.url)


def is_first_party(item: EvidenceItem, competitor_domains: Iterable[str]) -> bool:
    """True when the item is hosted on (a subdomain of) a competitor's own domain."""

    return domain_matches(item_domain(item), competitor_domains)


__all__ = [
    "TRACKING_PARAMS",
    "canonicalize_url",
    "domain_matches",
    "extract_competitor_domains",
    "extract_domain",
    "is_first_party",
    "is_http_url",
    "item_domain",
]
