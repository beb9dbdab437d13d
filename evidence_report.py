"""Evidence bundle report for debugging and validating collection runs."""

from __future__ import annotations

from collections import Counter
from typing import List, Optional

import markdown

from config import PlinthConfig
from coverage_score import BundleInput, coerce_bundle
from date_utils import parse_datetime, to_iso
from evidence_types import ALL_EVIDENCE_TYPES
from models import DomainCount, EvidenceCoverage, EvidenceRecency, EvidenceReport
from score_utils import round_half_up
from url_utils import domain_matches, extract_domain, item_domain


def summarize_evidence_bundle(bundle: BundleInput) -> EvidenceReport:
    """Counts by type and party, retrieval window and top domains for a bundle.

    First-party here means hosted on the bundle's primary URL domain (or a
    subdomain of it). Items with no resolvable domain are counted as
    unknown-party.
    """
    evidence = coerce_bundle(bundle)
    if evidence is None or not evidence.items:
        return EvidenceReport()

    items = evidence.items
    primary_domain = extract_domain(evidence.primary_url)
    counts_by_type = {t.value: 0 for t in ALL_EVIDENCE_TYPES}
    domain_counts: Counter = Counter()
    first_party = third_party = unknown_party = 0
    retrieved = []
    published_count = 0

    for item in items:
        counts_by_type[item.type.value] += 1

        domain = item_domain(item)
        if domain:
            domain_counts[domain] += 1
            if primary_domain and domain_matches(domain, [primary_domain]):
                first_party += 1
            else:
                third_party += 1
        else:
            unknown_party += 1

        retrieved_at = parse_datetime(item.retrieved_at)
        if retrieved_at is not None:
            retrieved.append(retrieved_at)
        if parse_datetime(item.published_at) is not None:
            published_count += 1

    total = len(items)
    top_domains = sorted(domain_counts.items(), key=lambda pair: pair[1], reverse=True)
    present = sum(1 for count in counts_by_type.values() if count > 0)

    return EvidenceReport(
        total_sources=total,
        counts_by_type=counts_by_type,
        first_party_count=first_party,
        third_party_count=third_party,
        unknown_party_count=unknown_party,
        recency=EvidenceRecency(
            most_recent_retrieved_at=to_iso(max(retrieved)) if retrieved else None,
            oldest_retrieved_at=to_iso(min(retrieved)) if retrieved else None,
            published_at_coverage=int(round_half_up(published_count / total * 100)),
        ),
        top_domains=[
            DomainCount(domain=domain, count=count)
            for domain, count in top_domains[: PlinthConfig.REPORT_TOP_DOMAINS]
        ],
        missing_types=[t for t in ALL_EVIDENCE_TYPES if counts_by_type[t.value] == 0],
        coverage=int(round_half_up(present / len(ALL_EVIDENCE_TYPES) * 100)),
    )


def render_evidence_report_markdown(report: EvidenceReport, coverage: Optional[EvidenceCoverage] = None) -> str:
    lines: List[str] = [
        "# Evidence Report",
        "",
        f"- **Total sources:** {report.total_sources}",
        f"- **Type coverage:** {report.coverage}%",
        f"- **First-party / third-party / unknown:** "
        f"{report.first_party_count} / {report.third_party_count} / {report.unknown_party_count}",
        f"- **Most recent retrieval:** {report.recency.most_recent_retrieved_at or 'n/a'}",
        f"- **Oldest retrieval:** {report.recency.oldest_retrieved_at or 'n/a'}",
        f"- **Published date coverage:** {report.recency.published_at_coverage}%",
        "",
        "## Sources by type",
        "",
        "| Type | Count |",
        "| --- | ---: |",
    ]
    lines.extend(f"| {type_name} | {count} |" for type_name, count in report.counts_by_type.items())

    if report.missing_types:
        lines += ["", "**Missing types:** " + ", ".join(t.value for t in report.missing_types)]

    if report.top_domains:
        lines += ["", "## Top domains", "", "| Domain | Count |", "| --- | ---: |"]
        lines.extend(f"| {d.domain} | {d.count} |" for d in report.top_domains)

    if coverage is not None:
        lines += [
            "",
            "## Minimum viable coverage",
            "",
            f"- **Meets minimum viable coverage:** {'yes' if coverage.meets_minimum_viable else 'no'}",
            f"- **Confidence:** {coverage.overall_confidence_label.value}",
            f"- **Coverage score:** {coverage.coverage_score:.2f}",
            f"- **Recency score:** {coverage.recency_score:.2f}",
            f"- **First-party ratio:** {coverage.first_party_ratio:.0%}",
        ]
        if coverage.gaps:
            lines += ["", "### Gaps", ""]
            lines.extend(f"- **{gap.type.value}**: {gap.reason}. {gap.suggestion}." for gap in coverage.gaps)

    return "\n".join(lines) + "\n"


def render_evidence_report_html(report: EvidenceReport, coverage: Optional[EvidenceCoverage] = None) -> str:
    return markdown.markdown(
        render_evidence_report_markdown(report, coverage),
        extensions=["extra", "sane_lists", "tables"],
        output_format="html5",
    )


__all__ = [
    "render_evidence_report_html",
    "render_evidence_report_markdown",
    "summarize_evidence_bundle",
]
