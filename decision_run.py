"""
Canonical decision-run state.

``get_decision_run_state`` is the one place that decides what state an
analysis is in (run, evidence and opportunities status, where to route,
which action to offer next). It is a pure function of a
``DecisionRunSnapshot``; ``load_decision_run_snapshot`` gathers that
snapshot from the collaborator repositories, substituting a safe default
for any read that fails so that a state can always be derived.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, TypeVar, Union

from config import PlinthConfig
from coverage_lite import CoverageLiteReader
from models import (
    CompetitorRecord,
    DecisionRunState,
    DecisionRunSummary,
    EvidenceBundle,
    EvidenceCoverageLite,
    EvidenceStatus,
    OpportunitiesStatus,
    PrimaryCta,
    PrimaryRoute,
    RunRecord,
    RunStatus,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------


class RunRepository(Protocol):
    def latest_run(self, project_id: str) -> Optional[Union[RunRecord, dict]]: ...


class CompetitorRepository(Protocol):
    def list_competitors(self, project_id: str) -> Sequence[Union[CompetitorRecord, dict]]: ...


class ArtifactRepository(Protocol):
    def opportunity_counts(self, project_id: str) -> Tuple[int, int]:
        """Pre-normalized ``(v3_count, v2_count)`` opportunity counts."""
        ...


class EvidenceBundleReader(Protocol):
    def latest_bundle(self, project_id: str) -> Optional[Union[EvidenceBundle, dict]]: ...


@dataclass(frozen=True)
class DecisionRunSnapshot:
    """The upstream reads a run state is derived from."""

    run: Optional[RunRecord] = None
    competitors: List[CompetitorRecord] = field(default_factory=list)
    opportunities_count: int = 0
    bundle: Optional[EvidenceBundle] = None
    coverage: EvidenceCoverageLite = field(default_factory=EvidenceCoverageLite)

    @property
    def evidence_count(self) -> int:
        return len(self.bundle.items) if self.bundle else 0


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------


def derive_run_status(run: Optional[RunRecord]) -> RunStatus:
    if run is None:
        return RunStatus.NONE
    if run.status == "failed":
        return RunStatus.FAILED
    if run.completed_at is not None or run.finished_at is not None or run.status in ("complete", "succeeded"):
        return RunStatus.COMPLETE
    return RunStatus.RUNNING


def derive_evidence_status(
    evidence_count: int,
    run_status: RunStatus,
    competitor_ids_with_evidence: Iterable[str],
    *,
    min_evidence: int = PlinthConfig.MIN_EVIDENCE_COVERAGE,
    min_competitors: int = PlinthConfig.MIN_COMPETITORS_COVERED,
) -> EvidenceStatus:
    if evidence_count == 0 and run_status == RunStatus.NONE:
        return EvidenceStatus.NOT_STARTED
    if run_status == RunStatus.RUNNING and evidence_count == 0:
        return EvidenceStatus.COLLECTING
    if evidence_count >= min_evidence and len(list(competitor_ids_with_evidence)) >= min_competitors:
        return EvidenceStatus.COMPLETE
    if evidence_count > 0:
        return EvidenceStatus.PARTIAL
    return EvidenceStatus.NOT_STARTED


def derive_opportunities_status(opportunities_count: int) -> OpportunitiesStatus:
    return OpportunitiesStatus.GENERATED if opportunities_count > 0 else OpportunitiesStatus.NONE


def derive_primary_route(opportunities_status: OpportunitiesStatus, run_status: RunStatus) -> PrimaryRoute:
    if opportunities_status == OpportunitiesStatus.GENERATED or run_status == RunStatus.COMPLETE:
        return PrimaryRoute.OPPORTUNITIES
    return PrimaryRoute.COMPETITORS


def derive_primary_cta(
    run_status: RunStatus,
    evidence_status: EvidenceStatus,
    opportunities_status: OpportunitiesStatus,
    competitor_count: int,
    *,
    min_competitors: int = PlinthConfig.MIN_COMPETITORS_FOR_ANALYSIS,
) -> Optional[PrimaryCta]:
    """Next recommended action, or ``None`` when the user should wait or add competitors."""
    if opportunities_status == OpportunitiesStatus.GENERATED:
        return PrimaryCta.VIEW_RESULTS
    # A complete run without opportunities still lands on results.
    if run_status == RunStatus.COMPLETE:
        return PrimaryCta.VIEW_RESULTS
    if run_status == RunStatus.RUNNING:
        return None
    if evidence_status in (EvidenceStatus.NOT_STARTED, EvidenceStatus.PARTIAL):
        return PrimaryCta.RUN_EVIDENCE
    if evidence_status in (EvidenceStatus.COMPLETE, EvidenceStatus.COLLECTING) and competitor_count >= min_competitors:
        return PrimaryCta.GENERATE_ANALYSIS
    return None


def count_opportunities(v3_count: Optional[int], v2_count: Optional[int]) -> int:
    """Prefer the v3 artifact's count, falling back to v2 when v3 has none."""
    return (v3_count or 0) or (v2_count or 0)


def get_decision_run_state(project_id: str, snapshot: DecisionRunSnapshot) -> DecisionRunState:
    run_status = derive_run_status(snapshot.run)
    evidence_count = snapshot.evidence_count
    evidence_status = derive_evidence_status(
        evidence_count, run_status, snapshot.coverage.competitor_ids_with_evidence
    )
    opportunities_status = derive_opportunities_status(snapshot.opportunities_count)

    state = DecisionRunState(
        project_id=project_id,
        run_id=snapshot.run.id if snapshot.run else None,
        run_status=run_status,
        evidence_status=evidence_status,
        opportunities_status=opportunities_status,
        primary_route=derive_primary_route(opportunities_status, run_status),
        primary_cta=derive_primary_cta(run_status, evidence_status, opportunities_status, len(snapshot.competitors)),
        summary=DecisionRunSummary(
            competitors_count=len(snapshot.competitors),
            evidence_count=evidence_count,
            opportunities_count=snapshot.opportunities_count,
        ),
    )
    logger.debug(
        "Decision run state for %s: run=%s evidence=%s opportunities=%s",
        project_id,
        state.run_status.value,
        state.evidence_status.value,
        state.opportunities_status.value,
    )
    return state


# ---------------------------------------------------------------------------
# Snapshot loading
# ---------------------------------------------------------------------------


def _guarded(label: str, project_id: str, read: Callable[[], T], default: T) -> T:
    try:
        return read()
    except Exception as e:
        logger.warning("Failed to read %s for project %s, using default: %s", label, project_id, e)
        return default


def _as_run(raw: Any) -> Optional[RunRecord]:
    if raw is None or isinstance(raw, RunRecord):
        return raw
    return RunRecord.model_validate(raw)


def _as_competitors(raw: Any) -> List[CompetitorRecord]:
    return [c if isinstance(c, CompetitorRecord) else CompetitorRecord.model_validate(c) for c in raw or []]


def _as_bundle(raw: Any) -> Optional[EvidenceBundle]:
    if raw is None or isinstance(raw, EvidenceBundle):
        return raw
    return EvidenceBundle.model_validate(raw)


def load_decision_run_snapshot(
    project_id: str,
    *,
    runs: RunRepository,
    competitors: CompetitorRepository,
    artifacts: ArtifactRepository,
    evidence: EvidenceBundleReader,
    coverage: CoverageLiteReader,
) -> DecisionRunSnapshot:
    """Read everything a run state needs; each read fails independently to its default.

    The reads are not mutually consistent (a run may already show complete
    before its opportunities are visible). The next poll reconciles that.
    """

    run = _guarded("latest run", project_id, lambda: _as_run(runs.latest_run(project_id)), None)
    competitor_list = _guarded(
        "competitors", project_id, lambda: _as_competitors(competitors.list_competitors(project_id)), []
    )
    opportunities_count = _guarded(
        "opportunity artifacts",
        project_id,
        lambda: count_opportunities(*artifacts.opportunity_counts(project_id)),
        0,
    )
    bundle = _guarded("evidence bundle", project_id, lambda: _as_bundle(evidence.latest_bundle(project_id)), None)
    coverage_lite = _guarded(
        "evidence coverage",
        project_id,
        lambda: coverage.coverage_for_project(project_id) or EvidenceCoverageLite(),
        EvidenceCoverageLite(),
    )

    return DecisionRunSnapshot(
        run=run,
        competitors=competitor_list,
        opportunities_count=opportunities_count,
        bundle=bundle,
        coverage=coverage_lite,
    )


__all__ = [
    "ArtifactRepository",
    "CompetitorRepository",
    "DecisionRunSnapshot",
    "EvidenceBundleReader",
    "RunRepository",
    "count_opportunities",
    "derive_evidence_status",
    "derive_opportunities_status",
    "derive_primary_cta",
    "derive_primary_route",
    "derive_run_status",
    "get_decision_run_state",
    "load_decision_run_snapshot",
]
