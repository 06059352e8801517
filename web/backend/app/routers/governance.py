"""Governance router -- reports, proposals, votes and settlement."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from modgov.engine import GovernanceEngine
from modgov.errors import (
    AlreadySettled,
    AlreadyVoted,
    ContentRemoved,
    DuplicateReport,
    GovernanceError,
    LedgerUnavailable,
    NotEligible,
    NotFound,
    NotYetExpired,
    ProposalAlreadyActive,
    ProposalNotActive,
    RateLimited,
    ReporterIneligible,
    VotingWindowClosed,
)
from modgov.proposals.models import ProposalRecord
from web.backend.app.models.api import (
    CastVoteRequest,
    ErrorResponse,
    ProposalResponse,
    ReportCountResponse,
    ReportResponse,
    RewardDeltaResponse,
    SettlementResponse,
    SubmitReportRequest,
    TallyResponse,
    VoteResponse,
)

router = APIRouter(prefix="/api", tags=["governance"])

# HTTP status for each failure kind
ERROR_STATUS: dict[type[GovernanceError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    ReporterIneligible: status.HTTP_403_FORBIDDEN,
    NotEligible: status.HTTP_403_FORBIDDEN,
    RateLimited: status.HTTP_429_TOO_MANY_REQUESTS,
    ContentRemoved: status.HTTP_410_GONE,
    DuplicateReport: status.HTTP_409_CONFLICT,
    ProposalAlreadyActive: status.HTTP_409_CONFLICT,
    ProposalNotActive: status.HTTP_409_CONFLICT,
    VotingWindowClosed: status.HTTP_409_CONFLICT,
    AlreadyVoted: status.HTTP_409_CONFLICT,
    NotYetExpired: status.HTTP_409_CONFLICT,
    AlreadySettled: status.HTTP_409_CONFLICT,
    LedgerUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_ERRORS = {
    code: {"model": ErrorResponse}
    for code in (status.HTTP_403_FORBIDDEN, status.HTTP_404_NOT_FOUND, status.HTTP_409_CONFLICT)
}


def status_for(exc: GovernanceError) -> int:
    return ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)


# ---------------------------------------------------------------------------
# Engine singleton
# ---------------------------------------------------------------------------

_engine: GovernanceEngine | None = None


def get_engine() -> GovernanceEngine:
    global _engine
    if _engine is None:
        from modgov.config import load_config

        _engine = GovernanceEngine(load_config())
    return _engine


def _proposal_response(engine: GovernanceEngine, r: ProposalRecord) -> ProposalResponse:
    return ProposalResponse(
        proposal_id=r.proposal_id,
        content_id=r.content_id,
        created_at=r.created_at,
        deadline=r.deadline,
        status=r.status.value,
        remove_weight=r.remove_weight,
        keep_weight=r.keep_weight,
        settled_at=r.settled_at,
        outcome=r.outcome.value if r.outcome else None,
        expired=engine.proposals.is_expired(r.proposal_id),
    )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@router.post(
    "/reports",
    response_model=ReportResponse,
    summary="Report a content item",
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 410: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
async def submit_report(body: SubmitReportRequest, engine: GovernanceEngine = Depends(get_engine)):
    """File a report; the 50th report on an item opens a proposal."""
    report = engine.submit_report(body.content_id, body.reporter_id, body.reason)
    active = engine.proposals.active_proposal_for(body.content_id)
    return ReportResponse(
        content_id=report.content_id,
        reporter_id=report.reporter_id,
        reason=report.reason,
        timestamp=report.timestamp,
        report_count=engine.get_report_count(body.content_id),
        proposal_id=active.proposal_id if active else None,
    )


@router.get(
    "/content/{content_id}/reports/count",
    response_model=ReportCountResponse,
    summary="Report count of the current round",
)
async def get_report_count(content_id: str, engine: GovernanceEngine = Depends(get_engine)):
    return ReportCountResponse(content_id=content_id, report_count=engine.get_report_count(content_id))


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


@router.get(
    "/proposals/{proposal_id}",
    response_model=ProposalResponse,
    summary="Get a proposal",
    responses=_ERRORS,
)
async def get_proposal(proposal_id: str, engine: GovernanceEngine = Depends(get_engine)):
    return _proposal_response(engine, engine.get_proposal(proposal_id))


@router.post(
    "/proposals/{proposal_id}/votes",
    response_model=VoteResponse,
    summary="Cast a vote",
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def cast_vote(proposal_id: str, body: CastVoteRequest, engine: GovernanceEngine = Depends(get_engine)):
    """Vote remove or keep with the voter's current token weight."""
    vote = engine.cast_vote(proposal_id, body.voter_id, body.choice)
    return VoteResponse(**vote.to_dict())


@router.get(
    "/proposals/{proposal_id}/tally",
    response_model=TallyResponse,
    summary="Current tally",
    responses=_ERRORS,
)
async def get_tally(proposal_id: str, engine: GovernanceEngine = Depends(get_engine)):
    t = engine.get_tally(proposal_id)
    return TallyResponse(proposal_id=proposal_id, remove_weight=t.remove_weight, keep_weight=t.keep_weight)


@router.post(
    "/proposals/{proposal_id}/settle",
    response_model=SettlementResponse,
    summary="Settle an expired proposal",
    responses=_ERRORS,
)
async def settle(proposal_id: str, engine: GovernanceEngine = Depends(get_engine)):
    result = engine.settle(proposal_id)
    return SettlementResponse(
        proposal_id=result.proposal_id,
        content_id=result.content_id,
        outcome=result.outcome.value,
        remove_weight=result.remove_weight,
        keep_weight=result.keep_weight,
        settled_at=result.settled_at,
        rewards=[
            RewardDeltaResponse(
                account_id=d.account_id,
                amount=d.amount,
                reason_tag=d.reason_tag,
                status=d.status,
                attempts=d.attempts,
            )
            for d in result.rewards
        ],
    )
