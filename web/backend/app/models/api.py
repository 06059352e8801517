"""Pydantic models for API request/response serialization.

These mirror the modgov dataclasses and give the endpoints a stable JSON
shape.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class SubmitReportRequest(BaseModel):
    content_id: str = Field(..., min_length=1)
    reporter_id: str = Field(..., min_length=1)
    reason: str = ""


class ReportResponse(BaseModel):
    """Mirrors modgov.reports.models.Report, plus the round state."""

    content_id: str
    reporter_id: str
    reason: str = ""
    timestamp: str
    report_count: int = 0
    proposal_id: Optional[str] = None


class ReportCountResponse(BaseModel):
    content_id: str
    report_count: int


# ---------------------------------------------------------------------------
# Proposals and votes
# ---------------------------------------------------------------------------


class ProposalResponse(BaseModel):
    """Mirrors modgov.proposals.models.ProposalRecord."""

    proposal_id: str
    content_id: str
    created_at: str
    deadline: str
    status: str
    remove_weight: int = 0
    keep_weight: int = 0
    settled_at: str = ""
    outcome: Optional[str] = None
    expired: bool = False


class CastVoteRequest(BaseModel):
    voter_id: str = Field(..., min_length=1)
    choice: Literal["remove", "keep"]


class VoteResponse(BaseModel):
    """Mirrors modgov.voting.models.VoteRecord."""

    proposal_id: str
    voter_id: str
    choice: str
    weight: int
    cast_at: str


class TallyResponse(BaseModel):
    proposal_id: str
    remove_weight: int
    keep_weight: int


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------


class RewardDeltaResponse(BaseModel):
    account_id: str
    amount: int
    reason_tag: str
    status: str
    attempts: int = 0


class SettlementResponse(BaseModel):
    """Mirrors modgov.settlement.models.SettlementResult."""

    proposal_id: str
    content_id: str
    outcome: str
    remove_weight: int
    keep_weight: int
    settled_at: str
    rewards: list[RewardDeltaResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    code: str
    message: str
