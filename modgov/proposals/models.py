"""Proposal data models and the status/outcome vocabulary."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from modgov.clock import parse

# Storage collection holding one document per proposal
PROPOSALS = "proposals"
# Storage collection mapping content id -> active and past proposal ids
PROPOSAL_INDEX = "proposal_index"


class ProposalStatus(str, Enum):
    """Stored lifecycle state.  ``rejected`` means the removal was rejected."""

    active = "active"
    executed = "executed"
    rejected = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ProposalStatus.active


class Outcome(str, Enum):
    """What settlement decided for the content."""

    REMOVED = "removed"
    KEPT = "kept"

    @property
    def status(self) -> ProposalStatus:
        return ProposalStatus.executed if self is Outcome.REMOVED else ProposalStatus.rejected


@dataclass
class ProposalRecord:
    """A time-boxed removal vote on one content item."""

    proposal_id: str
    content_id: str
    created_at: str
    deadline: str
    status: ProposalStatus = ProposalStatus.active
    remove_weight: int = 0
    keep_weight: int = 0
    settled_at: str = ""
    outcome: Optional[Outcome] = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = ProposalStatus(self.status)
        if isinstance(self.outcome, str):
            self.outcome = Outcome(self.outcome) if self.outcome else None

    @property
    def deadline_at(self) -> datetime:
        return parse(self.deadline)

    @property
    def is_active(self) -> bool:
        return self.status is ProposalStatus.active

    def to_dict(self) -> dict:
        return {
            "proposal_id": self.proposal_id,
            "content_id": self.content_id,
            "created_at": self.created_at,
            "deadline": self.deadline,
            "status": self.status.value,
            "remove_weight": self.remove_weight,
            "keep_weight": self.keep_weight,
            "settled_at": self.settled_at,
            "outcome": self.outcome.value if self.outcome else "",
        }

    @classmethod
    def from_dict(cls, d: dict) -> ProposalRecord:
        return cls(
            proposal_id=d["proposal_id"],
            content_id=d["content_id"],
            created_at=d["created_at"],
            deadline=d["deadline"],
            status=d.get("status", "active"),
            remove_weight=int(d.get("remove_weight", 0)),
            keep_weight=int(d.get("keep_weight", 0)),
            settled_at=d.get("settled_at", ""),
            outcome=d.get("outcome") or None,
        )
