"""Settlement results and the reward outbox entries."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from modgov.proposals.models import Outcome

DELIVERY_PENDING = "pending"
DELIVERY_DELIVERED = "delivered"


@dataclass
class RewardDelta:
    """One reputation change owed to one account by one settled proposal."""

    account_id: str
    amount: int
    reason_tag: str
    status: str = DELIVERY_PENDING
    attempts: int = 0
    last_error: str = ""
    delivered_at: str = ""

    @property
    def delivered(self) -> bool:
        return self.status == DELIVERY_DELIVERED

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> RewardDelta:
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class SettlementResult:
    """What one successful ``settle`` call did."""

    proposal_id: str
    content_id: str
    outcome: Outcome
    remove_weight: int
    keep_weight: int
    settled_at: str
    rewards: list[RewardDelta] = field(default_factory=list)

    @property
    def pending_rewards(self) -> list[RewardDelta]:
        return [r for r in self.rewards if not r.delivered]
