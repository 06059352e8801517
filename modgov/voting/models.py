"""Vote data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Choice(str, Enum):
    REMOVE = "remove"
    KEEP = "keep"


@dataclass(frozen=True)
class VoteRecord:
    """A cast vote.  ``weight`` is the voter's weight at ``cast_at``."""

    proposal_id: str
    voter_id: str
    choice: Choice
    weight: int
    cast_at: str

    def to_dict(self) -> dict:
        return {
            "proposal_id": self.proposal_id,
            "voter_id": self.voter_id,
            "choice": self.choice.value,
            "weight": self.weight,
            "cast_at": self.cast_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> VoteRecord:
        return cls(
            proposal_id=d["proposal_id"],
            voter_id=d["voter_id"],
            choice=Choice(d["choice"]),
            weight=int(d["weight"]),
            cast_at=d["cast_at"],
        )


@dataclass(frozen=True)
class Tally:
    remove_weight: int = 0
    keep_weight: int = 0

    @property
    def total(self) -> int:
        return self.remove_weight + self.keep_weight
