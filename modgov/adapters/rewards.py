"""Reputation ledger: scores and participation streaks per account."""

from __future__ import annotations

from dataclasses import dataclass

from modgov.clock import utcnow
from modgov.constants import REASON_VOTE_ALIGNED
from modgov.storage import JsonDocumentStore

_COLLECTION = "reputation"


@dataclass
class ReputationState:
    """Reputation of one account."""

    account_id: str
    score: int = 0
    streak_count: int = 0


class FileRewardLedger:
    """Reward ledger backed by ``<data_dir>/reputation/``.

    Each applied delta is remembered by its ``proposal_id:reason_tag`` key so
    a redelivered delta is acknowledged without being counted again.
    """

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    def _load(self, account_id: str) -> dict:
        return self._store.read(_COLLECTION, account_id) or {
            "account_id": account_id,
            "score": 0,
            "streak_count": 0,
            "applied": [],
        }

    def apply_delta(self, account_id: str, amount: int, reason_tag: str, proposal_id: str) -> None:
        key = f"{proposal_id}:{reason_tag}"
        with self._store.locked(_COLLECTION, account_id):
            doc = self._load(account_id)
            if key in doc["applied"]:
                return
            doc["score"] += int(amount)
            if reason_tag == REASON_VOTE_ALIGNED:
                doc["streak_count"] += 1
            doc["applied"].append(key)
            doc["updated_at"] = utcnow().isoformat()
            self._store.write(_COLLECTION, account_id, doc)

    def get_reputation(self, account_id: str) -> ReputationState:
        doc = self._load(account_id)
        return ReputationState(
            account_id=account_id,
            score=int(doc.get("score", 0)),
            streak_count=int(doc.get("streak_count", 0)),
        )
