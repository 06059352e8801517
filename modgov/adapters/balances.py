"""Token balances kept as JSON documents, one per account."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from modgov.clock import utcnow
from modgov.constants import WEIGHT_PER_TOKEN
from modgov.storage import JsonDocumentStore

_COLLECTION = "balances"


class FileBalanceOracle:
    """Balance oracle backed by ``<data_dir>/balances/``.

    Only the current balance is stored, so ``weight_of`` ignores *at*.
    Locks are recorded per account as the list of proposal ids the account
    has voted on and not yet seen settled.
    """

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    def _load(self, account_id: str) -> dict:
        return self._store.read(_COLLECTION, account_id) or {
            "account_id": account_id,
            "tokens": 0,
            "locks": [],
            "updated_at": "",
        }

    def set_balance(self, account_id: str, tokens: int) -> None:
        if tokens < 0:
            raise ValueError("token balance cannot be negative")
        with self._store.locked(_COLLECTION, account_id):
            doc = self._load(account_id)
            doc["tokens"] = int(tokens)
            doc["updated_at"] = utcnow().isoformat()
            self._store.write(_COLLECTION, account_id, doc)

    def weight_of(self, account_id: str, at: Optional[datetime] = None) -> int:
        return max(0, int(self._load(account_id).get("tokens", 0))) * WEIGHT_PER_TOKEN

    def lock(self, account_id: str, proposal_id: str) -> None:
        with self._store.locked(_COLLECTION, account_id):
            doc = self._load(account_id)
            if proposal_id not in doc["locks"]:
                doc["locks"].append(proposal_id)
                self._store.write(_COLLECTION, account_id, doc)

    def unlock(self, account_id: str, proposal_id: str) -> None:
        with self._store.locked(_COLLECTION, account_id):
            doc = self._load(account_id)
            if proposal_id in doc["locks"]:
                doc["locks"].remove(proposal_id)
                self._store.write(_COLLECTION, account_id, doc)

    def locks_for(self, account_id: str) -> list[str]:
        return list(self._load(account_id).get("locks", []))
