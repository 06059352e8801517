"""Registered accounts and the reporter eligibility check."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from modgov.clock import parse, resolve
from modgov.config import EligibilityConfig
from modgov.storage import JsonDocumentStore

_COLLECTION = "accounts"


class FileAccountRegistry:
    """Accounts stored under ``<data_dir>/accounts/``.

    An account may report once it is at least ``min_account_age_days`` old
    and has staked at least ``min_stake`` tokens.  The per-reporter cooldown
    is enforced by the report ledger, not here.
    """

    def __init__(self, store: JsonDocumentStore, eligibility: Optional[EligibilityConfig] = None) -> None:
        self._store = store
        self._rules = eligibility or EligibilityConfig()

    def register_account(
        self,
        account_id: str,
        created_at: Optional[datetime] = None,
        stake: int = 0,
    ) -> dict:
        """Create or update an account record. Returns the stored dict."""
        with self._store.locked(_COLLECTION, account_id):
            doc = self._store.read(_COLLECTION, account_id) or {"account_id": account_id}
            doc["created_at"] = resolve(created_at).isoformat()
            doc["stake"] = int(stake)
            self._store.write(_COLLECTION, account_id, doc)
            return doc

    def get_account(self, account_id: str) -> Optional[dict]:
        return self._store.read(_COLLECTION, account_id)

    def reporter_eligible(self, account_id: str, content_id: str, now: datetime) -> bool:
        account = self.get_account(account_id)
        if account is None:
            return False
        age = resolve(now) - parse(account["created_at"])
        if age < timedelta(days=self._rules.min_account_age_days):
            return False
        return int(account.get("stake", 0)) >= self._rules.min_stake
