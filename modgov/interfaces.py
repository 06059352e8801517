"""Contracts for the collaborators the engine consumes but does not own.

The engine only talks to balances, content state, eligibility and the
reward ledger through these protocols.  File-backed defaults live in
:mod:`modgov.adapters`; production deployments plug in their own.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class BalanceOracle(Protocol):
    """Read-only view of voting weight, with an advisory lock."""

    def weight_of(self, account_id: str, at: datetime) -> int:
        """Return the non-negative eligible weight of *account_id* at *at*."""
        ...

    def lock(self, account_id: str, proposal_id: str) -> None:
        ...

    def unlock(self, account_id: str, proposal_id: str) -> None:
        ...


@runtime_checkable
class ContentStore(Protocol):
    """Content state sink.  All calls must be idempotent."""

    def flag_under_review(self, content_id: str) -> None:
        ...

    def mark_deleted(self, content_id: str) -> None:
        ...

    def restore(self, content_id: str) -> None:
        """Clear the review flag on content a proposal decided to keep."""
        ...


@runtime_checkable
class RewardLedger(Protocol):
    """Reputation/reward sink.

    ``apply_delta`` is idempotent per ``(proposal_id, account_id, reason_tag)``
    and raises :class:`modgov.errors.LedgerUnavailable` when the write could
    not be made.
    """

    def apply_delta(self, account_id: str, amount: int, reason_tag: str, proposal_id: str) -> None:
        ...


@runtime_checkable
class ReporterEligibility(Protocol):
    """Account age and stake requirements for reporting."""

    def reporter_eligible(self, account_id: str, content_id: str, now: datetime) -> bool:
        ...
