"""Settlement: close an expired proposal exactly once and pay out.

``settle`` runs the whole decision under the content and proposal locks:
it re-reads the proposal, refuses anything already settled or not yet
expired, applies the content change, computes every reward delta and writes
the terminal status together with the reward outbox.  Only after that
commit are the deltas handed to the reward ledger, one attempt each.  A
ledger outage leaves deltas pending in the outbox for :meth:`retry_rewards`;
it never undoes the decision.

Decision rule: strictly more remove weight than keep weight removes the
content.  A tie keeps it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from modgov.audit import (
    ACTION_PROPOSAL_SETTLED,
    ACTION_REWARD_DELIVERED,
    ACTION_REWARD_FAILED,
    AuditLogger,
)
from modgov.clock import parse, resolve, utcnow
from modgov.config import RewardConfig
from modgov.constants import REASON_FALSE_REPORT, REASON_REPORT_VALIDATED, REASON_VOTE_ALIGNED
from modgov.errors import AlreadySettled, LedgerUnavailable, NotYetExpired
from modgov.interfaces import BalanceOracle, ContentStore, RewardLedger
from modgov.proposals.manager import ProposalManager
from modgov.proposals.models import Outcome, ProposalStatus
from modgov.reports.ledger import ReportLedger
from modgov.settlement.models import DELIVERY_DELIVERED, RewardDelta, SettlementResult
from modgov.storage import LOCK_CONTENT, LOCK_PROPOSAL, JsonDocumentStore
from modgov.voting.models import Choice

logger = logging.getLogger(__name__)

_ALIGNED_CHOICE = {Outcome.REMOVED: Choice.REMOVE, Outcome.KEPT: Choice.KEEP}


def decide(remove_weight: int, keep_weight: int) -> Outcome:
    """Simple majority of weight; ties keep the content."""
    return Outcome.REMOVED if remove_weight > keep_weight else Outcome.KEPT


class SettlementEngine:
    """Executes proposal outcomes and distributes rewards."""

    def __init__(
        self,
        store: JsonDocumentStore,
        proposals: ProposalManager,
        reports: ReportLedger,
        balances: BalanceOracle,
        content_store: ContentStore,
        reward_ledger: RewardLedger,
        audit: AuditLogger,
        rewards: Optional[RewardConfig] = None,
    ) -> None:
        self._store = store
        self._proposals = proposals
        self._reports = reports
        self._balances = balances
        self._content = content_store
        self._ledger = reward_ledger
        self._audit = audit
        self._amounts = rewards or RewardConfig()

    # ------------------------------------------------------------------
    # Reward computation
    # ------------------------------------------------------------------

    def compute_rewards(
        self,
        votes: dict[str, dict[str, Any]],
        reporters: list[str],
        outcome: Outcome,
    ) -> list[RewardDelta]:
        """Deltas owed for *outcome*.  Losing voters get nothing."""
        deltas: list[RewardDelta] = []
        aligned = _ALIGNED_CHOICE[outcome]
        for voter_id in sorted(votes):
            if Choice(votes[voter_id]["choice"]) is aligned:
                deltas.append(RewardDelta(voter_id, self._amounts.vote_reward, REASON_VOTE_ALIGNED))
        for reporter_id in reporters:
            if outcome is Outcome.REMOVED:
                deltas.append(RewardDelta(reporter_id, self._amounts.report_reward, REASON_REPORT_VALIDATED))
            else:
                deltas.append(RewardDelta(reporter_id, -self._amounts.false_report_penalty, REASON_FALSE_REPORT))
        return deltas

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def settle(self, proposal_id: str, now: Optional[datetime] = None, actor: str = "system") -> SettlementResult:
        """Settle *proposal_id*.

        Raises NotFound, AlreadySettled or NotYetExpired.  Of any number of
        concurrent calls for one proposal exactly one succeeds.
        """
        now = resolve(now)
        content_id = self._proposals.get_proposal(proposal_id).content_id

        with self._store.locked(LOCK_CONTENT, content_id), self._store.locked(LOCK_PROPOSAL, proposal_id):
            doc = self._proposals.document(proposal_id)
            if doc["status"] != ProposalStatus.active.value:
                raise AlreadySettled(proposal_id=proposal_id, status=doc["status"])
            if now < parse(doc["deadline"]):
                raise NotYetExpired(proposal_id=proposal_id, deadline=doc["deadline"])

            remove_weight = int(doc.get("remove_weight", 0))
            keep_weight = int(doc.get("keep_weight", 0))
            outcome = decide(remove_weight, keep_weight)
            reporters = self._reports.reporters_of_record(content_id)
            deltas = self.compute_rewards(doc["votes"], reporters, outcome)

            if outcome is Outcome.REMOVED:
                self._content.mark_deleted(content_id)
            else:
                self._content.restore(content_id)

            doc = self._proposals.finalize(
                proposal_id,
                outcome,
                now,
                extra={"reporters": reporters, "rewards": [d.to_dict() for d in deltas]},
            )
            self._reports.archive_round(content_id, proposal_id)

        for voter_id in doc["votes"]:
            self._balances.unlock(voter_id, proposal_id)

        logger.info(
            "proposal %s settled: %s (remove=%d keep=%d, %d reward deltas)",
            proposal_id, outcome.value, remove_weight, keep_weight, len(deltas),
        )
        self._audit.log_event(
            actor=actor,
            action=ACTION_PROPOSAL_SETTLED,
            resource_type="proposal",
            resource_id=proposal_id,
            details={
                "content_id": content_id,
                "outcome": outcome.value,
                "remove_weight": remove_weight,
                "keep_weight": keep_weight,
            },
            at=now,
        )

        rewards = self._dispatch(proposal_id)
        return SettlementResult(
            proposal_id=proposal_id,
            content_id=content_id,
            outcome=outcome,
            remove_weight=remove_weight,
            keep_weight=keep_weight,
            settled_at=doc["settled_at"],
            rewards=rewards,
        )

    def sweep(self, now: Optional[datetime] = None) -> list[SettlementResult]:
        """Settle every expired active proposal.  Safe to run concurrently."""
        now = resolve(now)
        results = []
        for record in self._proposals.expired_proposals(now):
            try:
                results.append(self.settle(record.proposal_id, now=now, actor="sweep"))
            except AlreadySettled:
                logger.debug("proposal %s settled by another trigger", record.proposal_id)
        return results

    # ------------------------------------------------------------------
    # Reward delivery
    # ------------------------------------------------------------------

    def _dispatch(self, proposal_id: str) -> list[RewardDelta]:
        """Make one delivery attempt for each pending delta of *proposal_id*."""
        with self._store.locked(LOCK_PROPOSAL, proposal_id):
            doc = self._proposals.document(proposal_id)
            deltas = [RewardDelta.from_dict(d) for d in doc["rewards"]]
            try:
                for delta in deltas:
                    if delta.delivered:
                        continue
                    delta.attempts += 1
                    try:
                        self._ledger.apply_delta(delta.account_id, delta.amount, delta.reason_tag, proposal_id)
                    except LedgerUnavailable as exc:
                        delta.last_error = exc.message
                        logger.warning(
                            "reward %s for %s on %s left pending: %s",
                            delta.reason_tag, delta.account_id, proposal_id, exc.message,
                        )
                        self._audit.log_event(
                            actor="system",
                            action=ACTION_REWARD_FAILED,
                            resource_type="account",
                            resource_id=delta.account_id,
                            details={"proposal_id": proposal_id, "reason_tag": delta.reason_tag},
                            success=False,
                        )
                        continue
                    delta.status = DELIVERY_DELIVERED
                    delta.delivered_at = utcnow().isoformat()
                    delta.last_error = ""
                    self._audit.log_event(
                        actor="system",
                        action=ACTION_REWARD_DELIVERED,
                        resource_type="account",
                        resource_id=delta.account_id,
                        details={
                            "proposal_id": proposal_id,
                            "reason_tag": delta.reason_tag,
                            "amount": delta.amount,
                        },
                    )
            finally:
                doc["rewards"] = [d.to_dict() for d in deltas]
                self._proposals.save_document(doc)
        return deltas

    def pending_rewards(self) -> dict[str, list[RewardDelta]]:
        """Undelivered deltas of every settled proposal, keyed by proposal id."""
        pending: dict[str, list[RewardDelta]] = {}
        for record in self._proposals.list_proposals():
            if record.is_active:
                continue
            deltas = [
                RewardDelta.from_dict(d)
                for d in self._proposals.document(record.proposal_id)["rewards"]
            ]
            waiting = [d for d in deltas if not d.delivered]
            if waiting:
                pending[record.proposal_id] = waiting
        return pending

    def retry_rewards(self) -> int:
        """Redeliver pending deltas.  Returns how many were delivered."""
        delivered = 0
        for proposal_id, waiting in self.pending_rewards().items():
            before = len(waiting)
            after = sum(1 for d in self._dispatch(proposal_id) if not d.delivered)
            delivered += before - after
        if delivered:
            logger.info("redelivered %d pending rewards", delivered)
        return delivered
