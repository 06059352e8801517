"""Vote casting and tallying.

Votes are stored inside the proposal document alongside the running
weight sums, so recording a vote and adding its weight is a single write.
The whole check-and-insert runs under the proposal's lock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from modgov.audit import ACTION_VOTE_CAST, AuditLogger
from modgov.clock import parse, resolve
from modgov.errors import AlreadyVoted, NotEligible, ProposalNotActive, VotingWindowClosed
from modgov.interfaces import BalanceOracle
from modgov.proposals.manager import ProposalManager
from modgov.proposals.models import ProposalStatus
from modgov.storage import LOCK_PROPOSAL, JsonDocumentStore
from modgov.voting.models import Choice, Tally, VoteRecord

logger = logging.getLogger(__name__)


class VoteTally:
    """Owns vote records and the remove/keep weight sums of each proposal."""

    def __init__(
        self,
        store: JsonDocumentStore,
        proposals: ProposalManager,
        balances: BalanceOracle,
        audit: AuditLogger,
    ) -> None:
        self._store = store
        self._proposals = proposals
        self._balances = balances
        self._audit = audit

    def cast_vote(
        self,
        proposal_id: str,
        voter_id: str,
        choice: Choice | str,
        now: Optional[datetime] = None,
    ) -> VoteRecord:
        """Record *voter_id*'s vote with their current weight.

        Raises NotFound, ProposalNotActive, VotingWindowClosed, NotEligible
        or AlreadyVoted, checked in that order.  The deadline is binding even
        while the stored status is still active.
        """
        choice = Choice(choice)
        now = resolve(now)
        with self._store.locked(LOCK_PROPOSAL, proposal_id):
            doc = self._proposals.document(proposal_id)
            if doc["status"] != ProposalStatus.active.value:
                raise ProposalNotActive(proposal_id=proposal_id, status=doc["status"])
            if now >= parse(doc["deadline"]):
                raise VotingWindowClosed(proposal_id=proposal_id, deadline=doc["deadline"])
            weight = self._balances.weight_of(voter_id, now)
            if weight <= 0:
                raise NotEligible(voter_id=voter_id)
            if voter_id in doc["votes"]:
                raise AlreadyVoted(proposal_id=proposal_id, voter_id=voter_id)

            vote = VoteRecord(
                proposal_id=proposal_id,
                voter_id=voter_id,
                choice=choice,
                weight=weight,
                cast_at=now.isoformat(),
            )
            self._balances.lock(voter_id, proposal_id)
            try:
                doc["votes"][voter_id] = vote.to_dict()
                if choice is Choice.REMOVE:
                    doc["remove_weight"] = int(doc.get("remove_weight", 0)) + weight
                else:
                    doc["keep_weight"] = int(doc.get("keep_weight", 0)) + weight
                self._proposals.save_document(doc)
            except Exception:
                self._balances.unlock(voter_id, proposal_id)
                raise

        logger.info("vote on %s by %s: %s x%d", proposal_id, voter_id, choice.value, weight)
        self._audit.log_event(
            actor=voter_id,
            action=ACTION_VOTE_CAST,
            resource_type="proposal",
            resource_id=proposal_id,
            details={"choice": choice.value, "weight": weight},
            at=now,
        )
        return vote

    def get_tally(self, proposal_id: str) -> Tally:
        doc = self._proposals.document(proposal_id)
        return Tally(
            remove_weight=int(doc.get("remove_weight", 0)),
            keep_weight=int(doc.get("keep_weight", 0)),
        )

    def list_votes(self, proposal_id: str) -> list[VoteRecord]:
        doc = self._proposals.document(proposal_id)
        votes = [VoteRecord.from_dict(v) for v in doc["votes"].values()]
        votes.sort(key=lambda v: v.cast_at)
        return votes
