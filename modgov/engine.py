"""Wiring of the governance components into one object.

:class:`GovernanceEngine` exposes the stable surface used by the CLI and
the REST API: ``submit_report``, ``get_report_count``, ``get_proposal``,
``cast_vote``, ``get_tally`` and ``settle``.  The collaborators default to
the file-backed adapters in the same data directory; pass your own to plug
in a real balance ledger, content service or reward ledger.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from modgov.adapters import FileAccountRegistry, FileBalanceOracle, FileContentStore, FileRewardLedger
from modgov.audit import AuditLogger
from modgov.config import GovernanceConfig
from modgov.interfaces import BalanceOracle, ContentStore, ReporterEligibility, RewardLedger
from modgov.proposals.manager import ProposalManager
from modgov.proposals.models import ProposalRecord
from modgov.reports.ledger import ReportLedger
from modgov.reports.models import Report
from modgov.settlement.engine import SettlementEngine
from modgov.settlement.models import SettlementResult
from modgov.storage import JsonDocumentStore
from modgov.voting.models import Choice, Tally, VoteRecord
from modgov.voting.tally import VoteTally


class GovernanceEngine:
    """Report ledger, proposal manager, vote tally and settlement in one place."""

    def __init__(
        self,
        config: Optional[GovernanceConfig] = None,
        *,
        balances: Optional[BalanceOracle] = None,
        content_store: Optional[ContentStore] = None,
        reward_ledger: Optional[RewardLedger] = None,
        eligibility: Optional[ReporterEligibility] = None,
    ) -> None:
        self.config = config or GovernanceConfig()
        self.store = JsonDocumentStore(self.config.data_path)
        self.audit = AuditLogger(self.config.data_path / "audit")

        self.accounts = FileAccountRegistry(self.store, self.config.eligibility)
        self.balances = balances or FileBalanceOracle(self.store)
        self.content = content_store or FileContentStore(self.store)
        self.reward_ledger = reward_ledger or FileRewardLedger(self.store)
        eligibility = eligibility or self.accounts

        self.proposals = ProposalManager(self.store, self.content, self.audit)
        self.reports = ReportLedger(
            self.store,
            self.proposals,
            eligibility,
            self.audit,
            cooldown=timedelta(seconds=self.config.eligibility.report_cooldown_seconds),
        )
        self.votes = VoteTally(self.store, self.proposals, self.balances, self.audit)
        self.settlement = SettlementEngine(
            self.store,
            self.proposals,
            self.reports,
            self.balances,
            self.content,
            self.reward_ledger,
            self.audit,
            rewards=self.config.rewards,
        )

    # -- stable surface ------------------------------------------------------

    def submit_report(self, content_id: str, reporter_id: str, reason: str = "", now: Optional[datetime] = None) -> Report:
        return self.reports.submit_report(content_id, reporter_id, reason, now=now)

    def get_report_count(self, content_id: str) -> int:
        return self.reports.get_report_count(content_id)

    def get_proposal(self, proposal_id: str) -> ProposalRecord:
        return self.proposals.get_proposal(proposal_id)

    def cast_vote(self, proposal_id: str, voter_id: str, choice: Choice | str, now: Optional[datetime] = None) -> VoteRecord:
        return self.votes.cast_vote(proposal_id, voter_id, choice, now=now)

    def get_tally(self, proposal_id: str) -> Tally:
        return self.votes.get_tally(proposal_id)

    def settle(self, proposal_id: str, now: Optional[datetime] = None) -> SettlementResult:
        return self.settlement.settle(proposal_id, now=now)
