"""Report ledger with per-content rounds and the proposal trigger.

Reports against a content item are grouped into rounds.  The current round's
reports and its counter live in the same document, so they are always
written together.  When the counter reaches the threshold and the content
has no active proposal, the ledger opens one before releasing the content
lock; concurrent reports on the same content can therefore never open two.

Once the round's proposal is settled, the round is archived and the counter
starts again from zero.  A reporter can report a given content item only
once, archived rounds included.  Content removed by a settled proposal takes
no further reports.

Storage, under the data dir:
- ``reports/<content_id>.json`` -- current round, counter, archive
- ``reporter_activity/<reporter_id>.json`` -- last report time (cooldown)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from modgov.audit import ACTION_REPORT_SUBMITTED, AuditLogger
from modgov.clock import parse, resolve
from modgov.constants import REPORT_THRESHOLD
from modgov.errors import ContentRemoved, DuplicateReport, NotFound, RateLimited, ReporterIneligible
from modgov.interfaces import ReporterEligibility
from modgov.proposals.manager import ProposalManager
from modgov.proposals.models import Outcome
from modgov.reports.models import Report
from modgov.storage import LOCK_CONTENT, LOCK_REPORTER, JsonDocumentStore

logger = logging.getLogger(__name__)

_REPORTS = "reports"
_ACTIVITY = "reporter_activity"


class ReportLedger:
    """Records reports and opens a proposal when a round fills up."""

    def __init__(
        self,
        store: JsonDocumentStore,
        proposals: ProposalManager,
        eligibility: ReporterEligibility,
        audit: AuditLogger,
        cooldown: timedelta = timedelta(seconds=60),
    ) -> None:
        self._store = store
        self._proposals = proposals
        self._eligibility = eligibility
        self._audit = audit
        self._cooldown = cooldown

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self, content_id: str) -> dict[str, Any]:
        return self._store.read(_REPORTS, content_id) or {
            "content_id": content_id,
            "count": 0,
            "reports": [],
            "proposal_id": "",
            "archived": [],
        }

    def _round_closed(self, doc: dict[str, Any]) -> bool:
        """True if the round's proposal was settled but the round not archived."""
        if not doc.get("proposal_id"):
            return False
        try:
            return not self._proposals.get_proposal(doc["proposal_id"]).is_active
        except NotFound:
            return False

    @staticmethod
    def _archive(doc: dict[str, Any], proposal_id: str) -> None:
        for r in doc["reports"]:
            doc["archived"].append({**r, "proposal_id": proposal_id})
        doc["reports"] = []
        doc["count"] = 0
        doc["proposal_id"] = ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit_report(
        self,
        content_id: str,
        reporter_id: str,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> Report:
        """File a report.  May open a proposal as a side effect.

        Raises ReporterIneligible, ContentRemoved, DuplicateReport or
        RateLimited, checked in that order.
        """
        now = resolve(now)
        with self._store.locked(LOCK_REPORTER, reporter_id), self._store.locked(LOCK_CONTENT, content_id):
            if not self._eligibility.reporter_eligible(reporter_id, content_id, now):
                logger.debug("report on %s by %s rejected: ineligible", content_id, reporter_id)
                raise ReporterIneligible(reporter_id=reporter_id)

            if any(p.outcome is Outcome.REMOVED for p in self._proposals.proposals_for(content_id)):
                logger.debug("report on %s by %s rejected: content removed", content_id, reporter_id)
                raise ContentRemoved(content_id=content_id)

            doc = self._load(content_id)
            if self._round_closed(doc):
                self._archive(doc, doc["proposal_id"])

            seen = {r["reporter_id"] for r in doc["reports"]} | {r["reporter_id"] for r in doc["archived"]}
            if reporter_id in seen:
                logger.debug("report on %s by %s rejected: duplicate", content_id, reporter_id)
                raise DuplicateReport(content_id=content_id, reporter_id=reporter_id)

            activity = self._store.read(_ACTIVITY, reporter_id) or {}
            if activity.get("last_report_at"):
                elapsed = now - parse(activity["last_report_at"])
                if elapsed < self._cooldown:
                    retry_after = (self._cooldown - elapsed).total_seconds()
                    logger.debug("report by %s rate limited for %.0fs", reporter_id, retry_after)
                    raise RateLimited(retry_after=retry_after, reporter_id=reporter_id)

            report = Report(
                content_id=content_id,
                reporter_id=reporter_id,
                reason=reason,
                timestamp=now.isoformat(),
            )
            doc["reports"].append(report.to_dict())
            doc["count"] = len(doc["reports"])
            self._store.write(_REPORTS, content_id, doc)
            self._store.write(_ACTIVITY, reporter_id, {"reporter_id": reporter_id, "last_report_at": now.isoformat()})

            if doc["count"] >= REPORT_THRESHOLD and not doc["proposal_id"]:
                proposal = self._proposals.create_proposal(content_id, now=now)
                doc["proposal_id"] = proposal.proposal_id
                self._store.write(_REPORTS, content_id, doc)
            count = doc["count"]

        logger.info("report on %s by %s accepted (count=%d)", content_id, reporter_id, count)
        self._audit.log_event(
            actor=reporter_id,
            action=ACTION_REPORT_SUBMITTED,
            resource_type="content",
            resource_id=content_id,
            details={"reason": reason, "count": count},
            at=now,
        )
        return report

    def get_report_count(self, content_id: str) -> int:
        """Number of reports in the current round."""
        doc = self._load(content_id)
        if self._round_closed(doc):
            return 0
        return int(doc["count"])

    def list_reports(self, content_id: str, include_archived: bool = False) -> list[Report]:
        doc = self._load(content_id)
        closed = self._round_closed(doc)
        entries = [] if closed and not include_archived else list(doc["reports"])
        if include_archived:
            entries = doc["archived"] + entries
        return [Report.from_dict(r) for r in entries]

    def reporters_of_record(self, content_id: str) -> list[str]:
        """Reporters in the current (unarchived) round, in filing order."""
        with self._store.locked(LOCK_CONTENT, content_id):
            doc = self._load(content_id)
            return [r["reporter_id"] for r in doc["reports"]]

    def archive_round(self, content_id: str, proposal_id: str) -> int:
        """Close the current round once *proposal_id* is settled.

        Returns the number of reports archived.
        """
        with self._store.locked(LOCK_CONTENT, content_id):
            doc = self._load(content_id)
            archived = len(doc["reports"])
            self._archive(doc, proposal_id)
            self._store.write(_REPORTS, content_id, doc)
        return archived
