"""Proposal creation, lookup and the stored status transition.

A proposal is opened for a content item when its report round reaches the
threshold, or manually by an operator.  Each content item has at most one
active proposal; the per-content index records which one it is.  Expiry is
never stored: a proposal is expired when the clock is past its deadline and
it is still active.

Storage, under the data dir:
- ``proposals/<proposal_id>.json`` -- record, votes and reward outbox
- ``proposal_index/<content_id>.json`` -- active and past proposal ids
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from modgov.audit import ACTION_PROPOSAL_OPENED, AuditLogger
from modgov.clock import resolve
from modgov.constants import VOTING_WINDOW
from modgov.errors import AlreadySettled, NotFound, ProposalAlreadyActive
from modgov.interfaces import ContentStore
from modgov.proposals.models import PROPOSAL_INDEX, PROPOSALS, Outcome, ProposalRecord, ProposalStatus
from modgov.storage import LOCK_CONTENT, LOCK_PROPOSAL, JsonDocumentStore

logger = logging.getLogger(__name__)


class ProposalManager:
    """Owns proposal records and their Active -> terminal transition."""

    def __init__(self, store: JsonDocumentStore, content_store: ContentStore, audit: AuditLogger) -> None:
        self._store = store
        self._content = content_store
        self._audit = audit

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def document(self, proposal_id: str) -> dict[str, Any]:
        """Return the full stored document for *proposal_id*.

        Raises NotFound if there is no such proposal.
        """
        doc = self._store.read(PROPOSALS, proposal_id)
        if doc is None:
            raise NotFound(f"Proposal {proposal_id} not found", proposal_id=proposal_id)
        doc.setdefault("votes", {})
        doc.setdefault("reporters", [])
        doc.setdefault("rewards", [])
        return doc

    def save_document(self, doc: dict[str, Any]) -> None:
        self._store.write(PROPOSALS, doc["proposal_id"], doc)

    def _load_index(self, content_id: str) -> dict[str, Any]:
        return self._store.read(PROPOSAL_INDEX, content_id) or {
            "content_id": content_id,
            "active_proposal_id": "",
            "proposal_ids": [],
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_proposal(self, proposal_id: str) -> ProposalRecord:
        return ProposalRecord.from_dict(self.document(proposal_id))

    def active_proposal_for(self, content_id: str) -> Optional[ProposalRecord]:
        """Return the active proposal for *content_id*, if there is one."""
        active_id = self._load_index(content_id).get("active_proposal_id")
        if not active_id:
            return None
        doc = self._store.read(PROPOSALS, active_id)
        if doc is None:
            return None
        record = ProposalRecord.from_dict(doc)
        # The index is cleared after the status flip, so trust the record.
        return record if record.is_active else None

    def proposals_for(self, content_id: str) -> list[ProposalRecord]:
        """All proposals ever opened for *content_id*, oldest first."""
        records = []
        for pid in self._load_index(content_id).get("proposal_ids", []):
            doc = self._store.read(PROPOSALS, pid)
            if doc is not None:
                records.append(ProposalRecord.from_dict(doc))
        return records

    def list_proposals(self, status: Optional[ProposalStatus] = None) -> list[ProposalRecord]:
        records = [ProposalRecord.from_dict(d) for d in self._store.all(PROPOSALS)]
        if status is not None:
            records = [r for r in records if r.status is status]
        records.sort(key=lambda r: r.created_at)
        return records

    def is_expired(self, proposal_id: str, now: Optional[datetime] = None) -> bool:
        """True iff the deadline has passed and the proposal is still active."""
        record = self.get_proposal(proposal_id)
        return record.is_active and resolve(now) >= record.deadline_at

    def expired_proposals(self, now: Optional[datetime] = None) -> list[ProposalRecord]:
        now = resolve(now)
        return [
            r for r in self.list_proposals(ProposalStatus.active)
            if now >= r.deadline_at
        ]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create_proposal(
        self,
        content_id: str,
        now: Optional[datetime] = None,
        strict: bool = False,
        actor: str = "system",
    ) -> ProposalRecord:
        """Open a proposal for *content_id*.

        If one is already active it is returned unchanged, unless *strict* is
        set, in which case ProposalAlreadyActive is raised.
        """
        with self._store.locked(LOCK_CONTENT, content_id):
            existing = self.active_proposal_for(content_id)
            if existing is not None:
                if strict:
                    raise ProposalAlreadyActive(
                        content_id=content_id, proposal_id=existing.proposal_id
                    )
                return existing

            now = resolve(now)
            record = ProposalRecord(
                proposal_id=uuid.uuid4().hex,
                content_id=content_id,
                created_at=now.isoformat(),
                deadline=(now + VOTING_WINDOW).isoformat(),
            )
            # Index first: a crash before the record is written leaves a
            # dangling id, which active_proposal_for ignores.
            index = self._load_index(content_id)
            index["active_proposal_id"] = record.proposal_id
            index["proposal_ids"].append(record.proposal_id)
            self._store.write(PROPOSAL_INDEX, content_id, index)

            doc = record.to_dict()
            doc.update(votes={}, reporters=[], rewards=[])
            self._store.write(PROPOSALS, record.proposal_id, doc)

            self._content.flag_under_review(content_id)

        logger.info("proposal %s opened for %s, deadline %s", record.proposal_id, content_id, record.deadline)
        self._audit.log_event(
            actor=actor,
            action=ACTION_PROPOSAL_OPENED,
            resource_type="proposal",
            resource_id=record.proposal_id,
            details={"content_id": content_id, "deadline": record.deadline},
            at=now,
        )
        return record

    def finalize(
        self,
        proposal_id: str,
        outcome: Outcome,
        now: datetime,
        extra: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Move an active proposal to the terminal status for *outcome*.

        *extra* is merged into the stored document in the same write.
        Returns the updated document.  Raises AlreadySettled if the proposal
        is no longer active.
        """
        content_id = self.document(proposal_id)["content_id"]
        with self._store.locked(LOCK_CONTENT, content_id), self._store.locked(LOCK_PROPOSAL, proposal_id):
            doc = self.document(proposal_id)
            if doc["status"] != ProposalStatus.active.value:
                raise AlreadySettled(proposal_id=proposal_id, status=doc["status"])
            doc["status"] = outcome.status.value
            doc["outcome"] = outcome.value
            doc["settled_at"] = resolve(now).isoformat()
            if extra:
                doc.update(extra)
            self.save_document(doc)

            index = self._load_index(content_id)
            if index.get("active_proposal_id") == proposal_id:
                index["active_proposal_id"] = ""
                self._store.write(PROPOSAL_INDEX, content_id, index)
        return doc
