"""Tests for the proposal manager."""

import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from modgov.config import GovernanceConfig
from modgov.engine import GovernanceEngine
from modgov.errors import AlreadySettled, NotFound, ProposalAlreadyActive
from modgov.proposals.models import Outcome, ProposalRecord, ProposalStatus

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _engine(tmpdir: str) -> GovernanceEngine:
    return GovernanceEngine(GovernanceConfig(data_dir=tmpdir))


def test_create_proposal_sets_window():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        record = engine.proposals.create_proposal("post-1", now=T0)

        assert record.status is ProposalStatus.active
        assert record.deadline_at == T0 + timedelta(hours=24)
        assert record.remove_weight == 0
        assert record.keep_weight == 0
        assert record.outcome is None
        assert engine.content.get_state("post-1") == "under_review"


def test_create_proposal_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        first = engine.proposals.create_proposal("post-1", now=T0)
        second = engine.proposals.create_proposal("post-1", now=T0 + timedelta(hours=1))

        assert second.proposal_id == first.proposal_id
        assert second.created_at == first.created_at
        assert len(engine.proposals.list_proposals()) == 1


def test_strict_create_raises_when_active():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        engine.proposals.create_proposal("post-1", now=T0)
        with pytest.raises(ProposalAlreadyActive):
            engine.proposals.create_proposal("post-1", now=T0, strict=True)


def test_get_unknown_proposal():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        with pytest.raises(NotFound):
            engine.get_proposal("missing")


def test_is_expired_is_derived():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        record = engine.proposals.create_proposal("post-1", now=T0)
        pid = record.proposal_id

        assert not engine.proposals.is_expired(pid, T0 + timedelta(hours=23, minutes=59))
        assert engine.proposals.is_expired(pid, T0 + timedelta(hours=24))
        assert [r.proposal_id for r in engine.proposals.expired_proposals(T0 + timedelta(hours=30))] == [pid]

        engine.settle(pid, now=T0 + timedelta(hours=30))
        assert not engine.proposals.is_expired(pid, T0 + timedelta(hours=30))
        assert engine.proposals.expired_proposals(T0 + timedelta(hours=30)) == []


def test_finalize_is_single_transition():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        pid = engine.proposals.create_proposal("post-1", now=T0).proposal_id

        doc = engine.proposals.finalize(pid, Outcome.REMOVED, T0 + timedelta(hours=25))
        assert doc["status"] == "executed"
        with pytest.raises(AlreadySettled):
            engine.proposals.finalize(pid, Outcome.KEPT, T0 + timedelta(hours=26))
        assert engine.get_proposal(pid).status is ProposalStatus.executed


def test_new_proposal_after_previous_settles():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = _engine(tmpdir)
        first = engine.proposals.create_proposal("post-1", now=T0)
        engine.settle(first.proposal_id, now=T0 + timedelta(hours=25))

        second = engine.proposals.create_proposal("post-1", now=T0 + timedelta(hours=26), strict=True)
        assert second.proposal_id != first.proposal_id
        assert [r.proposal_id for r in engine.proposals.proposals_for("post-1")] == [
            first.proposal_id,
            second.proposal_id,
        ]
        assert len(engine.proposals.list_proposals(ProposalStatus.active)) == 1


def test_record_round_trips_through_dict():
    record = ProposalRecord(
        proposal_id="p1",
        content_id="post-1",
        created_at=T0.isoformat(),
        deadline=(T0 + timedelta(hours=24)).isoformat(),
        status="rejected",
        outcome="kept",
    )
    assert record.status is ProposalStatus.rejected
    assert record.outcome is Outcome.KEPT
    assert ProposalRecord.from_dict(record.to_dict()) == record


def test_outcome_maps_to_terminal_status():
    assert Outcome.REMOVED.status is ProposalStatus.executed
    assert Outcome.KEPT.status is ProposalStatus.rejected
    assert ProposalStatus.executed.is_terminal
    assert not ProposalStatus.active.is_terminal
