"""Tests for the REST API."""

import tempfile
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from modgov.clock import utcnow
from modgov.config import GovernanceConfig
from modgov.constants import REPORT_THRESHOLD
from modgov.engine import GovernanceEngine
from web.backend.app.main import app
from web.backend.app.routers.governance import get_engine

PAST = datetime(2020, 1, 1, tzinfo=timezone.utc)


def _client(tmpdir: str) -> tuple[TestClient, GovernanceEngine]:
    engine = GovernanceEngine(GovernanceConfig(data_dir=tmpdir))
    app.dependency_overrides[get_engine] = lambda: engine
    return TestClient(app), engine


def _register(engine: GovernanceEngine, n: int) -> list[str]:
    ids = [f"reporter-{i}" for i in range(n)]
    for rid in ids:
        engine.accounts.register_account(rid, created_at=utcnow() - timedelta(days=30), stake=1)
    return ids


def test_health():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _ = _client(tmpdir)
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").json()["name"] == "modgov API"
    app.dependency_overrides.clear()


def test_report_flow_opens_proposal():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        ids = _register(engine, REPORT_THRESHOLD)

        for rid in ids[:-1]:
            resp = client.post("/api/reports", json={"content_id": "post-1", "reporter_id": rid, "reason": "spam"})
            assert resp.status_code == 201
            assert resp.json()["proposal_id"] is None

        resp = client.post("/api/reports", json={"content_id": "post-1", "reporter_id": ids[-1]})
        body = resp.json()
        assert body["report_count"] == REPORT_THRESHOLD
        pid = body["proposal_id"]
        assert pid

        count = client.get("/api/content/post-1/reports/count").json()
        assert count == {"content_id": "post-1", "report_count": REPORT_THRESHOLD}

        proposal = client.get(f"/api/proposals/{pid}").json()
        assert proposal["status"] == "active"
        assert proposal["content_id"] == "post-1"
        assert proposal["expired"] is False
    app.dependency_overrides.clear()


def test_report_errors_map_to_status_codes():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        (rid,) = _register(engine, 1)

        resp = client.post("/api/reports", json={"content_id": "post-1", "reporter_id": "ghost"})
        assert resp.status_code == 403
        assert resp.json()["code"] == "reporter_ineligible"

        assert client.post("/api/reports", json={"content_id": "post-1", "reporter_id": rid}).status_code == 201
        resp = client.post("/api/reports", json={"content_id": "post-1", "reporter_id": rid})
        assert resp.status_code == 409
        assert resp.json()["code"] == "duplicate_report"

        resp = client.post("/api/reports", json={"content_id": "post-2", "reporter_id": rid})
        assert resp.status_code == 429

        resp = client.post("/api/reports", json={"content_id": "", "reporter_id": rid})
        assert resp.status_code == 422
    app.dependency_overrides.clear()


def test_vote_and_tally():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        pid = engine.proposals.create_proposal("post-1").proposal_id
        engine.balances.set_balance("alice", 10)
        engine.balances.set_balance("bob", 7)

        resp = client.post(f"/api/proposals/{pid}/votes", json={"voter_id": "alice", "choice": "remove"})
        assert resp.status_code == 201
        assert resp.json()["weight"] == 10
        client.post(f"/api/proposals/{pid}/votes", json={"voter_id": "bob", "choice": "keep"})

        resp = client.post(f"/api/proposals/{pid}/votes", json={"voter_id": "alice", "choice": "keep"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_voted"

        resp = client.post(f"/api/proposals/{pid}/votes", json={"voter_id": "carol", "choice": "keep"})
        assert resp.status_code == 403

        resp = client.post(f"/api/proposals/{pid}/votes", json={"voter_id": "alice", "choice": "maybe"})
        assert resp.status_code == 422

        tally = client.get(f"/api/proposals/{pid}/tally").json()
        assert tally == {"proposal_id": pid, "remove_weight": 10, "keep_weight": 7}
    app.dependency_overrides.clear()


def test_settle_expired_proposal():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        pid = engine.proposals.create_proposal("post-1", now=PAST).proposal_id
        engine.balances.set_balance("alice", 4)
        engine.cast_vote(pid, "alice", "remove", now=PAST)

        resp = client.post(f"/api/proposals/{pid}/votes", json={"voter_id": "alice", "choice": "keep"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "voting_window_closed"

        resp = client.post(f"/api/proposals/{pid}/settle")
        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"] == "removed"
        assert body["rewards"][0]["account_id"] == "alice"
        assert body["rewards"][0]["status"] == "delivered"

        resp = client.post(f"/api/proposals/{pid}/settle")
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_settled"
        assert client.get(f"/api/proposals/{pid}").json()["outcome"] == "removed"
    app.dependency_overrides.clear()


def test_settle_before_deadline_and_unknown():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        pid = engine.proposals.create_proposal("post-1").proposal_id

        resp = client.post(f"/api/proposals/{pid}/settle")
        assert resp.status_code == 409
        assert resp.json()["code"] == "not_yet_expired"

        assert client.get("/api/proposals/missing").status_code == 404
        assert client.get("/api/proposals/missing/tally").status_code == 404
    app.dependency_overrides.clear()


def test_long_content_id_is_accepted():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        (rid,) = _register(engine, 1)
        content_id = "é" * 100

        resp = client.post("/api/reports", json={"content_id": content_id, "reporter_id": rid})
        assert resp.status_code == 201
        assert engine.get_report_count(content_id) == 1
    app.dependency_overrides.clear()


def test_report_on_removed_content_is_gone():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, engine = _client(tmpdir)
        pid = engine.proposals.create_proposal("post-1", now=PAST).proposal_id
        engine.balances.set_balance("alice", 4)
        engine.cast_vote(pid, "alice", "remove", now=PAST)
        engine.settle(pid)
        (rid,) = _register(engine, 1)

        resp = client.post("/api/reports", json={"content_id": "post-1", "reporter_id": rid})
        assert resp.status_code == 410
        assert resp.json()["code"] == "content_removed"
    app.dependency_overrides.clear()
