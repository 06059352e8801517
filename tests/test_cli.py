"""Tests for the modgov command line interface."""

import json
import tempfile

from click.testing import CliRunner

from modgov.cli import main


def _run(tmpdir: str, *args: str):
    return CliRunner().invoke(main, ["--data-dir", tmpdir, *args])


def test_report_and_count():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert _run(tmpdir, "account", "add", "alice", "--stake", "1", "--age-days", "30").exit_code == 0

        result = _run(tmpdir, "report", "post-1", "alice", "--reason", "spam")
        assert result.exit_code == 0, result.output
        assert "Report recorded" in result.output

        result = _run(tmpdir, "count", "post-1")
        assert result.output.strip() == "1"


def test_report_failure_exits_nonzero():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "report", "post-1", "ghost")
        assert result.exit_code == 1
        assert "reporter_ineligible" in result.output


def test_proposal_vote_tally():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "proposal", "open", "post-1")
        assert result.exit_code == 0, result.output

        listed = _run(tmpdir, "audit", "--format", "json", "--action", "proposal.opened")
        pid = json.loads(listed.output)[0]["resource_id"]

        assert _run(tmpdir, "proposal", "open", "post-1").exit_code == 1

        assert _run(tmpdir, "account", "add", "bob", "--tokens", "7").exit_code == 0
        result = _run(tmpdir, "vote", pid, "bob", "keep")
        assert result.exit_code == 0, result.output
        assert "weight 7" in result.output

        assert _run(tmpdir, "vote", pid, "bob", "remove").exit_code == 1

        result = _run(tmpdir, "tally", pid)
        assert "keep 7" in result.output

        result = _run(tmpdir, "proposal", "show", pid)
        assert result.exit_code == 0
        assert "post-1" in result.output

        result = _run(tmpdir, "proposal", "list", "--status", "active")
        assert result.exit_code == 0
        assert "Proposals (1)" in result.output


def test_settle_before_deadline_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        _run(tmpdir, "proposal", "open", "post-1")
        pid = json.loads(_run(tmpdir, "audit", "--format", "json").output)[0]["resource_id"]

        result = _run(tmpdir, "settle", pid)
        assert result.exit_code == 1
        assert "not_yet_expired" in result.output

        result = _run(tmpdir, "sweep")
        assert "Nothing to settle" in result.output


def test_rewards_and_reputation():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "rewards", "pending")
        assert "No pending rewards" in result.output
        assert "Delivered 0" in _run(tmpdir, "rewards", "retry").output

        result = _run(tmpdir, "account", "reputation", "alice")
        assert "score 0" in result.output


def test_unknown_proposal():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "proposal", "show", "missing")
        assert result.exit_code == 1
        assert "not_found" in result.output


def test_negative_balance_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "account", "add", "alice", "--tokens", "-3")
        assert result.exit_code == 2
        assert "Invalid value" in result.output

        result = _run(tmpdir, "account", "balance", "alice", "--", "-3")
        assert result.exit_code == 2
        assert "Invalid value" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
