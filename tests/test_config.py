"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest

from modgov.config import GovernanceConfig, load_config


def test_defaults(monkeypatch):
    monkeypatch.delenv("MODGOV_DATA_DIR", raising=False)
    monkeypatch.delenv("MODGOV_LOG_LEVEL", raising=False)
    config = load_config()

    assert config.log_level == "WARNING"
    assert config.data_path == Path.home() / ".modgov"
    assert config.eligibility.min_account_age_days == 7
    assert config.eligibility.min_stake == 1
    assert config.eligibility.report_cooldown_seconds == 60
    assert config.rewards.vote_reward == 10
    assert config.rewards.report_reward == 5
    assert config.rewards.false_report_penalty == 10


def test_load_yaml_file(monkeypatch):
    monkeypatch.delenv("MODGOV_DATA_DIR", raising=False)
    monkeypatch.delenv("MODGOV_LOG_LEVEL", raising=False)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "modgov.yaml"
        path.write_text(
            "data_dir: /srv/modgov\n"
            "log_level: info\n"
            "eligibility:\n"
            "  min_stake: 3\n"
            "  unknown_key: 9\n"
            "rewards:\n"
            "  vote_reward: '12'\n"
        )
        config = load_config(path)

    assert config.data_dir == "/srv/modgov"
    assert config.log_level == "INFO"
    assert config.eligibility.min_stake == 3
    assert config.eligibility.min_account_age_days == 7
    assert config.rewards.vote_reward == 12
    assert config.rewards.report_reward == 5


def test_environment_overrides_file(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "modgov.yaml"
        path.write_text("data_dir: /srv/modgov\nlog_level: INFO\n")
        monkeypatch.setenv("MODGOV_DATA_DIR", tmpdir)
        monkeypatch.setenv("MODGOV_LOG_LEVEL", "debug")

        config = load_config(path)
        assert config.data_dir == tmpdir
        assert config.log_level == "DEBUG"


def test_empty_file_gives_defaults(monkeypatch):
    monkeypatch.delenv("MODGOV_DATA_DIR", raising=False)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "modgov.yaml"
        path.write_text("")
        config = load_config(path)
    assert config.eligibility == GovernanceConfig().eligibility


def test_malformed_section_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "modgov.yaml"
        path.write_text("rewards: 5\n")
        with pytest.raises(ValueError):
            load_config(path)
