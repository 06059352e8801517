"""Engine configuration loaded from YAML.

Example ``modgov.yaml``::

    data_dir: ~/.modgov
    log_level: INFO
    eligibility:
      min_account_age_days: 7
      min_stake: 1
      report_cooldown_seconds: 60
    rewards:
      vote_reward: 10
      report_reward: 5
      false_report_penalty: 10

``MODGOV_DATA_DIR`` and ``MODGOV_LOG_LEVEL`` override the file.  The report
threshold and voting window are fixed (see :mod:`modgov.constants`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass
class EligibilityConfig:
    """Reporter requirements."""

    min_account_age_days: int = 7
    min_stake: int = 1
    report_cooldown_seconds: int = 60


@dataclass
class RewardConfig:
    """Flat settlement amounts (the penalty is stored as a positive number)."""

    vote_reward: int = 10
    report_reward: int = 5
    false_report_penalty: int = 10


@dataclass
class GovernanceConfig:
    data_dir: str = str(Path.home() / ".modgov")
    log_level: str = "WARNING"
    eligibility: EligibilityConfig = field(default_factory=EligibilityConfig)
    rewards: RewardConfig = field(default_factory=RewardConfig)

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


def _section(data: dict[str, Any], name: str, cls: type) -> Any:
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config section '{name}' must be a mapping")
    known = {k: v for k, v in raw.items() if k in cls.__dataclass_fields__}
    return cls(**{k: int(v) for k, v in known.items()})


def load_config(path: Optional[str | Path] = None) -> GovernanceConfig:
    """Load configuration from *path* (if given) and the environment."""
    data: dict[str, Any] = {}
    if path is not None:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: top level must be a mapping")

    config = GovernanceConfig(
        eligibility=_section(data, "eligibility", EligibilityConfig),
        rewards=_section(data, "rewards", RewardConfig),
    )
    if data.get("data_dir"):
        config.data_dir = str(data["data_dir"])
    if data.get("log_level"):
        config.log_level = str(data["log_level"]).upper()

    env_dir = os.getenv("MODGOV_DATA_DIR", "").strip()
    if env_dir:
        config.data_dir = env_dir
    env_level = os.getenv("MODGOV_LOG_LEVEL", "").strip()
    if env_level:
        config.log_level = env_level.upper()
    return config
