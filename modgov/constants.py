"""Governance constants fixed by design (not configurable)."""

from __future__ import annotations

from datetime import timedelta

# Number of reports in one round that opens a proposal
REPORT_THRESHOLD = 50

# How long a proposal accepts votes
VOTING_WINDOW = timedelta(hours=24)

# One unit of vote weight per governance token
WEIGHT_PER_TOKEN = 1

# Reward outbox reason tags
REASON_VOTE_ALIGNED = "vote_aligned"
REASON_REPORT_VALIDATED = "report_validated"
REASON_FALSE_REPORT = "false_report"
