"""Typed failures raised by the governance engine.

Every precondition failure is raised to the caller as a subclass of
:class:`GovernanceError`.  Each carries a stable ``code`` (used by the REST
layer and the audit log) and a short message that can be shown to a user.
"""

from __future__ import annotations


class GovernanceError(Exception):
    """Base class for all governance failures."""

    code = "governance_error"
    default_message = "Governance operation failed."

    def __init__(self, message: str = "", **context: object) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **{k: str(v) for k, v in self.context.items()}}


# -- reporting ---------------------------------------------------------------


class DuplicateReport(GovernanceError):
    code = "duplicate_report"
    default_message = "You have already reported this content."


class ReporterIneligible(GovernanceError):
    code = "reporter_ineligible"
    default_message = "Your account does not meet the requirements to report content."


class RateLimited(GovernanceError):
    code = "rate_limited"
    default_message = "You are reporting too quickly. Wait for the cooldown to pass."

    def __init__(self, message: str = "", retry_after: float = 0.0, **context: object) -> None:
        self.retry_after = retry_after
        super().__init__(message, retry_after=retry_after, **context)


class ContentRemoved(GovernanceError):
    code = "content_removed"
    default_message = "This content has already been removed."


# -- proposals ---------------------------------------------------------------


class ProposalAlreadyActive(GovernanceError):
    code = "proposal_already_active"
    default_message = "A vote is already open for this content."


class NotFound(GovernanceError):
    code = "not_found"
    default_message = "No such proposal."


# -- voting ------------------------------------------------------------------


class NotEligible(GovernanceError):
    code = "not_eligible"
    default_message = "No governance tokens: you have no voting weight."


class ProposalNotActive(GovernanceError):
    code = "proposal_not_active"
    default_message = "This proposal has already been settled."


class VotingWindowClosed(GovernanceError):
    code = "voting_window_closed"
    default_message = "The voting period has ended."


class AlreadyVoted(GovernanceError):
    code = "already_voted"
    default_message = "You have already voted on this proposal."


# -- settlement --------------------------------------------------------------


class NotYetExpired(GovernanceError):
    code = "not_yet_expired"
    default_message = "The voting period has not ended yet."


class AlreadySettled(GovernanceError):
    code = "already_settled"
    default_message = "This proposal has already been settled."


class LedgerUnavailable(GovernanceError):
    code = "ledger_unavailable"
    default_message = "The reward ledger is temporarily unavailable."
