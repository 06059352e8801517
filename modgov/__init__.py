"""modgov -- report-driven moderation governance.

Reports accumulate per content item until the threshold is reached, which
opens a 24 hour token-weighted vote.  Once the deadline passes the proposal
is settled exactly once: the content is removed or kept, and rewards and
penalties are handed to the reputation ledger.
"""

__version__ = "0.1.0"
