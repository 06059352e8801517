"""File-backed default implementations of the external collaborators.

These let the engine run end to end on one machine (CLI, REST app, tests).
A deployment wired to a real token ledger or content service swaps them out
for its own objects implementing :mod:`modgov.interfaces`.
"""

from modgov.adapters.accounts import FileAccountRegistry
from modgov.adapters.balances import FileBalanceOracle
from modgov.adapters.content import FileContentStore
from modgov.adapters.rewards import FileRewardLedger, ReputationState

__all__ = [
    "FileAccountRegistry",
    "FileBalanceOracle",
    "FileContentStore",
    "FileRewardLedger",
    "ReputationState",
]
