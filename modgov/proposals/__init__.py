"""Proposal lifecycle: creation on threshold, the voting window, expiry."""
