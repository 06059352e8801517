"""Timestamp helpers.  All engine times are timezone-aware UTC."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve(now: Optional[datetime]) -> datetime:
    """Return *now* as an aware UTC datetime, defaulting to the wall clock."""
    if now is None:
        return utcnow()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def parse(value: str) -> datetime:
    return resolve(datetime.fromisoformat(value))
