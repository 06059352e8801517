"""Report data model."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Report:
    """One report filed by one reporter against one content item."""

    content_id: str
    reporter_id: str
    reason: str
    timestamp: str  # ISO 8601, UTC

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> Report:
        return cls(
            content_id=d["content_id"],
            reporter_id=d["reporter_id"],
            reason=d.get("reason", ""),
            timestamp=d["timestamp"],
        )
