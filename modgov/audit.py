"""Audit trail of governance state changes.

Every accepted report, opened proposal, cast vote, settlement and reward
delivery is appended as one JSON line to a daily file under
``<data_dir>/audit/``.  The trail is append-only; it is read back for the
``modgov audit`` command and for exports.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from modgov.clock import resolve

logger = logging.getLogger(__name__)

# Actions written by the engine
ACTION_REPORT_SUBMITTED = "report.submitted"
ACTION_PROPOSAL_OPENED = "proposal.opened"
ACTION_VOTE_CAST = "vote.cast"
ACTION_PROPOSAL_SETTLED = "proposal.settled"
ACTION_REWARD_DELIVERED = "reward.delivered"
ACTION_REWARD_FAILED = "reward.failed"


def _ends_mid_line(path: Path) -> bool:
    """True if *path* ends in a partial line left by an interrupted append."""
    if not path.exists() or path.stat().st_size == 0:
        return False
    with path.open("rb") as fh:
        fh.seek(-1, 2)
        return fh.read(1) != b"\n"


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True


class AuditLogger:
    """Newline-delimited JSON audit log, one file per UTC day."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".modgov" / "audit"
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.Lock()

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                logger.warning("unreadable audit file %s", path)
                continue
            for lineno, line in enumerate(text.splitlines(), start=1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("skipping malformed audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
        at: Optional[datetime] = None,
    ) -> AuditEntry:
        """Record an event and return the created entry."""
        when = resolve(at)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=when.isoformat(),
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            success=success,
        )
        line = json.dumps(asdict(entry), default=str) + "\n"
        path = self._log_file_for_date(when)
        with self._write_lock:
            if _ends_mid_line(path):
                line = "\n" + line
            with path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered events, newest first."""
        entries = self._read_all_entries()
        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if resource_type:
            entries = [e for e in entries if e.resource_type == resource_type]
        if resource_id:
            entries = [e for e in entries if e.resource_id == resource_id]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export events as ``json`` or ``csv``."""
        entries = self.get_events(limit=filters.pop("limit", 10000), **filters)
        if fmt == "csv":
            lines = ["id,timestamp,actor,action,resource_type,resource_id,success"]
            for e in entries:
                lines.append(
                    f"{e.id},{e.timestamp},{e.actor},{e.action},"
                    f"{e.resource_type},{e.resource_id},{e.success}"
                )
            return "\n".join(lines)
        return json.dumps([asdict(e) for e in entries], indent=2)
