"""Content moderation state (visible, under review, deleted)."""

from __future__ import annotations

from modgov.clock import utcnow
from modgov.storage import JsonDocumentStore

_COLLECTION = "content_state"

STATE_VISIBLE = "visible"
STATE_UNDER_REVIEW = "under_review"
STATE_DELETED = "deleted"


class FileContentStore:
    """Content states stored under ``<data_dir>/content_state/``.

    Deleted is final: flagging deleted content for review leaves it deleted.
    """

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    def _set_state(self, content_id: str, state: str) -> None:
        with self._store.locked(_COLLECTION, content_id):
            doc = self._store.read(_COLLECTION, content_id) or {"content_id": content_id, "state": STATE_VISIBLE}
            if doc["state"] == state or doc["state"] == STATE_DELETED:
                return
            doc["state"] = state
            doc["updated_at"] = utcnow().isoformat()
            self._store.write(_COLLECTION, content_id, doc)

    def flag_under_review(self, content_id: str) -> None:
        self._set_state(content_id, STATE_UNDER_REVIEW)

    def mark_deleted(self, content_id: str) -> None:
        self._set_state(content_id, STATE_DELETED)

    def restore(self, content_id: str) -> None:
        """Clear an ``under_review`` flag after a proposal keeps the content."""
        with self._store.locked(_COLLECTION, content_id):
            doc = self._store.read(_COLLECTION, content_id)
            if doc is None or doc["state"] != STATE_UNDER_REVIEW:
                return
            doc["state"] = STATE_VISIBLE
            doc["updated_at"] = utcnow().isoformat()
            self._store.write(_COLLECTION, content_id, doc)

    def get_state(self, content_id: str) -> str:
        doc = self._store.read(_COLLECTION, content_id)
        return doc["state"] if doc else STATE_VISIBLE
