"""File-based JSON document storage with per-key locking.

Each collection is a directory under the data dir (``~/.modgov/`` by
default) and each key is one JSON document inside it, named by the SHA-256
of the key so ids of any length or alphabet map to a short filename.  The
key itself is kept in the file next to the document.  Writes go to a temp
file in the same directory and are moved into place with ``os.replace``, so a
reader never sees a half-written document and everything stored under one
key changes together.

Callers serialize read-modify-write cycles with :meth:`JsonDocumentStore.locked`,
which hands out one re-entrant lock per ``(scope, key)`` pair.  A scope names
the entity being guarded (a content item, a proposal, a reporter) and may
cover several collections.  Keys that have nothing to do with each other never
wait on each other.  Nested locks are always taken reporter, then content,
then proposal.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
import weakref
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)

# Lock scopes
LOCK_REPORTER = "reporter"
LOCK_CONTENT = "content"
LOCK_PROPOSAL = "proposal"


class KeyedLocks:
    """Lazily created re-entrant locks, one per key.

    A lock is dropped once nothing holds a reference to it, so the table only
    grows with the keys in use.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[tuple[str, str], threading.RLock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, scope: str, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get((scope, key))
            if lock is None:
                lock = threading.RLock()
                self._locks[(scope, key)] = lock
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class JsonDocumentStore:
    """Keyed JSON documents grouped in collections.

    Storage layout::

        <base_dir>/<collection>/<sha256 of key>.json  ->  {"key": ..., "doc": {...}}
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".modgov"
        self._base.mkdir(parents=True, exist_ok=True)
        self._locks = KeyedLocks()

    @property
    def base_dir(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _collection_dir(self, collection: str) -> Path:
        path = self._base / collection
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _path(self, collection: str, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._collection_dir(collection) / f"{digest}.json"

    def _load_file(self, path: Path) -> Optional[dict[str, Any]]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("unreadable document %s", path)
            return None
        if not isinstance(data, dict) or not isinstance(data.get("doc"), dict):
            logger.warning("malformed document %s", path)
            return None
        return data

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @contextmanager
    def locked(self, scope: str, key: str) -> Iterator[None]:
        """Hold the lock for *key* within *scope* for the duration of the block."""
        lock = self._locks.get(scope, key)
        with lock:
            yield

    def read(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        """Return the document stored under *key*, or None if absent."""
        path = self._path(collection, key)
        if not path.exists():
            return None
        data = self._load_file(path)
        return data["doc"] if data else None

    def write(self, collection: str, key: str, doc: dict[str, Any]) -> None:
        """Atomically replace the document stored under *key*."""
        path = self._path(collection, key)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump({"key": key, "doc": doc}, fh, indent=2, default=str)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _entries(self, collection: str) -> list[dict[str, Any]]:
        entries = []
        for path in self._collection_dir(collection).glob("*.json"):
            data = self._load_file(path)
            if data is not None:
                entries.append(data)
        entries.sort(key=lambda e: str(e["key"]))
        return entries

    def keys(self, collection: str) -> list[str]:
        """Return every key in *collection*, sorted."""
        return [str(e["key"]) for e in self._entries(collection)]

    def all(self, collection: str) -> list[dict[str, Any]]:
        """Return every readable document in *collection*, ordered by key."""
        return [e["doc"] for e in self._entries(collection)]
