"""Per-process cache of collection metadata and session write timestamps."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from typing import Any

# Special guarantee timestamps understood by the server.
STRONG_TIMESTAMP = 0
EVENTUALLY_TIMESTAMP = 1
BOUNDED_TIMESTAMP = 2


@dataclass
class CollectionInfo:
    """Cached description of a collection."""

    id: int = 0
    name: str = ""
    schema: Any = None
    consistency_level: Any = None


class MetaCache:
    """Thread-safe store of last-write timestamps and collection descriptions."""

    def __init__(self) -> None:
        self._session_lock = threading.Lock()
        self._collection_lock = threading.Lock()
        self._session_ts: dict[str, int] = {}
        self._collections: dict[str, CollectionInfo] = {}

    def get_session_ts(self, collection_name: str) -> int | None:
        """Return the last write timestamp of a collection, or None if unknown."""
        with self._session_lock:
            return self._session_ts.get(collection_name)

    def set_session_ts(self, collection_name: str, ts: int) -> None:
        """Record a write timestamp; the stored value only ever increases."""
        with self._session_lock:
            current = self._session_ts.get(collection_name, 0)
            self._session_ts[collection_name] = max(current, ts)

    def set_collection_info(self, collection_name: str, info: CollectionInfo | None) -> None:
        """Store a copy of the collection info, or forget it when info is None."""
        with self._collection_lock:
            if info is None:
                self._collections.pop(collection_name, None)
            else:
                self._collections[collection_name] = dataclasses.replace(info)

    def get_collection_info(self, collection_name: str) -> CollectionInfo | None:
        """Return a copy of the cached collection info, or None."""
        with self._collection_lock:
            info = self._collections.get(collection_name)
            return None if info is None else dataclasses.replace(info)

    def reset(self) -> None:
        """Drop every cached collection description."""
        with self._collection_lock:
            self._collections = {}


META_CACHE = MetaCache()