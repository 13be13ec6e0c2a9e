"""
In-process cache store for remote user records.
"""

import threading
from typing import Any, Dict, Hashable, List, Optional, Sequence

from shared.logging import get_logger
from ..users.models import UserRecord

USERS_CACHE = "users"
USER_BY_ID_CACHE = "userById"

_COLLECTION_SLOT = "__all__"


class NamedCache:
    """A single named mapping guarded by its own lock.

    Values are replaced or evicted whole, never mutated in place, so a
    reader racing a writer sees either the old or the new value.
    """

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: Hashable, value: Any):
        with self._lock:
            self._entries[key] = value

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries = {}
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class UserCacheStore:
    """Two independent mappings: the full user list and users by id."""

    def __init__(self):
        self.logger = get_logger("records.cache.users")
        self._caches: Dict[str, NamedCache] = {
            USERS_CACHE: NamedCache(USERS_CACHE),
            USER_BY_ID_CACHE: NamedCache(USER_BY_ID_CACHE),
        }

    def get_collection(self) -> Optional[List[UserRecord]]:
        cached = self._caches[USERS_CACHE].get(_COLLECTION_SLOT)
        return list(cached) if cached is not None else None

    def put_collection(self, users: Sequence[UserRecord]):
        self._caches[USERS_CACHE].put(_COLLECTION_SLOT, tuple(users))

    def get_by_key(self, user_id: Hashable) -> Optional[UserRecord]:
        return self._caches[USER_BY_ID_CACHE].get(user_id)

    def put_by_key(self, user_id: Hashable, user: UserRecord):
        if user.id != user_id:
            raise ValueError(f"Cache key {user_id!r} does not match user id {user.id!r}")
        self._caches[USER_BY_ID_CACHE].put(user_id, user)

    def evict_all(self, name: str) -> int:
        """Clear one named mapping entirely; returns the number of entries dropped."""
        if name not in self._caches:
            raise KeyError(f"Unknown cache: {name}")
        dropped = self._caches[name].clear()
        self.logger.debug("Cache evicted", cache_name=name, entries=dropped)
        return dropped

    def evict_all_mappings(self):
        for name in self._caches:
            self.evict_all(name)

    def stats(self) -> Dict[str, int]:
        """Entry counts per mapping."""
        return {name: len(cache) for name, cache in self._caches.items()}
