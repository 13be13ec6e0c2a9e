"""
Cache-aside access to the remote user directory.

Reads go to the in-process cache first and fall back to the remote API on
a miss, populating the cache with the result. Writes go to the remote API
first; only after it succeeds are the caches invalidated or refreshed and
a change event emitted. A failed remote call leaves the caches untouched.

Update and delete confirm existence through :meth:`UserService.get_user`,
which may be answered from the cache. If the remote record was removed out
of band since it was cached, the write still proceeds; this race is
accepted.
"""

from typing import List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..adapters.user_api_client import UserApiClient
from ..caching.user_cache import USER_BY_ID_CACHE, USERS_CACHE, UserCacheStore
from ..events.models import UserEvent
from ..events.notifier import EventNotifier
from .models import UserDraft, UserRecord


class UserService:
    """Mediator between callers, the user caches and the remote user API."""

    def __init__(
        self,
        client: UserApiClient,
        cache: UserCacheStore,
        notifier: EventNotifier,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.client = client
        self.cache = cache
        self.notifier = notifier
        self.metrics = metrics
        self.logger = get_logger("records.users.service")

    def get_all_users(self) -> List[UserRecord]:
        cached = self.cache.get_collection()
        if cached is not None:
            self._record_lookup(USERS_CACHE, hit=True)
            return cached

        self._record_lookup(USERS_CACHE, hit=False)
        self.logger.info("Cache miss for all users, fetching from user API")
        result = self.client.list_users()
        if not result.ok:
            raise result.fault

        users = result.value
        self.cache.put_collection(users)
        self.logger.info("Retrieved users from user API", count=len(users))
        return list(users)

    def get_user(self, user_id: int) -> UserRecord:
        cached = self.cache.get_by_key(user_id)
        if cached is not None:
            self._record_lookup(USER_BY_ID_CACHE, hit=True)
            return cached

        self._record_lookup(USER_BY_ID_CACHE, hit=False)
        self.logger.info("Cache miss for user, fetching from user API", user_id=user_id)
        result = self.client.get_user(user_id)
        if not result.ok:
            raise result.fault

        user = self._with_id(result.value, user_id)
        self.cache.put_by_key(user_id, user)
        return user

    def create_user(self, draft: UserDraft) -> UserRecord:
        self.logger.info("Creating a new user via user API")
        result = self.client.create_user(draft)
        if not result.ok:
            raise result.fault

        created: UserRecord = result.value
        self._evict(USERS_CACHE)
        if created.id is not None:
            self.cache.put_by_key(created.id, created)
        else:
            self.logger.warning("User API returned a created user without an id; not caching by id")

        self.notifier.notify(UserEvent.created(created))
        self.logger.info("Created user via user API", user_id=created.id)
        return created

    def update_user(self, user_id: int, draft: UserDraft) -> UserRecord:
        self.logger.info("Updating user via user API", user_id=user_id)
        self.get_user(user_id)

        result = self.client.update_user(user_id, draft)
        if not result.ok:
            raise result.fault

        updated = self._with_id(result.value, user_id)
        self._evict(USERS_CACHE)
        self.cache.put_by_key(user_id, updated)

        self.notifier.notify(UserEvent.updated(updated))
        self.logger.info("Updated user via user API", user_id=user_id)
        return updated

    def delete_user(self, user_id: int) -> None:
        self.logger.info("Deleting user via user API", user_id=user_id)
        existing = self.get_user(user_id)

        result = self.client.delete_user(user_id)
        if not result.ok:
            raise result.fault

        self._evict(USERS_CACHE)
        self._evict(USER_BY_ID_CACHE)

        self.notifier.notify(UserEvent.deleted(existing))
        self.logger.info("Deleted user via user API", user_id=user_id)

    def _with_id(self, user: UserRecord, user_id: int) -> UserRecord:
        # Identifiers never change once assigned; trust the path over the body.
        if user.id == user_id:
            return user
        self.logger.warning("User API returned a mismatched id", expected=user_id, received=user.id)
        return user.model_copy(update={"id": user_id})

    def _evict(self, name: str):
        self.cache.evict_all(name)
        if self.metrics is not None:
            self.metrics.increment_counter("cache_evictions_total", cache_name=name)

    def _record_lookup(self, name: str, hit: bool):
        if self.metrics is None:
            return
        metric = "cache_hits_total" if hit else "cache_misses_total"
        self.metrics.increment_counter(metric, cache_name=name)
