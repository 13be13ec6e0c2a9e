"""
Unit tests for the user cache store.
"""

import threading

import pytest

from service_records.app.caching.user_cache import USER_BY_ID_CACHE, USERS_CACHE, UserCacheStore
from service_records.app.users.models import UserRecord


class TestUserCacheStore:
    """Test cases for UserCacheStore."""

    @pytest.fixture
    def cache(self):
        return UserCacheStore()

    @pytest.fixture
    def users(self):
        return [UserRecord(id=1, name="John Doe"), UserRecord(id=2, name="Jane Smith")]

    def test_empty_cache_misses(self, cache):
        assert cache.get_collection() is None
        assert cache.get_by_key(1) is None

    def test_collection_round_trip_keeps_order(self, cache, users):
        cache.put_collection(users)

        assert cache.get_collection() == users

    def test_empty_collection_is_a_hit(self, cache):
        """Test an empty remote list is cached as a value, not a miss."""
        cache.put_collection([])

        assert cache.get_collection() == []

    def test_put_collection_replaces_wholesale(self, cache, users):
        cache.put_collection(users)
        cache.put_collection(users[:1])

        assert cache.get_collection() == users[:1]

    def test_put_by_key_rejects_mismatched_id(self, cache):
        with pytest.raises(ValueError):
            cache.put_by_key(3, UserRecord(id=4, name="Wrong"))
        assert cache.get_by_key(3) is None

    def test_evict_all_clears_only_named_mapping(self, cache, users):
        cache.put_collection(users)
        cache.put_by_key(1, users[0])

        assert cache.evict_all(USERS_CACHE) == 1

        assert cache.get_collection() is None
        assert cache.get_by_key(1) == users[0]

    def test_evict_by_id_mapping_drops_every_key(self, cache, users):
        for user in users:
            cache.put_by_key(user.id, user)

        assert cache.evict_all(USER_BY_ID_CACHE) == 2
        assert cache.stats() == {"users": 0, "userById": 0}

    def test_evict_unknown_mapping(self, cache):
        with pytest.raises(KeyError):
            cache.evict_all("patients")

    def test_evict_all_mappings(self, cache, users):
        cache.put_collection(users)
        cache.put_by_key(1, users[0])

        cache.evict_all_mappings()

        assert cache.stats() == {"users": 0, "userById": 0}

    def test_concurrent_readers_see_whole_values(self, cache):
        """Test readers racing writers only ever see complete lists."""
        lists = [
            [UserRecord(id=i, name=f"user-{i}") for i in range(1, 6)],
            [UserRecord(id=i, name=f"other-{i}") for i in range(1, 11)],
        ]
        seen_lengths = set()
        stop = threading.Event()

        def writer():
            for n in range(500):
                cache.put_collection(lists[n % 2])
                if n % 50 == 0:
                    cache.evict_all(USERS_CACHE)
            stop.set()

        def reader():
            while not stop.is_set():
                value = cache.get_collection()
                seen_lengths.add(len(value) if value is not None else None)

        threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert seen_lengths <= {None, 5, 10}
