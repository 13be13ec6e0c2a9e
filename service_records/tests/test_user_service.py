"""
Unit tests for the cache-aside UserService.
"""

import pytest
from unittest.mock import MagicMock

from service_records.app.adapters.user_api_client import RemoteResult, UserApiClient
from service_records.app.caching.user_cache import UserCacheStore
from service_records.app.events.models import EventType
from service_records.app.events.notifier import EventNotifier
from service_records.app.users.models import UserDraft, UserRecord
from service_records.app.users.service import UserService
from shared.errors import NotFoundError, RemoteServiceError, ServiceUnavailableError
from shared.metrics import MetricsCollector


def unreachable() -> RemoteResult:
    return RemoteResult.failure(ServiceUnavailableError("user_api", path="/users"))


class TestUserService:
    """Test cases for UserService."""

    @pytest.fixture
    def john(self):
        return UserRecord(id=1, name="John Doe", username="johnd", email="john@example.com")

    @pytest.fixture
    def jane(self):
        return UserRecord(id=2, name="Jane Smith", username="janes", email="jane@example.com")

    @pytest.fixture
    def client(self, john, jane):
        client = MagicMock(spec=UserApiClient)
        client.list_users.return_value = RemoteResult.success([john, jane])
        client.get_user.return_value = RemoteResult.success(john)
        return client

    @pytest.fixture
    def notifier(self):
        return MagicMock(spec=EventNotifier)

    @pytest.fixture
    def cache(self):
        return UserCacheStore()

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("records")

    @pytest.fixture
    def service(self, client, cache, notifier, metrics):
        return UserService(client, cache, notifier, metrics=metrics)

    def test_get_all_users_populates_cache(self, service, client, john, jane):
        """Test first list call goes remote and the repeat is served from cache."""
        assert service.get_all_users() == [john, jane]
        assert service.get_all_users() == [john, jane]

        assert client.list_users.call_count == 1

    def test_get_all_users_fault_is_not_cached(self, service, client, john, jane):
        """Test a failed list leaves the collection cache empty."""
        client.list_users.return_value = unreachable()

        with pytest.raises(ServiceUnavailableError):
            service.get_all_users()
        assert service.cache.get_collection() is None

        client.list_users.return_value = RemoteResult.success([john, jane])
        assert service.get_all_users() == [john, jane]
        assert client.list_users.call_count == 2

    def test_returned_list_does_not_alias_cache(self, service):
        """Test mutating a returned list does not change the cached list."""
        users = service.get_all_users()
        users.clear()

        assert len(service.get_all_users()) == 2

    def test_get_user_cache_hit_avoids_remote_call(self, service, client, john):
        """Test a cached user is returned even when the remote API is down."""
        assert service.get_user(1) == john

        client.get_user.return_value = unreachable()
        assert service.get_user(1) == john
        client.get_user.assert_called_once_with(1)

    def test_get_user_not_found_is_not_cached(self, service, client, john):
        """Test absence propagates as NotFoundError and is not remembered."""
        client.get_user.return_value = RemoteResult.failure(NotFoundError("User not found with id: 1"))

        with pytest.raises(NotFoundError):
            service.get_user(1)
        assert service.cache.get_by_key(1) is None

        client.get_user.return_value = RemoteResult.success(john)
        assert service.get_user(1) == john

    def test_get_user_other_fault_propagates(self, service, client):
        """Test remote errors surface unchanged in kind."""
        client.get_user.return_value = RemoteResult.failure(RemoteServiceError("user_api", 500))

        with pytest.raises(RemoteServiceError) as exc_info:
            service.get_user(1)
        assert exc_info.value.remote_status == 500

    def test_create_user_caches_by_assigned_id(self, service, client, notifier):
        """Test create keys the by-id cache with the server-assigned id."""
        created = UserRecord(id=11, name="New")
        client.create_user.return_value = RemoteResult.success(created)

        result = service.create_user(UserDraft(name="New"))

        assert result == created
        client.get_user.reset_mock()
        assert service.get_user(11) == created
        client.get_user.assert_not_called()

        notifier.notify.assert_called_once()
        event = notifier.notify.call_args.args[0]
        assert event.event_type == EventType.CREATED
        assert event.routing_key == "11"

    def test_create_user_evicts_collection(self, service, client):
        """Test create makes the next list call go remote again."""
        service.get_all_users()
        client.create_user.return_value = RemoteResult.success(UserRecord(id=11, name="New"))

        service.create_user(UserDraft(name="New"))
        service.get_all_users()

        assert client.list_users.call_count == 2

    def test_create_user_without_id_skips_by_id_cache(self, service, client, notifier):
        """Test a created record with no id still evicts and notifies."""
        service.get_all_users()
        client.create_user.return_value = RemoteResult.success(UserRecord(name="Nameless"))

        service.create_user(UserDraft(name="Nameless"))

        assert service.cache.stats() == {"users": 0, "userById": 0}
        event = notifier.notify.call_args.args[0]
        assert event.routing_key == "unknown_user_id"

    def test_create_user_fault_leaves_cache_and_emits_nothing(self, service, client, notifier, john, jane):
        """Test a failed create does not touch caches or emit events."""
        service.get_all_users()
        client.create_user.return_value = unreachable()

        with pytest.raises(ServiceUnavailableError):
            service.create_user(UserDraft(name="New"))

        assert service.cache.get_collection() == [john, jane]
        notifier.notify.assert_not_called()

    def test_update_user_refreshes_caches(self, service, client, notifier):
        """Test update evicts the list and overwrites the by-id entry."""
        service.get_all_users()
        service.get_user(1)
        updated = UserRecord(id=1, name="John Updated")
        client.update_user.return_value = RemoteResult.success(updated)

        result = service.update_user(1, UserDraft(name="John Updated"))

        assert result == updated
        assert service.cache.get_collection() is None
        assert service.get_user(1) == updated
        client.get_user.assert_called_once_with(1)
        assert notifier.notify.call_args.args[0].event_type == EventType.UPDATED

    def test_update_user_keeps_path_id(self, service, client):
        """Test the cached record is keyed and stamped with the path id."""
        client.update_user.return_value = RemoteResult.success(UserRecord(id=99, name="Drifted"))

        result = service.update_user(1, UserDraft(name="Drifted"))

        assert result.id == 1
        assert service.cache.get_by_key(1).name == "Drifted"

    def test_update_missing_user_never_calls_remote_update(self, service, client, notifier):
        """Test update on a missing id raises NotFoundError before writing."""
        client.get_user.return_value = RemoteResult.failure(NotFoundError("User not found with id: 42"))

        with pytest.raises(NotFoundError):
            service.update_user(42, UserDraft(name="Ghost"))

        client.update_user.assert_not_called()
        notifier.notify.assert_not_called()

    def test_update_user_fault_leaves_cache(self, service, client, john, notifier):
        """Test a failed remote update keeps the previous cache state."""
        service.get_all_users()
        service.get_user(1)
        client.update_user.return_value = RemoteResult.failure(RemoteServiceError("user_api", 502))

        with pytest.raises(RemoteServiceError):
            service.update_user(1, UserDraft(name="Nope"))

        assert service.cache.get_by_key(1) == john
        assert service.cache.get_collection() is not None
        notifier.notify.assert_not_called()

    def test_update_uses_cached_existence_check(self, service, client):
        """Test the existence check is served from cache when possible."""
        service.get_user(1)
        client.get_user.return_value = RemoteResult.failure(NotFoundError("gone"))
        client.update_user.return_value = RemoteResult.success(UserRecord(id=1, name="Stale"))

        assert service.update_user(1, UserDraft(name="Stale")).name == "Stale"

    def test_delete_user_evicts_both_caches(self, service, client, notifier, john):
        """Test delete clears every mapping and emits DELETED with the record."""
        service.get_all_users()
        service.get_user(1)
        service.cache.put_by_key(2, UserRecord(id=2, name="Jane Smith"))
        client.delete_user.return_value = RemoteResult.success(None)

        assert service.delete_user(1) is None

        assert service.cache.stats() == {"users": 0, "userById": 0}
        event = notifier.notify.call_args.args[0]
        assert event.event_type == EventType.DELETED
        assert event.user_data == john

    def test_delete_missing_user_raises_not_found(self, service, client):
        """Test delete on a missing id never calls the remote delete."""
        client.get_user.return_value = RemoteResult.failure(NotFoundError("User not found with id: 7"))

        with pytest.raises(NotFoundError):
            service.delete_user(7)
        client.delete_user.assert_not_called()

    def test_delete_user_fault_leaves_caches(self, service, client, notifier):
        """Test a failed delete keeps both mappings populated."""
        service.get_all_users()
        service.get_user(1)
        client.delete_user.return_value = unreachable()

        with pytest.raises(ServiceUnavailableError):
            service.delete_user(1)

        assert service.cache.stats() == {"users": 1, "userById": 1}
        notifier.notify.assert_not_called()

    def test_notifier_failure_does_not_fail_create(self, client, cache):
        """Test a broken sink never surfaces through the mediator."""
        sink = MagicMock()
        sink.send.side_effect = RuntimeError("broker down")
        notifier = EventNotifier(sink)
        service = UserService(client, cache, notifier)
        client.create_user.return_value = RemoteResult.success(UserRecord(id=11, name="New"))

        assert service.create_user(UserDraft(name="New")).id == 11

        notifier.shutdown()
        sink.send.assert_called_once()

    def test_cache_metrics_recorded(self, service, metrics):
        """Test hits and misses are counted per cache."""
        service.get_user(1)
        service.get_user(1)

        assert metrics.get_sample_value("cache_misses_total", {"cache_name": "userById"}) == 1.0
        assert metrics.get_sample_value("cache_hits_total", {"cache_name": "userById"}) == 1.0


class TestUserServiceScenario:
    """End-to-end cache behaviour against a counting stub."""

    def test_list_create_get_scenario(self):
        """Test list caching, eviction on create and get-by-assigned-id."""
        client = MagicMock(spec=UserApiClient)
        client.list_users.return_value = RemoteResult.success([
            UserRecord(id=1, name="John Doe"),
            UserRecord(id=2, name="Jane Smith"),
        ])
        client.create_user.return_value = RemoteResult.success(UserRecord(id=11, name="New"))
        service = UserService(client, UserCacheStore(), MagicMock(spec=EventNotifier))

        users = service.get_all_users()
        assert [u.name for u in users] == ["John Doe", "Jane Smith"]

        service.get_all_users()
        assert client.list_users.call_count == 1

        service.create_user(UserDraft(name="New"))
        service.get_all_users()
        assert client.list_users.call_count == 2

        assert service.get_user(11).name == "New"
        client.get_user.assert_not_called()
