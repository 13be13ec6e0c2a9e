"""
Remote user directory client.
"""

import time
from dataclasses import dataclass
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from shared.logging import get_logger
from shared.errors import (
    InternalError,
    NotFoundError,
    RecordServiceException,
    RemoteServiceError,
    ServiceUnavailableError,
)
from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryError, retry_on_exception
from ..users.models import UserDraft, UserRecord

SERVICE_NAME = "user_api"

_USER = TypeAdapter(UserRecord)
_USER_LIST = TypeAdapter(List[UserRecord])


@dataclass(frozen=True)
class RemoteResult:
    """Outcome of a remote call: a decoded body or a fault, never both."""

    value: Any = None
    fault: Optional[RecordServiceException] = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    @classmethod
    def success(cls, value: Any = None) -> "RemoteResult":
        return cls(value=value)

    @classmethod
    def failure(cls, fault: RecordServiceException) -> "RemoteResult":
        return cls(fault=fault)


class UserApiClient:
    """Client for the remote ``/users`` resource.

    Faults are returned inside :class:`RemoteResult` rather than raised, so
    callers branch on ``result.ok``. Only ``GET`` is retried on transport
    errors; writes go out once.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("records.user_api_client")
        self.metrics = metrics
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=httpx.TransportError,
            name=SERVICE_NAME
        )
        self.retry_config = RetryConfig(
            max_attempts=retry_attempts,
            base_delay=retry_base_delay,
            max_delay=5.0,
            exponential_base=2.0,
            jitter=True
        )
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self):
        self._client.close()

    def call(self, method: str, path: str, body: Optional[Any] = None) -> RemoteResult:
        """Perform ``method`` on ``{base_url}{path}`` with an optional JSON body."""
        method = method.upper()

        def _send() -> httpx.Response:
            return self.circuit_breaker.call(self._client.request, method, path, json=body)

        send = _send
        if method == "GET":
            send = retry_on_exception((httpx.TransportError,), config=self.retry_config)(_send)

        start = time.perf_counter()
        try:
            response = send()
        except (httpx.TransportError, RetryError, CircuitBreakerOpenException) as e:
            self._observe(method, "unreachable", start)
            self.logger.error("User API unreachable", method=method, path=path, error=str(e))
            return RemoteResult.failure(ServiceUnavailableError(
                SERVICE_NAME,
                f"Unable to access external API: {e}",
                details={"method": method},
                path=path
            ))

        return self._interpret(method, path, response, start)

    def _interpret(self, method: str, path: str, response: httpx.Response, start: float) -> RemoteResult:
        status = response.status_code

        if response.is_success:
            self._observe(method, "ok", start)
            self.logger.debug("User API call succeeded", method=method, path=path, status_code=status)
            if not response.content:
                return RemoteResult.success(None)
            try:
                return RemoteResult.success(response.json())
            except ValueError as e:
                self.logger.error("User API returned invalid JSON", method=method, path=path, error=str(e))
                return RemoteResult.failure(InternalError(
                    "User API returned an undecodable body", path=path
                ))

        if status == 404:
            self._observe(method, "not_found", start)
            self.logger.info("User API resource not found", method=method, path=path)
            return RemoteResult.failure(NotFoundError(f"Resource not found: {path}", path=path))

        self._observe(method, "error", start)
        self.logger.error(
            "User API request failed",
            method=method,
            path=path,
            status_code=status,
            response=response.text[:500]
        )
        return RemoteResult.failure(RemoteServiceError(
            SERVICE_NAME,
            status,
            f"Unexpected status {status}",
            details={"body": response.text[:500]},
            path=path
        ))

    def _observe(self, method: str, outcome: str, start: float):
        if self.metrics is None:
            return
        self.metrics.increment_counter("remote_calls_total", method=method, outcome=outcome)
        metric = self.metrics.get_metric("remote_call_duration_seconds")
        metric.labels(method=method).observe(time.perf_counter() - start)

    def _decode(self, result: RemoteResult, adapter: TypeAdapter, path: str) -> RemoteResult:
        if not result.ok:
            return result
        try:
            return RemoteResult.success(adapter.validate_python(result.value))
        except PydanticValidationError as e:
            self.logger.error("User API body does not match the user shape", path=path, error=str(e))
            return RemoteResult.failure(InternalError(
                "User API returned an unexpected body", details={"errors": e.error_count()}, path=path
            ))

    def list_users(self) -> RemoteResult:
        """``GET /users``; value is a list of :class:`UserRecord`."""
        return self._decode(self.call("GET", "/users"), _USER_LIST, "/users")

    def get_user(self, user_id: int) -> RemoteResult:
        """``GET /users/{id}``; value is a :class:`UserRecord`."""
        path = f"/users/{user_id}"
        result = self.call("GET", path)
        if isinstance(result.fault, NotFoundError):
            return RemoteResult.failure(NotFoundError(f"User not found with id: {user_id}", path=path))
        return self._decode(result, _USER, path)

    def create_user(self, draft: UserDraft) -> RemoteResult:
        """``POST /users``; value is the created record with its assigned id."""
        return self._decode(self.call("POST", "/users", draft.to_payload()), _USER, "/users")

    def update_user(self, user_id: int, draft: UserDraft) -> RemoteResult:
        """``PUT /users/{id}``; value is the updated record."""
        path = f"/users/{user_id}"
        result = self.call("PUT", path, draft.to_payload())
        if isinstance(result.fault, NotFoundError):
            return RemoteResult.failure(NotFoundError(f"User not found with id: {user_id}", path=path))
        return self._decode(result, _USER, path)

    def delete_user(self, user_id: int) -> RemoteResult:
        """``DELETE /users/{id}``; value is ``None`` on success."""
        path = f"/users/{user_id}"
        result = self.call("DELETE", path)
        if isinstance(result.fault, NotFoundError):
            return RemoteResult.failure(NotFoundError(f"User not found with id: {user_id}", path=path))
        if not result.ok:
            return result
        return RemoteResult.success(None)
