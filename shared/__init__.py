"""
Shared utilities for the Records Service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical fault types and error responses
- retry: Retry decorators for blocking calls
- circuit_breaker: Resilient external call protection
- base_service: FastAPI application scaffolding

Do not import from service packages into shared/.
"""
