"""
Adapters package for the Records Service.

Contains the HTTP client for the remote user directory. The adapter
encapsulates the base URL and request shapes, the retry policy and circuit
breaker, and the mapping of response statuses onto shared fault types.

Adapters return faults in a result object instead of raising them.
"""

from .user_api_client import RemoteResult, UserApiClient

__all__ = ["RemoteResult", "UserApiClient"]
