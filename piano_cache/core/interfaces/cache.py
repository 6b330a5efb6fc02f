"""
Remote Store Protocol

This module defines the protocol the cache facade expects from a remote store
adapter, enabling dependency injection and testability.

Architectural Decision: Protocol-based abstraction
- The facade never imports the concrete Redis adapter type
- Tests inject AsyncMock or in-memory stand-ins
- Runtime checking with @runtime_checkable
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RemoteStore(Protocol):
    """
    Protocol for remote key-value store adapters.

    Implementations:
    - RemoteCacheAdapter: Redis (redis.asyncio) backed adapter

    Contract:
    - raw_* methods raise AdapterError on any network/protocol failure
    - raw_get returns None (not an error) for absent or expired keys
    - raw_delete is idempotent
    - ping never raises
    """

    @property
    def has_config(self) -> bool:
        """True when endpoint and credential are both configured."""
        ...

    @property
    def has_client(self) -> bool:
        """True once a client object has been created."""
        ...

    async def connect(self) -> None:
        """
        Create the client and verify it with a ping.

        Raises:
            ConfigurationError: If the configuration is missing or invalid
            AdapterError: If the ping fails
        """
        ...

    async def close(self) -> None:
        """Release the client."""
        ...

    async def ping(self) -> bool:
        """
        Check remote store health.

        Returns:
            bool: True if healthy, False otherwise
        """
        ...

    async def raw_get(self, key: str) -> str | None:
        """
        Get a serialized value.

        Raises:
            AdapterError: If the call fails
            SerializationError: If the stored data is not text
        """
        ...

    async def raw_set(self, key: str, value: str, ttl_seconds: int) -> None:
        """
        Store a serialized value with a TTL.

        Raises:
            InvalidTTLError: If ttl_seconds is not a positive integer
            AdapterError: If the call fails
        """
        ...

    async def raw_delete(self, key: str) -> None:
        """
        Delete a key; deleting an absent key is not an error.

        Raises:
            AdapterError: If the call fails
        """
        ...

    async def raw_delete_matching(self, prefix: str) -> int:
        """
        Delete every key starting with prefix.

        Returns:
            int: Number of keys deleted
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """Return health details (status, latency_ms, error)."""
        ...
