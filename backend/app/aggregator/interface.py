"""Abstract interfaces for provider sources and the key-value collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

PRIMARY = "primary"
SECONDARY = "secondary"


class ProviderSource(ABC):
    """Contract for a market-data provider.

    A source fetches one provider's raw payload on demand. It never touches
    the snapshot; the merge engine turns payloads into records.

    Lifecycle:
        source = HttpProviderSource(...)
        entries = await source.fetch()   # raises FetchError once retries are spent
        ...
        await source.close()
    """

    name: str
    role: str  # PRIMARY or SECONDARY

    @abstractmethod
    async def fetch(self) -> list[dict[str, Any]]:
        """Return the provider's entries.

        Raises a FetchError subclass once every attempt has failed.
        """

    async def close(self) -> None:
        """Release network resources. Safe to call multiple times."""


class KeyValueStore(ABC):
    """Expiring key-value store with a publish/subscribe channel.

    Implementations raise CacheUnavailable when the backing service cannot
    be reached.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        """Store a value that expires after ttl_seconds."""

    @abstractmethod
    async def publish(self, topic: str, message: bytes) -> int:
        """Deliver a message to current subscribers. Returns the receiver count."""

    @abstractmethod
    def subscribe(self, topic: str) -> AsyncIterator[bytes]:
        """Yield messages published to topic after the subscription starts.

        Closing the iterator detaches the subscriber.
        """

    async def close(self) -> None:
        """Release connections. Safe to call multiple times."""
