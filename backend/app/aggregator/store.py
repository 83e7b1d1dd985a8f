"""Key-value store backends: in-process and Redis."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import AsyncIterator, Callable

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from .errors import CacheUnavailable
from .interface import KeyValueStore

logger = logging.getLogger(__name__)


class _Subscription:
    """Async iterator over one topic. Registered as soon as it is created."""

    def __init__(self, store: InMemoryKeyValueStore, topic: str, maxsize: int) -> None:
        self._store = store
        self._topic = topic
        self.queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        store._subscribers.setdefault(topic, set()).add(self)

    def __aiter__(self) -> _Subscription:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        return await self.queue.get()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        subscribers = self._store._subscribers.get(self._topic)
        if subscribers is not None:
            subscribers.discard(self)
            if not subscribers:
                del self._store._subscribers[self._topic]


class InMemoryKeyValueStore(KeyValueStore):
    """Single-process store: expiring dict plus topic -> subscriber queues.

    Delivery is best effort. A subscriber whose queue is full misses the
    message; nothing is replayed to late subscribers.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        subscriber_queue_size: int = 100,
    ) -> None:
        self._clock = clock
        self._queue_size = subscriber_queue_size
        self._values: dict[str, tuple[bytes, float]] = {}
        self._subscribers: dict[str, set[_Subscription]] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        self._values[key] = (value, self._clock() + ttl_seconds)

    async def publish(self, topic: str, message: bytes) -> int:
        delivered = 0
        for subscription in list(self._subscribers.get(topic, ())):
            try:
                subscription.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.debug("Dropping message on %s for a slow subscriber", topic)
        return delivered

    def subscribe(self, topic: str) -> _Subscription:
        return _Subscription(self, topic, self._queue_size)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))


class RedisKeyValueStore(KeyValueStore):
    """KeyValueStore on Redis strings (SET EX) and Redis pub/sub."""

    def __init__(self, url: str | None = None, client: aioredis.Redis | None = None) -> None:
        if client is None:
            if not url:
                raise ValueError("RedisKeyValueStore needs a url or a client")
            client = aioredis.Redis.from_url(url)
        self._client = client

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._client.get(key)
        except (RedisError, OSError) as exc:
            raise CacheUnavailable(f"GET {key} failed: {exc}") from exc

    async def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        try:
            await self._client.set(key, value, ex=max(1, math.ceil(ttl_seconds)))
        except (RedisError, OSError) as exc:
            raise CacheUnavailable(f"SET {key} failed: {exc}") from exc

    async def publish(self, topic: str, message: bytes) -> int:
        try:
            return int(await self._client.publish(topic, message))
        except (RedisError, OSError) as exc:
            raise CacheUnavailable(f"PUBLISH {topic} failed: {exc}") from exc

    def subscribe(self, topic: str) -> AsyncIterator[bytes]:
        return self._listen(topic)

    async def close(self) -> None:
        await self._client.aclose()

    async def _listen(self, topic: str) -> AsyncIterator[bytes]:
        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(topic)
            async for message in pubsub.listen():
                if message.get("type") == "message":
                    yield message["data"]
        except (RedisError, OSError) as exc:
            raise CacheUnavailable(f"SUBSCRIBE {topic} failed: {exc}") from exc
        finally:
            await pubsub.aclose()
