"""Redis implementation of the key-value store."""

import asyncio
from types import TracebackType
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.client import PubSub

from ..logging_config import get_logger
from .codec import decode, encode

logger = get_logger(__name__)


class _RedisSubscription:
    """Subscription backed by a Redis PubSub connection."""

    def __init__(self, redis: Redis, channels: tuple[str, ...]):
        self._redis = redis
        self._channels = channels
        self._pubsub: PubSub | None = None

    async def __aenter__(self) -> "_RedisSubscription":
        self._pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(*self._channels)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(*self._channels)
            await self._pubsub.aclose()
            self._pubsub = None

    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        if self._pubsub is None:
            raise RuntimeError("Subscription not active")

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return None
            # Returns None for subscribe acks as well as on timeout
            message = await self._pubsub.get_message(timeout=remaining)
            if message is None or message.get("type") != "message":
                continue
            try:
                return decode(message["data"])
            except ValueError:
                logger.warning("Dropping undecodable event on %s", message["channel"])


class RedisStore:
    """Store backed by a Redis server (lists, hashes, sets, PUBLISH)."""

    def __init__(self, url: str = "redis://localhost:6379/0", redis: Redis | None = None):
        self._url = url
        self._redis = redis

    async def init(self) -> None:
        if self._redis is None:
            self._redis = Redis.from_url(self._url, decode_responses=True)
        await self._redis.ping()

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def clear(self) -> None:
        await self._client().flushdb()

    def _client(self) -> Redis:
        if self._redis is None:
            raise RuntimeError("Storage not initialized")
        return self._redis

    @staticmethod
    def _decode(key: str, raw: str) -> dict[str, Any] | None:
        try:
            return decode(raw)
        except ValueError:
            logger.warning("Skipping undecodable value under %s", key)
            return None

    # Lists
    async def rpush(self, key: str, record: dict[str, Any]) -> None:
        await self._client().rpush(key, encode(record))

    async def lrange(self, key: str) -> list[dict[str, Any]]:
        rows = await self._client().lrange(key, 0, -1)
        records = [self._decode(key, raw) for raw in rows]
        return [r for r in records if r is not None]

    async def lrem(self, key: str, record: dict[str, Any]) -> int:
        return await self._client().lrem(key, 0, encode(record))

    # Hashes
    async def hset(self, key: str, field: str, record: dict[str, Any]) -> None:
        await self._client().hset(key, field, encode(record))

    async def hsetnx(self, key: str, field: str, record: dict[str, Any]) -> bool:
        return bool(await self._client().hsetnx(key, field, encode(record)))

    async def hget(self, key: str, field: str) -> dict[str, Any] | None:
        raw = await self._client().hget(key, field)
        if raw is None:
            return None
        return self._decode(key, raw)

    async def hgetall(self, key: str) -> dict[str, dict[str, Any]]:
        rows = await self._client().hgetall(key)
        result: dict[str, dict[str, Any]] = {}
        for field, raw in rows.items():
            record = self._decode(key, raw)
            if record is not None:
                result[field] = record
        return result

    async def hdel(self, key: str, field: str) -> bool:
        return bool(await self._client().hdel(key, field))

    # Sets
    async def sadd(self, key: str, member: str) -> bool:
        return bool(await self._client().sadd(key, member))

    async def srem(self, key: str, member: str) -> bool:
        return bool(await self._client().srem(key, member))

    async def smembers(self, key: str) -> list[str]:
        return sorted(await self._client().smembers(key))

    # Keys
    async def delete(self, *keys: str) -> None:
        if keys:
            await self._client().delete(*keys)

    # Pub/sub
    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        return await self._client().publish(channel, encode(event))

    def subscribe(self, *channels: str) -> _RedisSubscription:
        return _RedisSubscription(self._client(), channels)
