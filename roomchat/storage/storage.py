"""Key-value store contract and its SQLite implementation."""

import asyncio
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..event_bus import EventBus, IEventBus
from ..logging_config import get_logger
from .codec import decode, encode

logger = get_logger(__name__)


class ISubscription(Protocol):
    """Live subscription to one or more channels."""

    async def __aenter__(self) -> "ISubscription":
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        ...

    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next published event, or None when the timeout elapses."""
        ...


class IKeyValueStore(Protocol):
    """Ordered lists, hashes, sets and pub/sub over JSON-object values."""

    async def init(self) -> None:
        """Open connections / create tables."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...

    async def clear(self) -> None:
        """Drop all data."""
        ...

    # Lists
    async def rpush(self, key: str, record: dict[str, Any]) -> None:
        """Append a record to the end of a list."""
        ...

    async def lrange(self, key: str) -> list[dict[str, Any]]:
        """All records of a list, in append order."""
        ...

    async def lrem(self, key: str, record: dict[str, Any]) -> int:
        """Remove every entry equal to record; returns the count removed."""
        ...

    # Hashes
    async def hset(self, key: str, field: str, record: dict[str, Any]) -> None:
        """Set a hash field."""
        ...

    async def hsetnx(self, key: str, field: str, record: dict[str, Any]) -> bool:
        """Set a hash field only if absent; True when it was set."""
        ...

    async def hget(self, key: str, field: str) -> dict[str, Any] | None:
        """Get a hash field."""
        ...

    async def hgetall(self, key: str) -> dict[str, dict[str, Any]]:
        """All fields of a hash."""
        ...

    async def hdel(self, key: str, field: str) -> bool:
        """Delete a hash field; True when it existed."""
        ...

    # Sets
    async def sadd(self, key: str, member: str) -> bool:
        """Add a member; True when it was not present."""
        ...

    async def srem(self, key: str, member: str) -> bool:
        """Remove a member; True when it was present."""
        ...

    async def smembers(self, key: str) -> list[str]:
        """All members of a set."""
        ...

    # Keys
    async def delete(self, *keys: str) -> None:
        """Delete whole keys of any type."""
        ...

    # Pub/sub
    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        """Publish an event; returns the receiver count."""
        ...

    def subscribe(self, *channels: str) -> ISubscription:
        """Subscription to channels, active inside `async with`."""
        ...


class _BusSubscription:
    """Queue-backed subscription on the in-process EventBus."""

    def __init__(self, event_bus: IEventBus, channels: tuple[str, ...]):
        self._event_bus = event_bus
        self._channels = channels
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    async def _enqueue(self, event: dict[str, Any]) -> None:
        self._queue.put_nowait(event)

    async def __aenter__(self) -> "_BusSubscription":
        for channel in self._channels:
            self._event_bus.subscribe(channel, self._enqueue)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        for channel in self._channels:
            self._event_bus.unsubscribe(channel, self._enqueue)

    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None


class SqliteStore:
    """SQLite-backed store; pub/sub is delivered in-process."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        event_bus: IEventBus | None = None,
    ):
        self._db_path = resolve_db_path(db_path)
        self._event_bus = event_bus or EventBus()
        self._conn: aiosqlite.Connection | None = None

    @property
    def event_bus(self) -> IEventBus:
        return self._event_bus

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def clear(self) -> None:
        """Clear all data."""
        conn = self._connection()
        for table in ("kv_lists", "kv_hashes", "kv_sets"):
            await conn.execute(f"DELETE FROM {table}")
        await conn.commit()

    def _connection(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    @staticmethod
    def _decode(key: str, raw: str) -> dict[str, Any] | None:
        try:
            return decode(raw)
        except ValueError:
            logger.warning("Skipping undecodable value under %s", key)
            return None

    # Lists
    async def rpush(self, key: str, record: dict[str, Any]) -> None:
        conn = self._connection()
        await conn.execute(
            "INSERT INTO kv_lists (key, value) VALUES (?, ?)",
            (key, encode(record)),
        )
        await conn.commit()

    async def lrange(self, key: str) -> list[dict[str, Any]]:
        conn = self._connection()
        cursor = await conn.execute(
            "SELECT value FROM kv_lists WHERE key = ? ORDER BY seq ASC",
            (key,),
        )
        rows = await cursor.fetchall()
        records = [self._decode(key, row[0]) for row in rows]
        return [r for r in records if r is not None]

    async def lrem(self, key: str, record: dict[str, Any]) -> int:
        conn = self._connection()
        cursor = await conn.execute(
            "DELETE FROM kv_lists WHERE key = ? AND value = ?",
            (key, encode(record)),
        )
        await conn.commit()
        return cursor.rowcount

    # Hashes
    async def hset(self, key: str, field: str, record: dict[str, Any]) -> None:
        conn = self._connection()
        await conn.execute(
            """
            INSERT INTO kv_hashes (key, field, value) VALUES (?, ?, ?)
            ON CONFLICT (key, field) DO UPDATE SET value = excluded.value
            """,
            (key, field, encode(record)),
        )
        await conn.commit()

    async def hsetnx(self, key: str, field: str, record: dict[str, Any]) -> bool:
        conn = self._connection()
        cursor = await conn.execute(
            "INSERT OR IGNORE INTO kv_hashes (key, field, value) VALUES (?, ?, ?)",
            (key, field, encode(record)),
        )
        await conn.commit()
        return cursor.rowcount == 1

    async def hget(self, key: str, field: str) -> dict[str, Any] | None:
        conn = self._connection()
        cursor = await conn.execute(
            "SELECT value FROM kv_hashes WHERE key = ? AND field = ?",
            (key, field),
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self._decode(key, row[0])

    async def hgetall(self, key: str) -> dict[str, dict[str, Any]]:
        conn = self._connection()
        cursor = await conn.execute(
            "SELECT field, value FROM kv_hashes WHERE key = ? ORDER BY rowid ASC",
            (key,),
        )
        rows = await cursor.fetchall()
        result: dict[str, dict[str, Any]] = {}
        for field, raw in rows:
            record = self._decode(key, raw)
            if record is not None:
                result[field] = record
        return result

    async def hdel(self, key: str, field: str) -> bool:
        conn = self._connection()
        cursor = await conn.execute(
            "DELETE FROM kv_hashes WHERE key = ? AND field = ?",
            (key, field),
        )
        await conn.commit()
        return cursor.rowcount > 0

    # Sets
    async def sadd(self, key: str, member: str) -> bool:
        conn = self._connection()
        cursor = await conn.execute(
            "INSERT OR IGNORE INTO kv_sets (key, member) VALUES (?, ?)",
            (key, member),
        )
        await conn.commit()
        return cursor.rowcount == 1

    async def srem(self, key: str, member: str) -> bool:
        conn = self._connection()
        cursor = await conn.execute(
            "DELETE FROM kv_sets WHERE key = ? AND member = ?",
            (key, member),
        )
        await conn.commit()
        return cursor.rowcount > 0

    async def smembers(self, key: str) -> list[str]:
        conn = self._connection()
        cursor = await conn.execute(
            "SELECT member FROM kv_sets WHERE key = ? ORDER BY seq ASC",
            (key,),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    # Keys
    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        conn = self._connection()
        placeholders = ",".join("?" * len(keys))
        for table in ("kv_lists", "kv_hashes", "kv_sets"):
            await conn.execute(
                f"DELETE FROM {table} WHERE key IN ({placeholders})", keys
            )
        await conn.commit()

    # Pub/sub
    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        return await self._event_bus.publish(channel, event)

    def subscribe(self, *channels: str) -> _BusSubscription:
        return _BusSubscription(self._event_bus, channels)
