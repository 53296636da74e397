"""Tests for SqliteStore."""

import asyncio

import pytest

from roomchat.config import Settings
from roomchat.storage import RedisStore, SqliteStore, create_store
from roomchat.storage.codec import decode, encode


class TestCodec:
    """Tests for the canonical JSON codec."""

    def test_encode_is_key_order_independent(self):
        """Test that equal records encode identically."""
        assert encode({"a": 1, "b": "x"}) == encode({"b": "x", "a": 1})

    def test_decode_rejects_non_objects(self):
        """Test that only JSON objects are valid stored values."""
        with pytest.raises(ValueError):
            decode("[1, 2]")
        with pytest.raises(ValueError):
            decode("not json")


class TestStorageInit:
    """Tests for SqliteStore initialization."""

    async def test_init_creates_tables(self, store):
        """Test that init creates all tables."""
        async with store._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "kv_lists" in tables
            assert "kv_hashes" in tables
            assert "kv_sets" in tables

    async def test_use_before_init_raises(self):
        """Test that an uninitialized store refuses operations."""
        st = SqliteStore(":memory:")
        with pytest.raises(RuntimeError, match="not initialized"):
            await st.lrange("k")

    def test_create_store_selects_backend(self):
        """Test backend selection from settings."""
        assert isinstance(create_store(Settings(database_url=":memory:")), SqliteStore)
        assert isinstance(create_store(Settings(store_backend="redis")), RedisStore)
        with pytest.raises(ValueError):
            create_store(Settings(store_backend="memcached"))


class TestStorageLists:
    """Tests for list operations."""

    async def test_rpush_preserves_order(self, store):
        """Test that lrange returns records in append order."""
        for i in range(3):
            await store.rpush("chat:messages:general", {"id": str(i)})

        records = await store.lrange("chat:messages:general")
        assert [r["id"] for r in records] == ["0", "1", "2"]

    async def test_lrange_missing_key(self, store):
        """Test that an absent list reads as empty."""
        assert await store.lrange("nothing") == []

    async def test_lrem_matches_by_value(self, store):
        """Test removal by an equal record regardless of key order."""
        await store.rpush("k", {"id": "1", "timestamp": 5})
        await store.rpush("k", {"id": "2", "timestamp": 6})

        removed = await store.lrem("k", {"timestamp": 5, "id": "1"})

        assert removed == 1
        assert await store.lrange("k") == [{"id": "2", "timestamp": 6}]

    async def test_lrem_no_match(self, store):
        """Test removing a record that is not there."""
        await store.rpush("k", {"id": "1"})
        assert await store.lrem("k", {"id": "9"}) == 0

    async def test_undecodable_values_are_skipped(self, store):
        """Test that corrupt entries do not break reads."""
        await store.rpush("k", {"id": "1"})
        await store._conn.execute(
            "INSERT INTO kv_lists (key, value) VALUES (?, ?)", ("k", "{broken")
        )
        await store._conn.commit()

        assert await store.lrange("k") == [{"id": "1"}]


class TestStorageHashes:
    """Tests for hash operations."""

    async def test_hset_and_hget(self, store):
        """Test setting and reading a field."""
        await store.hset("chat:users", "u1", {"name": "Alice"})
        assert await store.hget("chat:users", "u1") == {"name": "Alice"}

    async def test_hset_overwrites(self, store):
        """Test that hset replaces the previous value."""
        await store.hset("chat:users", "u1", {"name": "Alice"})
        await store.hset("chat:users", "u1", {"name": "Alicia"})
        assert await store.hget("chat:users", "u1") == {"name": "Alicia"}

    async def test_hget_missing(self, store):
        """Test reading an absent field."""
        assert await store.hget("chat:users", "nobody") is None

    async def test_hsetnx_only_sets_once(self, store):
        """Test that hsetnx leaves an existing field untouched."""
        assert await store.hsetnx("chat:rooms", "general", {"name": "General"})
        assert not await store.hsetnx("chat:rooms", "general", {"name": "Other"})
        assert await store.hget("chat:rooms", "general") == {"name": "General"}

    async def test_hgetall_in_insertion_order(self, store):
        """Test reading all fields."""
        await store.hset("h", "b", {"v": 2})
        await store.hset("h", "a", {"v": 1})
        assert await store.hgetall("h") == {"b": {"v": 2}, "a": {"v": 1}}

    async def test_hdel_reports_existence(self, store):
        """Test hdel return value."""
        await store.hset("h", "a", {"v": 1})
        assert await store.hdel("h", "a") is True
        assert await store.hdel("h", "a") is False


class TestStorageSets:
    """Tests for set operations."""

    async def test_sadd_is_idempotent(self, store):
        """Test that adding a member twice keeps one copy."""
        assert await store.sadd("s", "u1") is True
        assert await store.sadd("s", "u1") is False
        assert await store.smembers("s") == ["u1"]

    async def test_srem(self, store):
        """Test removing members."""
        await store.sadd("s", "u1")
        await store.sadd("s", "u2")

        assert await store.srem("s", "u1") is True
        assert await store.srem("s", "u1") is False
        assert await store.smembers("s") == ["u2"]


class TestStorageKeys:
    """Tests for whole-key operations."""

    async def test_delete_removes_every_type(self, store):
        """Test delete across lists, hashes and sets."""
        await store.rpush("k", {"id": "1"})
        await store.hset("k", "f", {"v": 1})
        await store.sadd("k", "m")
        await store.rpush("other", {"id": "2"})

        await store.delete("k")

        assert await store.lrange("k") == []
        assert await store.hgetall("k") == {}
        assert await store.smembers("k") == []
        assert await store.lrange("other") == [{"id": "2"}]

    async def test_clear(self, store):
        """Test dropping all data."""
        await store.rpush("k", {"id": "1"})
        await store.hset("h", "f", {"v": 1})
        await store.clear()
        assert await store.lrange("k") == []
        assert await store.hgetall("h") == {}


class TestStoragePubSub:
    """Tests for publish/subscribe."""

    async def test_subscriber_receives_event(self, store):
        """Test delivery to an active subscription."""
        async with store.subscribe("chat:updates") as sub:
            count = await store.publish("chat:updates", {"type": "user-update"})
            assert count == 1
            assert await sub.get(timeout=1) == {"type": "user-update"}

    async def test_get_times_out(self, store):
        """Test that an idle subscription returns None."""
        async with store.subscribe("chat:updates") as sub:
            assert await sub.get(timeout=0.01) is None

    async def test_multiple_channels(self, store):
        """Test one subscription over several channels."""
        async with store.subscribe("chat:updates", "chat:updates:general") as sub:
            await store.publish("chat:updates:general", {"type": "new-message"})
            await store.publish("chat:updates:random", {"type": "new-message"})
            await store.publish("chat:updates", {"type": "room-create"})

            first = await sub.get(timeout=1)
            second = await sub.get(timeout=1)
            assert [first["type"], second["type"]] == ["new-message", "room-create"]
            assert await sub.get(timeout=0.01) is None

    async def test_exit_unsubscribes(self, store):
        """Test that leaving the context stops delivery."""
        async with store.subscribe("chat:updates"):
            pass
        assert await store.publish("chat:updates", {"type": "x"}) == 0

    async def test_concurrent_waiter_is_woken(self, store):
        """Test that a pending get() wakes on publish."""
        async with store.subscribe("chat:updates") as sub:
            waiter = asyncio.create_task(sub.get(timeout=1))
            await asyncio.sleep(0)
            await store.publish("chat:updates", {"type": "user-remove"})
            assert await waiter == {"type": "user-remove"}
