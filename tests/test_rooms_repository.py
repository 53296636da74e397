"""Tests for RoomRepository."""

import pytest
from conftest import T0, make_message

from roomchat.errors import DuplicateError, NotFoundError
from roomchat.models import Chatroom, ChatUser
from roomchat.repository import room_id_from_name


class TestRoomCreate:
    """Tests for room creation."""

    async def test_create_and_get(self, rooms):
        """Test that a created room reads back with no members."""
        created = await rooms.create(
            Chatroom(id="dev", name="Dev", description="builds", created_by="u1")
        )

        room = await rooms.get("dev")
        assert room == created
        assert room.created_at == T0
        assert room.members == []

    async def test_create_ignores_supplied_members(self, rooms):
        """Test that new rooms always start empty."""
        await rooms.create(Chatroom(id="dev", name="Dev", members=["u9"]))
        assert (await rooms.get("dev")).members == []

    async def test_duplicate_id_rejected(self, rooms):
        """Test that an existing room is left unchanged."""
        await rooms.create(Chatroom(id="dev", name="Dev"))

        with pytest.raises(DuplicateError):
            await rooms.create(Chatroom(id="dev", name="Other"))
        assert (await rooms.get("dev")).name == "Dev"

    async def test_create_publishes(self, rooms, store):
        """Test room-create notification."""
        async with store.subscribe("chat:updates") as sub:
            await rooms.create(Chatroom(id="dev", name="Dev"))
            event = await sub.get(timeout=1)
        assert event["type"] == "room-create"
        assert event["data"]["id"] == "dev"

    async def test_require_missing(self, rooms):
        """Test require() on an unknown room."""
        with pytest.raises(NotFoundError):
            await rooms.require("nope")

    def test_room_id_from_name(self):
        """Test id derivation."""
        assert room_id_from_name("My Room!") == "my-room-"
        assert room_id_from_name("  Dev  ") == "dev"


class TestRoomMembership:
    """Tests for join and leave."""

    async def test_join_posts_system_message(self, rooms, users, messages):
        """Test joining adds the member and announces it."""
        await rooms.create(Chatroom(id="general", name="General"))
        await users.upsert(ChatUser(id="u1", name="Alice", last_seen=T0))

        assert await rooms.join("general", "u1") is True

        assert (await rooms.get("general")).members == ["u1"]
        listed = await messages.list_since("general")
        assert len(listed) == 1
        assert listed[0].type == "system"
        assert listed[0].sender == "System"
        assert listed[0].content == "Alice has joined the room"

    async def test_join_is_idempotent(self, rooms, users, messages):
        """Test joining twice keeps one membership and one message."""
        await rooms.create(Chatroom(id="general", name="General"))
        await users.upsert(ChatUser(id="u1", name="Alice", last_seen=T0))

        await rooms.join("general", "u1")
        assert await rooms.join("general", "u1") is False

        assert (await rooms.get("general")).members == ["u1"]
        assert len(await messages.list_since("general")) == 1

    async def test_join_unknown_user_skips_message(self, rooms, messages):
        """Test that no system message is posted without a display name."""
        await rooms.create(Chatroom(id="general", name="General"))

        assert await rooms.join("general", "ghost") is True
        assert await messages.list_since("general") == []

    async def test_join_missing_room(self, rooms):
        """Test joining an unknown room."""
        with pytest.raises(NotFoundError):
            await rooms.join("nope", "u1")

    async def test_leave(self, rooms, users, messages):
        """Test leaving removes the member and announces it."""
        await rooms.create(Chatroom(id="general", name="General"))
        await users.upsert(ChatUser(id="u1", name="Alice", last_seen=T0))
        await rooms.join("general", "u1")

        assert await rooms.leave("general", "u1") is True
        assert await rooms.leave("general", "u1") is False

        assert (await rooms.get("general")).members == []
        contents = [m.content for m in await messages.list_since("general")]
        assert contents == ["Alice has joined the room", "Alice has left the room"]


class TestRoomDelete:
    """Tests for room deletion."""

    async def test_delete_cascades(self, rooms, messages, store):
        """Test that members and messages go with the room."""
        await rooms.create(Chatroom(id="dev", name="Dev"))
        await rooms.join("dev", "u1")
        await messages.append(make_message("bye", room_id="dev"))

        assert await rooms.delete("dev") is True

        assert await rooms.get("dev") is None
        assert await store.smembers("chat:room-members:dev") == []
        assert await store.lrange("chat:messages:dev") == []

    async def test_recreated_room_starts_empty(self, rooms):
        """Test that a reused id has no stale members."""
        await rooms.create(Chatroom(id="dev", name="Dev"))
        await rooms.join("dev", "u1")
        await rooms.delete("dev")

        await rooms.create(Chatroom(id="dev", name="Dev"))
        assert (await rooms.get("dev")).members == []

    async def test_delete_missing(self, rooms):
        """Test deleting an unknown room."""
        assert await rooms.delete("nope") is False


class TestDefaultRoom:
    """Tests for bootstrap of the default room."""

    async def test_ensure_default_room(self, rooms):
        """Test the default room is created once."""
        created = await rooms.ensure_default_room()

        assert created.id == "general"
        assert created.name == "General"
        assert created.created_by == "system"
        assert await rooms.ensure_default_room() is None
        assert [r.id for r in await rooms.list_all()] == ["general"]

    async def test_not_created_when_rooms_exist(self, rooms):
        """Test bootstrap is skipped for a non-empty catalog."""
        await rooms.create(Chatroom(id="dev", name="Dev"))
        assert await rooms.ensure_default_room() is None
