"""Tests for the client synchronization loop."""

import asyncio
import json

import httpx
import pytest

from poller import (
    ChatClient,
    ChatClientError,
    EventStreamListener,
    ScheduledTask,
    SSEParser,
    SyncLoop,
    SyncState,
)

from roomchat.models import UpdateEvent, UpdateType


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def client(api):
    """ChatClient talking to the in-process app."""
    return ChatClient(http=api)


class TestScheduledTask:
    """Tests for ScheduledTask."""

    async def test_rearms_after_failure(self):
        """Test that a failing run is retried at the same pace."""
        calls = []

        async def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("network down")

        task = ScheduledTask(callback, interval=0.01)
        task.start()
        await wait_until(lambda: task.runs >= 3)
        await task.stop()

        assert task.failures == 1
        assert not task.running

    async def test_poke_runs_early(self):
        """Test that poke() skips the remaining delay."""

        async def callback():
            pass

        task = ScheduledTask(callback, interval=60)
        task.start()
        await wait_until(lambda: task.runs == 1)

        task.poke()
        await wait_until(lambda: task.runs == 2)
        await task.stop()

    async def test_stop_cancels_pending_run(self):
        """Test that nothing runs after stop()."""

        async def callback():
            pass

        task = ScheduledTask(callback, interval=60)
        task.start()
        await wait_until(lambda: task.runs == 1)
        await task.stop()

        task.poke()
        await asyncio.sleep(0.02)
        assert task.runs == 1

    async def test_stop_right_after_poke(self):
        """Test that stop() returns when it lands as a poke wakes the loop."""

        async def callback():
            pass

        task = ScheduledTask(callback, interval=30)
        task.start()
        await wait_until(lambda: task.runs == 1)

        task.poke()
        await asyncio.wait_for(task.stop(), 1.0)

        assert not task.running


class TestSSEParser:
    """Tests for SSEParser."""

    def test_frames(self):
        """Test event and data lines assemble into frames."""
        parser = SSEParser()
        assert parser.feed("event: update") is None
        assert parser.feed('data: {"type": "room-delete"}') is None
        assert parser.feed("") == ("update", {"type": "room-delete"})

    def test_default_event_and_comments(self):
        """Test comment lines and the implicit `message` event."""
        parser = SSEParser()
        assert parser.feed(": keep-alive") is None
        assert parser.feed("") is None
        parser.feed("data: plain text")
        assert parser.feed("") == ("message", "plain text")


class TestSyncState:
    """Tests for SyncState.apply()."""

    def test_apply_replaces_lists(self):
        """Test that a poll reply becomes the view state."""
        state = SyncState(messages=[{"id": "stale"}])
        state.apply({"messages": [], "rooms": [{"id": "general"}], "timestamp": 99})

        assert state.messages == []
        assert state.rooms == [{"id": "general"}]
        assert state.last_timestamp == 99
        assert state.status == "connected"
        assert state.error is None


class TestChatClient:
    """Tests for ChatClient against the app."""

    async def test_room_lifecycle(self, client):
        """Test create, join, leave and delete through the client."""
        room = await client.create_room("Dev", created_by="alice")
        assert room["id"] == "dev"

        await client.join_room("dev", "alice")
        await client.leave_room("dev", "alice")
        assert "dev" in [r["id"] for r in await client.list_rooms()]

        with pytest.raises(ChatClientError) as exc_info:
            await client.delete_room("dev", "bob")
        assert exc_info.value.status_code == 403

        await client.delete_room("dev", "alice")
        assert [r["id"] for r in await client.list_rooms()] == ["general"]

    async def test_auth(self, client):
        """Test registration and the logged-in check."""
        assert await client.check_auth() is None
        user = await client.register("alice")
        assert (await client.check_auth()) == user


class TestSyncLoop:
    """Tests for SyncLoop."""

    async def test_poll_once_and_send(self, client):
        """Test one round trip and a send."""
        loop = SyncLoop(client, "u1", "Alice", "general")
        await loop.poll_once()
        assert loop.state.status == "connected"
        assert [r["id"] for r in loop.state.rooms] == ["general"]

        sent = await loop.send("hello")
        assert sent["roomId"] == "general"
        assert sent["senderId"] == "u1"

        await loop.poll_once()
        assert [m["content"] for m in loop.state.messages] == ["hello"]

    async def test_stop_right_after_send(self, client):
        """Test that stopping straight after a send does not hang."""
        loop = SyncLoop(client, "u1", "Alice", "general", poll_interval=30)
        await loop.start()

        await loop.send("hello")
        await asyncio.wait_for(loop.stop(), 1.0)

        assert not loop._poller.running

    async def test_start_joins_and_polls(self, client, application):
        """Test the timers keep state and presence current."""
        updates = []
        loop = SyncLoop(
            client,
            "u1",
            "Alice",
            "general",
            poll_interval=0.01,
            presence_interval=0.01,
            on_update=updates.append,
        )
        await loop.start()
        await wait_until(lambda: len(updates) >= 2)
        await wait_until(lambda: any(u["id"] == "u1" for u in loop.state.users_in_room))

        await loop.stop()

        assert (await application.rooms.get("general")).members == ["u1"]
        assert await application.users.get("u1") is None
        system = [
            m.content
            for m in await application.messages.list_since("general")
            if m.type == "system"
        ]
        assert "Alice has joined the room" in system

    async def test_switch_room(self, client, application):
        """Test leaving one room for another."""
        await client.create_room("Dev", created_by="alice")
        loop = SyncLoop(client, "u1", "Alice", "general")
        await loop.start()

        await loop.switch_room("dev")
        await loop.stop(disconnect=False)

        assert loop.room_id == "dev"
        assert (await application.rooms.get("general")).members == []
        assert (await application.rooms.get("dev")).members == ["u1"]

    async def test_poll_failure_marks_reconnecting(self):
        """Test a failing server leaves the loop retrying."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "Failed to fetch updates"})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        loop = SyncLoop(ChatClient(http=http), "u1", "Alice")

        await loop.poll_once()

        assert loop.state.status == "reconnecting"
        assert "Failed to fetch updates" in loop.state.error
        await http.aclose()


class TestEventStreamListener:
    """Tests for EventStreamListener."""

    async def test_receives_frames_and_reconnects(self):
        """Test frame delivery and reconnection after the stream ends."""
        requests = []
        body = (
            "event: connected\ndata: {}\n\n"
            f"event: update\ndata: {json.dumps({'type': 'room-delete', 'data': {'id': 'x'}})}\n\n"
        ).encode()

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, content=body, headers={"content-type": "text/event-stream"}
            )

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        received = []

        async def on_event(event, data):
            received.append((event, data))

        listener = EventStreamListener(
            ChatClient(http=http), on_event, room_id="general", reconnect_delay=0.01
        )
        listener.start()
        await wait_until(lambda: listener.connections >= 2)
        await listener.stop()
        await http.aclose()

        assert received[:2] == [
            ("connected", {}),
            ("update", UpdateEvent(UpdateType.ROOM_DELETE, {"id": "x"})),
        ]
        assert requests[0].url.params["roomId"] == "general"

    async def test_liveness_timeout(self):
        """Test a silent stream is dropped and reopened."""

        async def silent():
            yield b"event: connected\ndata: {}\n\n"
            await asyncio.sleep(60)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=silent())

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")

        async def on_event(event, data):
            pass

        listener = EventStreamListener(
            ChatClient(http=http), on_event, reconnect_delay=0.01, liveness_timeout=0.05
        )
        listener.start()
        await wait_until(lambda: listener.connections >= 2)
        await listener.stop()
        await http.aclose()

    async def test_malformed_update_skipped(self):
        """Test an update frame with an unknown type is dropped."""
        body = (
            'event: update\ndata: {"type": "reaction"}\n\n'
            'event: update\ndata: {"type": "user-remove", "data": {"id": "u1"}}\n\n'
        ).encode()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        received = []

        async def on_event(event, data):
            received.append((event, data))

        listener = EventStreamListener(ChatClient(http=http), on_event, reconnect_delay=0.01)
        listener.start()
        await wait_until(lambda: listener.connections >= 1 and received)
        await listener.stop()
        await http.aclose()

        assert received[0] == ("update", UpdateEvent(UpdateType.USER_REMOVE, {"id": "u1"}))
