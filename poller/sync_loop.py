"""Client synchronization loop: poll, merge into view state, re-arm."""

from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from roomchat.logging_config import get_logger

from .client import ChatClient, ChatClientError
from .scheduler import IScheduledTask, ScheduledTask

logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 2.0
PRESENCE_INTERVAL_SECONDS = 30.0


@dataclass
class SyncState:
    """What the client currently shows."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    new_messages: list[dict[str, Any]] = field(default_factory=list)
    users_in_room: list[dict[str, Any]] = field(default_factory=list)
    online_users: list[dict[str, Any]] = field(default_factory=list)
    rooms: list[dict[str, Any]] = field(default_factory=list)
    last_timestamp: int = 0
    status: str = "connecting"  # connecting | connected | reconnecting
    error: str | None = None

    def apply(self, data: dict[str, Any]) -> None:
        """Merge one poll reply. The full message list is authoritative."""
        for attr, key in (
            ("messages", "messages"),
            ("new_messages", "newMessages"),
            ("users_in_room", "usersInRoom"),
            ("online_users", "onlineUsers"),
            ("rooms", "rooms"),
        ):
            value = data.get(key)
            if isinstance(value, list):
                setattr(self, attr, value)

        if data.get("timestamp"):
            self.last_timestamp = int(data["timestamp"])
        self.error = data.get("error")
        self.status = "connected"


class SyncLoop:
    """Keeps a SyncState current for one user in one room."""

    def __init__(
        self,
        client: ChatClient,
        user_id: str,
        user_name: str,
        room_id: str = "general",
        poll_interval: float = POLL_INTERVAL_SECONDS,
        presence_interval: float = PRESENCE_INTERVAL_SECONDS,
        on_update: Callable[[SyncState], None] | None = None,
    ):
        self._client = client
        self._user_id = user_id
        self._user_name = user_name
        self._room_id = room_id
        self._on_update = on_update
        self.state = SyncState()
        self._poller: IScheduledTask = ScheduledTask(
            self.poll_once, poll_interval, name="poll"
        )
        self._presence: IScheduledTask = ScheduledTask(
            self.heartbeat, presence_interval, name="presence"
        )

    @property
    def room_id(self) -> str:
        return self._room_id

    async def start(self) -> None:
        """Announce presence, join the room and begin polling."""
        # Presence first so the join announcement has a display name
        await self.heartbeat()
        await self._client.join_room(self._room_id, self._user_id)
        self._presence.start()
        self._poller.start()

    async def stop(self, disconnect: bool = True) -> None:
        """Cancel timers; optionally drop our presence entry."""
        await self._poller.stop()
        await self._presence.stop()
        if disconnect:
            try:
                await self._client.remove_user(self._user_id)
            except (httpx.HTTPError, ChatClientError) as e:
                logger.warning("Failed to remove presence on stop: %s", e)

    async def poll_once(self) -> None:
        """One synchronization round trip."""
        try:
            data = await self._client.poll(self.state.last_timestamp, self._room_id)
        except (httpx.HTTPError, ChatClientError) as e:
            self.state.status = "reconnecting"
            self.state.error = str(e)
            logger.warning("Polling failed: %s", e)
            return

        self.state.apply(data)
        if self._on_update:
            self._on_update(self.state)

    async def heartbeat(self) -> None:
        await self._client.update_presence(
            {"id": self._user_id, "name": self._user_name, "currentRoomId": self._room_id}
        )

    async def send(self, content: str = "", file: dict[str, Any] | None = None) -> dict:
        """Send a message to the current room and poll right away."""
        message: dict[str, Any] = {
            "content": content,
            "sender": self._user_name,
            "senderId": self._user_id,
            "roomId": self._room_id,
        }
        if file:
            message["file"] = file
        body = await self._client.send_message(message)
        self._poller.poke()
        return body["message"]

    async def switch_room(self, room_id: str) -> None:
        """Leave the current room, join another and resync from scratch."""
        if room_id == self._room_id:
            return
        await self._client.leave_room(self._room_id, self._user_id)
        await self._client.join_room(room_id, self._user_id)
        self._room_id = room_id
        self.state = SyncState(rooms=self.state.rooms)
        self._presence.poke()
        self._poller.poke()
