"""Synchronization endpoint logic: the combined poll read/write contract."""

import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, TypeVar

from ..clock import Clock, now_ms
from ..errors import ChatError, InternalError, ValidationError
from ..logging_config import get_logger
from ..models import ChatMessage, Chatroom, ChatUser, FileAttachment
from ..repository import (
    IMessageRepository,
    RoomRepository,
    UserRepository,
    make_message_id,
)
from .sweeper import Sweeper

logger = get_logger(__name__)

T = TypeVar("T")


def parse_attachment(data: Any) -> FileAttachment:
    """Validate a client-supplied file reference."""
    if not isinstance(data, dict):
        raise ValidationError("Message file must be an object")

    name, url, mime = data.get("name"), data.get("url"), data.get("type") or ""
    if not isinstance(name, str) or not name or not isinstance(url, str) or not url:
        raise ValidationError("Message file must have a name and url")
    if not isinstance(mime, str):
        raise ValidationError("Message file type must be a string")

    size = data.get("size", 0)
    if (
        isinstance(size, bool)
        or not isinstance(size, (int, float))
        or not math.isfinite(size)
        or size < 0
    ):
        raise ValidationError("Message file size must be a non-negative number")

    return FileAttachment(name=name, type=mime, url=url, size=int(size))


@dataclass
class PollSnapshot:
    """Everything a client needs to render one room."""

    timestamp: int
    messages: list[ChatMessage] = field(default_factory=list)
    new_messages: list[ChatMessage] = field(default_factory=list)
    users_in_room: list[ChatUser] = field(default_factory=list)
    online_users: list[ChatUser] = field(default_factory=list)
    rooms: list[Chatroom] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "messages": [m.to_dict() for m in self.messages],
            "newMessages": [m.to_dict() for m in self.new_messages],
            "usersInRoom": [u.to_dict() for u in self.users_in_room],
            "onlineUsers": [u.to_dict() for u in self.online_users],
            "rooms": [r.to_dict() for r in self.rooms],
            "timestamp": self.timestamp,
        }
        if self.failed:
            data["error"] = f"Failed to fetch {', '.join(self.failed)}"
        return data


class SyncService:
    """Stateless per request: each poll carries `since` and `roomId`."""

    def __init__(
        self,
        messages: IMessageRepository,
        users: UserRepository,
        rooms: RoomRepository,
        sweeper: Sweeper,
        clock: Clock = now_ms,
    ):
        self._messages = messages
        self._users = users
        self._rooms = rooms
        self._sweeper = sweeper
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    async def poll(self, since: int = 0, room_id: str | None = None) -> PollSnapshot:
        """Read path. Never raises: failed parts degrade to empty lists."""
        room_id = room_id or self._rooms.default_room_id

        try:
            await self._sweeper.maybe_run()
        except Exception:
            logger.exception("Error during maintenance sweep")

        # Taken before reading so nothing appended meanwhile is skipped next time
        snapshot = PollSnapshot(timestamp=self._clock())

        snapshot.messages = await self._fetch(
            "messages", self._messages.list_since(room_id), snapshot.failed
        )
        snapshot.new_messages = [m for m in snapshot.messages if m.timestamp > since]
        snapshot.users_in_room = await self._fetch(
            "usersInRoom", self.users_in_room(room_id), snapshot.failed
        )
        snapshot.online_users = await self._fetch(
            "onlineUsers", self._users.list_online(), snapshot.failed
        )
        snapshot.rooms = await self._fetch(
            "rooms", self._rooms.list_all(), snapshot.failed
        )
        return snapshot

    async def _fetch(
        self, name: str, pending: Awaitable[list[T]], failed: list[str]
    ) -> list[T]:
        try:
            return await pending
        except Exception:
            logger.exception(
                "Error fetching %s", name, extra={"context": {"field": name}}
            )
            failed.append(name)
            return []

    async def users_in_room(self, room_id: str) -> list[ChatUser]:
        """Directory entries of the room's members (online or not)."""
        room = await self._rooms.get(room_id)
        if room is None:
            return []
        directory = {u.id: u for u in await self._users.list_all()}
        return [directory[m] for m in room.members if m in directory]

    async def submit(self, kind: str | None, data: Any) -> dict[str, Any]:
        """Write path, tagged by `kind` ("message" or "user")."""
        if kind == "message":
            message = await self.accept_message(data)
            return {"success": True, "message": message.to_dict()}
        if kind == "user":
            user = await self.heartbeat(data)
            return {"success": True, "user": user.to_dict()}
        raise ValidationError("Invalid operation type")

    async def accept_message(self, data: Any, require_room: bool = False) -> ChatMessage:
        """Validate, fill in server defaults and append a message.

        A missing `roomId` falls back to the default room unless
        `require_room` is set.
        """
        if not isinstance(data, dict):
            raise ValidationError("Message payload must be an object")

        content = data.get("content") or ""
        file_data = data.get("file")
        if not content and not file_data:
            raise ValidationError("Message must have content or a file")
        if not data.get("sender") or not data.get("senderId"):
            raise ValidationError("Message must have a sender")
        room_id = data.get("roomId")
        if not room_id and not require_room:
            room_id = self._rooms.default_room_id
        if not room_id:
            raise ValidationError("Message must have a room")
        attachment = parse_attachment(file_data) if file_data else None

        kind = data.get("type") or "message"
        if kind not in ("message", "system"):
            raise ValidationError(f"Invalid message type: {kind}")

        try:
            timestamp = int(data.get("timestamp") or self._clock())
        except (TypeError, ValueError):
            raise ValidationError("Message timestamp must be a number")

        message = ChatMessage(
            id=str(data.get("id") or make_message_id(timestamp)),
            content=str(content),
            sender=str(data["sender"]),
            sender_id=str(data["senderId"]),
            timestamp=timestamp,
            type=kind,
            room_id=str(room_id),
            file=attachment,
        )

        try:
            # Only catalogued rooms are purged, so unknown ones are refused
            await self._rooms.require(message.room_id)
            return await self._messages.append(message)
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error adding message to %s", message.room_id)
            raise InternalError("Failed to add message") from e

    async def heartbeat(self, data: Any) -> ChatUser:
        """Record presence for a user; lastSeen defaults to now."""
        if not isinstance(data, dict) or not data.get("id") or not data.get("name"):
            raise ValidationError("User must have an ID and name")

        try:
            last_seen = int(data.get("lastSeen") or self._clock())
        except (TypeError, ValueError):
            raise ValidationError("User lastSeen must be a number")

        user = ChatUser(
            id=str(data["id"]),
            name=str(data["name"]),
            last_seen=last_seen,
            current_room_id=data.get("currentRoomId") or None,
        )

        try:
            return await self._users.upsert(user)
        except Exception as e:
            logger.exception("Error updating user %s", user.id)
            raise InternalError("Failed to update user") from e
