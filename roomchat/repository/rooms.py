"""Chatroom repository: catalog, membership and lifecycle."""

import dataclasses
import re

from ..clock import Clock, now_ms
from ..config import DEFAULT_ROOM_ID
from ..errors import DuplicateError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import ChatMessage, Chatroom, UpdateType
from ..storage import IKeyValueStore
from . import keys
from .base import Repository
from .messages import IMessageRepository, make_message_id
from .users import UserRepository

logger = get_logger(__name__)

SYSTEM_SENDER = "System"
SYSTEM_SENDER_ID = "system"


def room_id_from_name(name: str) -> str:
    """URL-safe room id: lowercase, anything outside [a-z0-9] becomes '-'."""
    return re.sub(r"[^a-z0-9]", "-", name.strip().lower())


class RoomRepository(Repository):
    """Rooms live in one catalog hash; members in one set per room."""

    def __init__(
        self,
        store: IKeyValueStore,
        messages: IMessageRepository,
        users: UserRepository,
        clock: Clock = now_ms,
        default_room_id: str = DEFAULT_ROOM_ID,
    ):
        super().__init__(store, clock)
        self._messages = messages
        self._users = users
        self._default_room_id = default_room_id

    @property
    def default_room_id(self) -> str:
        return self._default_room_id

    async def create(self, room: Chatroom) -> Chatroom:
        """Store a new room with no members. Fails if the id is taken."""
        if not room.id:
            raise ValidationError("Room ID is required")

        created = dataclasses.replace(room, created_at=self._clock(), members=[])
        if not await self._store.hsetnx(keys.ROOMS, created.id, created.to_record()):
            raise DuplicateError(f"Room '{created.id}' already exists")

        # A previous room with this id may have left members behind
        await self._store.delete(keys.room_members(created.id))

        logger.info("Room created: %s", created.id)
        await self._notify(keys.UPDATES_CHANNEL, UpdateType.ROOM_CREATE, created.to_dict())
        return created

    async def get(self, room_id: str) -> Chatroom | None:
        record = await self._store.hget(keys.ROOMS, room_id)
        if record is None:
            return None
        members = await self._store.smembers(keys.room_members(room_id))
        return Chatroom.from_dict(record, members=members)

    async def require(self, room_id: str) -> Chatroom:
        room = await self.get(room_id)
        if room is None:
            raise NotFoundError("Room not found")
        return room

    async def list_all(self) -> list[Chatroom]:
        records = await self._store.hgetall(keys.ROOMS)
        rooms = []
        for room_id, record in records.items():
            members = await self._store.smembers(keys.room_members(room_id))
            rooms.append(Chatroom.from_dict(record, members=members))
        return rooms

    async def join(self, room_id: str, user_id: str) -> bool:
        """Add a member. Returns False when already a member (no-op)."""
        await self.require(room_id)
        if not await self._store.sadd(keys.room_members(room_id), user_id):
            return False
        await self._announce(room_id, user_id, "has joined the room")
        return True

    async def leave(self, room_id: str, user_id: str) -> bool:
        """Remove a member. Returns False when not a member (no-op)."""
        await self.require(room_id)
        if not await self._store.srem(keys.room_members(room_id), user_id):
            return False
        await self._announce(room_id, user_id, "has left the room")
        return True

    async def _announce(self, room_id: str, user_id: str, action: str) -> None:
        user = await self._users.get(user_id)
        if user is None:
            logger.info("No display name for %s, skipping system message", user_id)
            return

        now = self._clock()
        await self._messages.append(
            ChatMessage(
                id=make_message_id(now),
                content=f"{user.name} {action}",
                sender=SYSTEM_SENDER,
                sender_id=SYSTEM_SENDER_ID,
                timestamp=now,
                type="system",
                room_id=room_id,
            )
        )

    async def delete(self, room_id: str) -> bool:
        """Remove a room with its members and messages.

        Creator checks belong to the caller.
        """
        existed = await self._store.hdel(keys.ROOMS, room_id)
        await self._store.delete(keys.room_members(room_id))
        await self._messages.delete_room_messages(room_id)
        if existed:
            logger.info("Room deleted: %s", room_id)
            await self._notify(keys.UPDATES_CHANNEL, UpdateType.ROOM_DELETE, {"id": room_id})
        return existed

    async def ensure_default_room(self) -> Chatroom | None:
        """Create the default public room when the catalog is empty."""
        if await self._store.hgetall(keys.ROOMS):
            return None
        try:
            return await self.create(
                Chatroom(
                    id=self._default_room_id,
                    name=self._default_room_id.capitalize(),
                    description="General discussion",
                    created_by=SYSTEM_SENDER_ID,
                    is_private=False,
                )
            )
        except DuplicateError:
            # Another worker bootstrapped it first
            return None
