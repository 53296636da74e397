"""Message repository: per-room append-only sequences with expiry."""

import uuid
from typing import Protocol

from ..clock import Clock, now_ms
from ..config import MESSAGE_RETENTION_MS
from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import ChatMessage, UpdateType
from ..storage import IKeyValueStore
from . import keys
from .base import Repository

logger = get_logger(__name__)


def make_message_id(timestamp: int) -> str:
    """Time-derived id; the suffix keeps same-millisecond sends apart."""
    return f"{timestamp}-{uuid.uuid4().hex[:8]}"


class IMessageRepository(Protocol):
    """Room message sequences."""

    async def append(self, message: ChatMessage) -> ChatMessage:
        """Append a message to its room and notify subscribers."""
        ...

    async def list_since(
        self, room_id: str, since: int | None = None
    ) -> list[ChatMessage]:
        """Retained messages newer than `since`, in append order."""
        ...

    async def purge_expired(self, room_id: str | None = None) -> int:
        """Delete messages older than the retention window."""
        ...

    async def delete_room_messages(self, room_id: str) -> None:
        """Drop a room's whole message sequence."""
        ...


class MessageRepository(Repository):
    """Messages stored as one ordered list per room."""

    def __init__(
        self,
        store: IKeyValueStore,
        clock: Clock = now_ms,
        retention_ms: int = MESSAGE_RETENTION_MS,
    ):
        super().__init__(store, clock)
        self._retention_ms = retention_ms

    @property
    def retention_ms(self) -> int:
        return self._retention_ms

    async def append(self, message: ChatMessage) -> ChatMessage:
        """Append a message to its room and notify subscribers."""
        if not message.room_id:
            raise ValidationError("Message must have a room")
        if not message.has_body():
            raise ValidationError("Message must have content or a file")

        data = message.to_dict()
        await self._store.rpush(keys.room_messages(message.room_id), data)
        await self._notify(
            keys.room_channel(message.room_id), UpdateType.NEW_MESSAGE, data
        )
        return message

    async def list_since(
        self, room_id: str, since: int | None = None
    ) -> list[ChatMessage]:
        """Retained messages newer than `since`, in append order.

        `since=None` returns the whole retention window. Messages past the
        window are hidden even if no purge has run yet.
        """
        cutoff = self._clock() - self._retention_ms
        records = await self._store.lrange(keys.room_messages(room_id))

        messages = []
        for record in records:
            message = ChatMessage.from_dict(record)
            if message.timestamp < cutoff:
                continue
            if since is not None and message.timestamp <= since:
                continue
            messages.append(message)
        return messages

    async def purge_expired(self, room_id: str | None = None) -> int:
        """Delete messages older than the retention window.

        Purges one room, or every room in the catalog. A failed deletion is
        logged and skipped. Returns the number of messages removed.
        """
        if room_id is not None:
            room_ids = [room_id]
        else:
            room_ids = list(await self._store.hgetall(keys.ROOMS))

        cutoff = self._clock() - self._retention_ms
        removed = 0
        for rid in room_ids:
            key = keys.room_messages(rid)
            for record in await self._store.lrange(key):
                if int(record.get("timestamp") or 0) >= cutoff:
                    continue
                try:
                    removed += await self._store.lrem(key, record)
                except Exception as e:
                    logger.warning(
                        "Failed to delete message %s in %s: %s",
                        record.get("id"),
                        rid,
                        e,
                    )

        if removed:
            logger.info("Purged %d expired messages", removed)
        return removed

    async def delete_room_messages(self, room_id: str) -> None:
        """Drop a room's whole message sequence."""
        await self._store.delete(keys.room_messages(room_id))
