"""Presence directory repository."""

from ..clock import Clock, now_ms
from ..config import INACTIVE_USER_MS, ONLINE_THRESHOLD_MS
from ..logging_config import get_logger
from ..models import ChatUser, UpdateType
from ..storage import IKeyValueStore
from . import keys
from .base import Repository

logger = get_logger(__name__)


class UserRepository(Repository):
    """Users keyed by id in a single hash; online state is derived."""

    def __init__(
        self,
        store: IKeyValueStore,
        clock: Clock = now_ms,
        online_threshold_ms: int = ONLINE_THRESHOLD_MS,
        inactive_user_ms: int = INACTIVE_USER_MS,
    ):
        super().__init__(store, clock)
        self._online_threshold_ms = online_threshold_ms
        self._inactive_user_ms = inactive_user_ms

    async def upsert(self, user: ChatUser) -> ChatUser:
        """Write a presence entry and announce it."""
        await self._store.hset(keys.USERS, user.id, user.to_record())
        await self._notify(keys.UPDATES_CHANNEL, UpdateType.USER_UPDATE, user.to_dict())
        return user

    async def get(self, user_id: str) -> ChatUser | None:
        record = await self._store.hget(keys.USERS, user_id)
        if record is None:
            return None
        return ChatUser.from_dict(record, user_id=user_id)

    async def list_all(self) -> list[ChatUser]:
        records = await self._store.hgetall(keys.USERS)
        return [ChatUser.from_dict(r, user_id=uid) for uid, r in records.items()]

    async def remove(self, user_id: str) -> bool:
        """Delete a presence entry. Removing an absent user is a no-op."""
        existed = await self._store.hdel(keys.USERS, user_id)
        if existed:
            await self._notify(
                keys.UPDATES_CHANNEL, UpdateType.USER_REMOVE, {"id": user_id}
            )
        return existed

    async def list_online(self, threshold_ms: int | None = None) -> list[ChatUser]:
        """Users seen within the threshold (default two minutes)."""
        threshold = self._online_threshold_ms if threshold_ms is None else threshold_ms
        now = self._clock()
        return [u for u in await self.list_all() if u.is_online(now, threshold)]

    async def sweep_inactive(self, max_age_ms: int | None = None) -> list[str]:
        """Remove users not seen for longer than max_age (default five minutes)."""
        max_age = self._inactive_user_ms if max_age_ms is None else max_age_ms
        now = self._clock()

        removed = []
        for user in await self.list_all():
            if now - user.last_seen > max_age and await self.remove(user.id):
                removed.append(user.id)

        if removed:
            logger.info("Removed %d inactive users", len(removed))
        return removed
