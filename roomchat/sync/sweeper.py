"""Time-gated maintenance: message expiry and inactive-user eviction."""

import asyncio
from dataclasses import dataclass, field

from ..clock import Clock, now_ms
from ..config import CLEANUP_INTERVAL_MS
from ..logging_config import get_logger
from ..repository import IMessageRepository, UserRepository

logger = get_logger(__name__)


@dataclass
class MaintenanceState:
    """When maintenance last completed. Owned by a Sweeper."""

    last_cleanup_ms: int = 0
    runs: int = 0


@dataclass
class SweepReport:
    """Outcome of one maintenance run."""

    messages_removed: int = 0
    users_removed: list[str] = field(default_factory=list)


class Sweeper:
    """Runs maintenance at most once per interval, driven by traffic."""

    def __init__(
        self,
        messages: IMessageRepository,
        users: UserRepository,
        clock: Clock = now_ms,
        interval_ms: int = CLEANUP_INTERVAL_MS,
        state: MaintenanceState | None = None,
    ):
        self._messages = messages
        self._users = users
        self._clock = clock
        self._interval_ms = interval_ms
        self._state = state or MaintenanceState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> MaintenanceState:
        return self._state

    def is_due(self, now: int | None = None) -> bool:
        if now is None:
            now = self._clock()
        return now - self._state.last_cleanup_ms > self._interval_ms

    async def maybe_run(self) -> SweepReport | None:
        """Run maintenance if the interval has elapsed; None when skipped.

        The state only advances after a successful run, so a failed sweep is
        retried on the next call.
        """
        if not self.is_due():
            return None

        async with self._lock:
            now = self._clock()
            # Re-check: a concurrent caller may have finished while we waited
            if not self.is_due(now):
                return None

            report = await self.run()
            self._state.last_cleanup_ms = now
            self._state.runs += 1
            return report

    async def run(self) -> SweepReport:
        """Purge expired messages in every room and evict inactive users."""
        logger.info("Running maintenance sweep")
        messages_removed = await self._messages.purge_expired()
        users_removed = await self._users.sweep_inactive()
        logger.info(
            "Maintenance sweep finished",
            extra={
                "context": {
                    "messages_removed": messages_removed,
                    "users_removed": len(users_removed),
                }
            },
        )
        return SweepReport(messages_removed=messages_removed, users_removed=users_removed)
