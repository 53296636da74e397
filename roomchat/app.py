"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .clock import Clock, now_ms
from .config import Settings
from .logging_config import get_logger
from .repository import (
    AccountRepository,
    MessageRepository,
    RoomRepository,
    UserRepository,
)
from .storage import IKeyValueStore, create_store
from .sync import MaintenanceState, Sweeper, SyncService

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: IKeyValueStore | None = None,
        clock: Clock = now_ms,
        maintenance_state: MaintenanceState | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._store_override = store
        self._clock = clock
        self._maintenance_state = maintenance_state or MaintenanceState()

        # Components (will be initialized in start())
        self._store: IKeyValueStore | None = None
        self._messages: MessageRepository | None = None
        self._users: UserRepository | None = None
        self._rooms: RoomRepository | None = None
        self._accounts: AccountRepository | None = None
        self._sweeper: Sweeper | None = None
        self._sync: SyncService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        if self._store is not None:
            return
        logger.info("Starting application")
        settings = self._settings

        # 1. Store (no dependencies)
        store = self._store_override or create_store(settings)
        await store.init()
        self._store = store
        logger.info("Store initialized (%s)", type(store).__name__)

        # 2. Repositories (depend on Store)
        self._messages = MessageRepository(
            store, self._clock, retention_ms=settings.message_retention_ms
        )
        self._users = UserRepository(
            store,
            self._clock,
            online_threshold_ms=settings.online_threshold_ms,
            inactive_user_ms=settings.inactive_user_ms,
        )
        self._rooms = RoomRepository(
            store,
            self._messages,
            self._users,
            self._clock,
            default_room_id=settings.default_room_id,
        )
        self._accounts = AccountRepository(store, self._clock)

        # 3. Sweeper (depends on message + user repositories)
        self._sweeper = Sweeper(
            self._messages,
            self._users,
            self._clock,
            interval_ms=settings.cleanup_interval_ms,
            state=self._maintenance_state,
        )

        # 4. Sync service (depends on everything above)
        self._sync = SyncService(
            self._messages, self._users, self._rooms, self._sweeper, self._clock
        )

        if await self._rooms.ensure_default_room():
            logger.info("Default room created: %s", settings.default_room_id)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._store:
            await self._store.close()
            self._store = None
            logger.info("Store closed")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> IKeyValueStore:
        """Get store instance."""
        if not self._store:
            raise RuntimeError("Application not started")
        return self._store

    @property
    def messages(self) -> MessageRepository:
        if not self._messages:
            raise RuntimeError("Application not started")
        return self._messages

    @property
    def users(self) -> UserRepository:
        if not self._users:
            raise RuntimeError("Application not started")
        return self._users

    @property
    def rooms(self) -> RoomRepository:
        if not self._rooms:
            raise RuntimeError("Application not started")
        return self._rooms

    @property
    def accounts(self) -> AccountRepository:
        if not self._accounts:
            raise RuntimeError("Application not started")
        return self._accounts

    @property
    def sweeper(self) -> Sweeper:
        if not self._sweeper:
            raise RuntimeError("Application not started")
        return self._sweeper

    @property
    def sync(self) -> SyncService:
        """Get synchronization service."""
        if not self._sync:
            raise RuntimeError("Application not started")
        return self._sync
