"""roomchat core module."""

from .app import Application, IApplication
from .config import Settings
from .errors import (
    AuthorizationError,
    ChatError,
    DuplicateError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from .event_bus import EventBus, IEventBus
from .models import (
    ChatMessage,
    Chatroom,
    ChatUser,
    FileAttachment,
    UpdateEvent,
    UpdateType,
    UserAccount,
)
from .repository import (
    AccountRepository,
    MessageRepository,
    RoomRepository,
    UserRepository,
)
from .storage import IKeyValueStore, RedisStore, SqliteStore, create_store
from .sync import MaintenanceState, PollSnapshot, Sweeper, SweepReport, SyncService

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Errors
    "ChatError",
    "ValidationError",
    "NotFoundError",
    "DuplicateError",
    "AuthorizationError",
    "InternalError",
    # Models
    "ChatMessage",
    "FileAttachment",
    "ChatUser",
    "UserAccount",
    "Chatroom",
    "UpdateEvent",
    "UpdateType",
    # Components
    "IEventBus",
    "EventBus",
    "IKeyValueStore",
    "SqliteStore",
    "RedisStore",
    "create_store",
    "MessageRepository",
    "UserRepository",
    "RoomRepository",
    "AccountRepository",
    "MaintenanceState",
    "Sweeper",
    "SweepReport",
    "PollSnapshot",
    "SyncService",
]
