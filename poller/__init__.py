"""Client-side synchronization loop for roomchat."""

from .client import ChatClient, ChatClientError
from .event_stream import EventStreamListener, SSEParser
from .scheduler import IScheduledTask, ScheduledTask
from .sync_loop import SyncLoop, SyncState

__all__ = [
    "ChatClient",
    "ChatClientError",
    "EventStreamListener",
    "IScheduledTask",
    "SSEParser",
    "ScheduledTask",
    "SyncLoop",
    "SyncState",
]
