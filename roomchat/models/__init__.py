"""Core data models for roomchat."""

from .events import UpdateEvent, UpdateType
from .messages import ChatMessage, FileAttachment, MessageKind
from .presence import ChatUser, UserAccount
from .rooms import Chatroom

__all__ = [
    # Messages
    "ChatMessage",
    "FileAttachment",
    "MessageKind",
    # Presence
    "ChatUser",
    "UserAccount",
    # Rooms
    "Chatroom",
    # Notifications
    "UpdateEvent",
    "UpdateType",
]
