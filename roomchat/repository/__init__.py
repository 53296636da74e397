"""Entity repositories over the key-value store."""

from .accounts import AccountRepository
from .messages import IMessageRepository, MessageRepository, make_message_id
from .rooms import RoomRepository, room_id_from_name
from .users import UserRepository

__all__ = [
    "AccountRepository",
    "IMessageRepository",
    "MessageRepository",
    "RoomRepository",
    "UserRepository",
    "make_message_id",
    "room_id_from_name",
]
