"""Change notifications published through the store."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class UpdateType(str, Enum):
    """Notification kinds carried on update channels."""

    NEW_MESSAGE = "new-message"
    USER_UPDATE = "user-update"
    USER_REMOVE = "user-remove"
    ROOM_CREATE = "room-create"
    ROOM_DELETE = "room-delete"


@dataclass
class UpdateEvent:
    """A `{type, data}` notification, as relayed to event-stream clients."""

    type: UpdateType
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "data": self.data}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "UpdateEvent":
        return cls(type=UpdateType(payload["type"]), data=payload.get("data") or {})
