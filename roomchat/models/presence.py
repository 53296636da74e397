"""Presence and identity models."""

from dataclasses import dataclass
from typing import Any


@dataclass
class ChatUser:
    """An entry in the presence directory."""

    id: str
    name: str
    last_seen: int  # ms since epoch
    current_room_id: str | None = None

    def is_online(self, now: int, threshold_ms: int) -> bool:
        """Derived presence: seen within the threshold."""
        return now - self.last_seen < threshold_ms

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "lastSeen": self.last_seen,
        }
        if self.current_room_id:
            data["currentRoomId"] = self.current_room_id
        return data

    def to_record(self) -> dict[str, Any]:
        """Directory value; the id is the hash field."""
        record = self.to_dict()
        del record["id"]
        return record

    @classmethod
    def from_dict(cls, data: dict[str, Any], user_id: str | None = None) -> "ChatUser":
        return cls(
            id=str(user_id if user_id is not None else data["id"]),
            name=data.get("name", ""),
            last_seen=int(data.get("lastSeen") or 0),
            current_room_id=data.get("currentRoomId") or None,
        )


@dataclass
class UserAccount:
    """Binding of a network address to a stable user identity."""

    id: str
    username: str
    ip_address: str
    created_at: int
    last_login: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "ipAddress": self.ip_address,
            "createdAt": self.created_at,
            "lastLogin": self.last_login,
        }

    def to_public(self) -> dict[str, Any]:
        """Shape returned to clients."""
        return {"id": self.id, "username": self.username}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserAccount":
        return cls(
            id=str(data["id"]),
            username=data["username"],
            ip_address=data.get("ipAddress", ""),
            created_at=int(data.get("createdAt") or 0),
            last_login=int(data.get("lastLogin") or 0),
        )
