"""Message-related data models."""

from dataclasses import dataclass
from typing import Any, Literal

MessageKind = Literal["message", "system"]


@dataclass
class FileAttachment:
    """A file shared in a message (uploaded elsewhere, referenced by URL)."""

    name: str
    type: str  # mime type
    url: str
    size: int  # bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "url": self.url,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileAttachment":
        return cls(
            name=str(data.get("name", "")),
            type=str(data.get("type", "")),
            url=str(data.get("url", "")),
            size=int(data.get("size") or 0),
        )


@dataclass
class ChatMessage:
    """A single message in a room. Never mutated once appended."""

    id: str
    sender: str
    sender_id: str
    timestamp: int  # ms since epoch
    room_id: str
    content: str = ""
    type: MessageKind = "message"
    file: FileAttachment | None = None

    def has_body(self) -> bool:
        """True when the message carries text or a file."""
        return bool(self.content) or self.file is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "sender": self.sender,
            "senderId": self.sender_id,
            "timestamp": self.timestamp,
            "type": self.type,
            "roomId": self.room_id,
        }
        if self.file is not None:
            data["file"] = self.file.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        file_data = data.get("file")
        return cls(
            id=str(data["id"]),
            content=data.get("content") or "",
            sender=data.get("sender", ""),
            sender_id=data.get("senderId", ""),
            timestamp=int(data.get("timestamp") or 0),
            type=data.get("type") or "message",
            room_id=data.get("roomId", ""),
            file=FileAttachment.from_dict(file_data) if file_data else None,
        )
