"""Chatroom data model."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Chatroom:
    """A named message channel with its own membership."""

    id: str
    name: str
    description: str = ""
    created_by: str = "anonymous"
    created_at: int = 0
    is_private: bool = False
    members: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "isPrivate": self.is_private,
            "members": list(self.members),
        }

    def to_record(self) -> dict[str, Any]:
        """Catalog value; members live in their own set."""
        record = self.to_dict()
        del record["members"]
        return record

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], members: list[str] | None = None
    ) -> "Chatroom":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description") or "",
            created_by=data.get("createdBy") or "anonymous",
            created_at=int(data.get("createdAt") or 0),
            is_private=bool(data.get("isPrivate", False)),
            members=list(members if members is not None else data.get("members", [])),
        )
