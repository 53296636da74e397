"""Room catalog and membership routes."""

import re

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ...app import Application
from ...errors import AuthorizationError, ChatError, InternalError, ValidationError
from ...logging_config import get_logger
from ...models import Chatroom
from ...repository import room_id_from_name

logger = get_logger(__name__)

ROOM_NAME_MIN_LENGTH = 3
ROOM_NAME_MAX_LENGTH = 30
_ROOM_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")


class CreateRoomRequest(BaseModel):
    """Request model for creating a room."""

    name: str | None = None
    id: str | None = None
    description: str | None = None
    isPrivate: bool = False
    createdBy: str = "anonymous"


class MembershipRequest(BaseModel):
    """Request model for joining or leaving a room."""

    roomId: str | None = None
    action: str | None = None
    userId: str | None = None


def create_rooms_router(app: Application) -> APIRouter:
    """Create rooms router."""
    router = APIRouter(prefix="/api", tags=["rooms"])

    @router.get("/rooms")
    async def get_rooms(room_id: str | None = Query(None, alias="id")) -> dict:
        """List all rooms, or fetch one by id."""
        try:
            if room_id:
                room = await app.rooms.require(room_id)
                return {"room": room.to_dict()}
            return {"rooms": [r.to_dict() for r in await app.rooms.list_all()]}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error fetching rooms")
            raise InternalError("Failed to fetch rooms") from e

    @router.post("/rooms")
    async def create_room(request: CreateRoomRequest) -> dict:
        """Create a room; the id is derived from the name unless given."""
        name = (request.name or "").strip()
        if not ROOM_NAME_MIN_LENGTH <= len(name) <= ROOM_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Room name must be between {ROOM_NAME_MIN_LENGTH} "
                f"and {ROOM_NAME_MAX_LENGTH} characters"
            )

        room_id = request.id or room_id_from_name(name)
        if not _ROOM_ID_PATTERN.match(room_id):
            raise ValidationError("Room ID may only contain a-z, 0-9 and '-'")

        try:
            room = await app.rooms.create(
                Chatroom(
                    id=room_id,
                    name=name,
                    description=request.description or "",
                    created_by=request.createdBy or "anonymous",
                    is_private=request.isPrivate,
                )
            )
            return {"success": True, "room": room.to_dict()}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error creating room")
            raise InternalError("Failed to create room") from e

    @router.put("/rooms")
    async def update_membership(request: MembershipRequest) -> dict:
        """Join or leave a room."""
        if not request.roomId:
            raise ValidationError("Room ID is required")
        if not request.userId:
            raise ValidationError("User ID is required")
        if request.action not in ("join", "leave"):
            raise ValidationError("Invalid action")

        try:
            if request.action == "join":
                await app.rooms.join(request.roomId, request.userId)
                return {"success": True, "message": "Joined room successfully"}
            await app.rooms.leave(request.roomId, request.userId)
            return {"success": True, "message": "Left room successfully"}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error updating room membership")
            raise InternalError("Failed to update room membership") from e

    @router.delete("/rooms")
    async def delete_room(
        room_id: str | None = Query(None, alias="id"),
        user_id: str | None = Query(None, alias="userId"),
    ) -> dict:
        """Delete a room. Only its creator may do so."""
        if not room_id:
            raise ValidationError("Room ID is required")
        if not user_id:
            raise ValidationError("User ID is required")

        try:
            room = await app.rooms.require(room_id)
            if room.created_by != user_id:
                raise AuthorizationError("Only the room creator can delete the room")
            await app.rooms.delete(room_id)
            return {"success": True, "message": "Room deleted successfully"}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error deleting room")
            raise InternalError("Failed to delete room") from e

    return router
