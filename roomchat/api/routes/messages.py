"""Message routes."""

from typing import Any

from fastapi import APIRouter, Body, Query

from ...app import Application
from ...errors import ChatError, InternalError
from ...logging_config import get_logger

logger = get_logger(__name__)


def create_messages_router(app: Application) -> APIRouter:
    """Create messages router."""
    router = APIRouter(prefix="/api", tags=["messages"])

    @router.get("/messages")
    async def get_messages(
        room_id: str | None = Query(None, alias="roomId"),
        since: int | None = Query(None, description="Only messages after this ms timestamp"),
    ) -> dict:
        """List retained messages for a room."""
        try:
            messages = await app.messages.list_since(
                room_id or app.rooms.default_room_id, since
            )
            return {"messages": [m.to_dict() for m in messages]}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error fetching messages")
            raise InternalError("Failed to fetch messages") from e

    @router.post("/messages")
    async def send_message(payload: Any = Body(None)) -> dict:
        """Append a message to the room named in the payload."""
        message = await app.sync.accept_message(payload, require_room=True)
        return {"success": True, "message": message.to_dict()}

    return router
