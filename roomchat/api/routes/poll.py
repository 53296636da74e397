"""Combined synchronization routes used by polling clients."""

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ...app import Application
from ...logging_config import get_logger

logger = get_logger(__name__)


class PollWriteRequest(BaseModel):
    """Tagged write: `type` is "message" or "user"."""

    type: str | None = None
    data: Any = None


def parse_since(value: str | None) -> int:
    """Parse the `since` cursor; anything unparseable means "from the start"."""
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def create_poll_router(app: Application) -> APIRouter:
    """Create poll router."""
    router = APIRouter(prefix="/api", tags=["poll"])

    @router.get("/poll")
    async def poll(
        since: str | None = Query(None, description="Last server timestamp seen (ms)"),
        room_id: str | None = Query(None, alias="roomId"),
    ) -> dict:
        """Snapshot of a room plus presence; always answers 200."""
        try:
            snapshot = await app.sync.poll(parse_since(since), room_id)
            return snapshot.to_dict()
        except Exception:
            logger.exception("Error in polling endpoint")
            return {
                "error": "Failed to fetch updates",
                "messages": [],
                "newMessages": [],
                "usersInRoom": [],
                "onlineUsers": [],
                "rooms": [],
                "timestamp": app.sync.now(),
            }

    @router.post("/poll")
    async def poll_write(request: PollWriteRequest) -> dict:
        """Send a message or a presence heartbeat."""
        return await app.sync.submit(request.type, request.data)

    return router
