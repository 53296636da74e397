"""Presence directory routes."""

from typing import Any

from fastapi import APIRouter, Body, Query

from ...app import Application
from ...errors import ChatError, InternalError, ValidationError
from ...logging_config import get_logger

logger = get_logger(__name__)


def create_users_router(app: Application) -> APIRouter:
    """Create users router."""
    router = APIRouter(prefix="/api", tags=["users"])

    @router.get("/users")
    async def get_users() -> dict:
        """List the directory after evicting inactive users."""
        try:
            await app.users.sweep_inactive()
            return {"users": [u.to_dict() for u in await app.users.list_all()]}
        except Exception as e:
            logger.exception("Error fetching users")
            raise InternalError("Failed to fetch users") from e

    @router.post("/users")
    async def update_user(payload: Any = Body(None)) -> dict:
        """Add or refresh a presence entry."""
        user = await app.sync.heartbeat(payload)
        return {"success": True, "user": user.to_dict()}

    @router.delete("/users")
    async def remove_user(user_id: str | None = Query(None, alias="id")) -> dict:
        """Remove a presence entry (explicit disconnect)."""
        if not user_id:
            raise ValidationError("User ID is required")
        try:
            await app.users.remove(user_id)
            return {"success": True}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error removing user %s", user_id)
            raise InternalError("Failed to remove user") from e

    return router
