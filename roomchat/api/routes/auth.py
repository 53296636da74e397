"""Address-bound identity routes."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ...app import Application
from ...errors import ChatError, InternalError
from ...logging_config import get_logger

logger = get_logger(__name__)

FALLBACK_IP = "127.0.0.1"


class RegisterRequest(BaseModel):
    """Request model for registering a username."""

    username: str | None = None


def client_ip(request: Request) -> str:
    """Best-effort client address: proxy headers first, then the peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return FALLBACK_IP


def create_auth_router(app: Application) -> APIRouter:
    """Create auth router."""
    router = APIRouter(prefix="/api", tags=["auth"])

    @router.get("/auth")
    async def check_auth(request: Request) -> dict:
        """Is this address already bound to an account?"""
        try:
            account = await app.accounts.lookup(client_ip(request))
        except Exception as e:
            logger.exception("Error checking auth status")
            raise InternalError("Failed to check auth status") from e

        if account is None:
            return {"loggedIn": False}
        return {"loggedIn": True, "user": account.to_public()}

    @router.post("/auth")
    async def register(request: Request, body: RegisterRequest) -> dict:
        """Register a username for this address, or log back in."""
        ip_address = client_ip(request)
        try:
            existing = await app.accounts.lookup(ip_address)
            if existing is not None:
                return {
                    "success": True,
                    "user": existing.to_public(),
                    "message": "Already logged in",
                }

            account = await app.accounts.register(body.username, ip_address)
            return {"success": True, "user": account.to_public()}
        except ChatError:
            raise
        except Exception as e:
            logger.exception("Error registering user")
            raise InternalError("Failed to register user") from e

    return router
