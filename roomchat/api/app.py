"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..app import Application
from ..errors import ChatError
from ..logging_config import get_logger
from .routes import auth, events, messages, poll, rooms, users

logger = get_logger(__name__)


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="roomchat API",
        description="Multi-room polling chat with presence",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=application.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @fastapi_app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse({"error": detail}, status_code=400)

    @fastapi_app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    @fastapi_app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    fastapi_app.include_router(rooms.create_rooms_router(application))
    fastapi_app.include_router(messages.create_messages_router(application))
    fastapi_app.include_router(users.create_users_router(application))
    fastapi_app.include_router(poll.create_poll_router(application))
    fastapi_app.include_router(auth.create_auth_router(application))
    fastapi_app.include_router(events.create_events_router(application))

    return fastapi_app
