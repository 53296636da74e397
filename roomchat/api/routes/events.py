"""Server-sent event stream relaying store notifications."""

import json
from typing import Any, AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse

from ...app import Application
from ...clock import Clock, now_ms
from ...logging_config import get_logger
from ...repository import keys
from ...storage import IKeyValueStore

logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: str, data: Any) -> str:
    """One SSE frame."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def sse_events(
    store: IKeyValueStore,
    channels: list[str],
    heartbeat_seconds: float,
    clock: Clock = now_ms,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncIterator[str]:
    """Yield `connected`, then `update` per notification and `heartbeat` when idle."""
    async with store.subscribe(*channels) as subscription:
        yield format_sse("connected", {})
        while True:
            if is_disconnected is not None and await is_disconnected():
                logger.debug("Event stream client disconnected")
                return

            event = await subscription.get(timeout=heartbeat_seconds)
            if event is None:
                yield format_sse("heartbeat", {"timestamp": clock()})
            else:
                yield format_sse("update", event)


def create_events_router(app: Application) -> APIRouter:
    """Create event stream router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.get("/sse")
    async def stream(
        request: Request, room_id: str | None = Query(None, alias="roomId")
    ) -> StreamingResponse:
        """Global updates, plus one room's messages when `roomId` is given."""
        channels = [keys.UPDATES_CHANNEL]
        if room_id:
            channels.append(keys.room_channel(room_id))

        return StreamingResponse(
            sse_events(
                app.store,
                channels,
                app.settings.sse_heartbeat_seconds,
                app.sync.now,
                request.is_disconnected,
            ),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return router
