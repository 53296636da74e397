"""Event-stream alternative to polling, with reconnect and liveness timeout."""

import asyncio
import json
from typing import Any, AsyncIterator, Awaitable, Callable

import httpx

from roomchat.logging_config import get_logger
from roomchat.models import UpdateEvent

from .client import ChatClient

logger = get_logger(__name__)

RECONNECT_DELAY_SECONDS = 5.0
LIVENESS_TIMEOUT_SECONDS = 30.0

EventHandler = Callable[[str, Any], Awaitable[None]]


async def _read_line(lines: AsyncIterator[str]) -> str | None:
    try:
        return await lines.__anext__()
    except StopAsyncIteration:
        return None


class SSEParser:
    """Incremental parser for `event:` / `data:` frames."""

    def __init__(self) -> None:
        self._event = "message"
        self._data: list[str] = []

    def feed(self, line: str) -> tuple[str, Any] | None:
        """Consume one line; returns (event, data) when a frame completes."""
        if line == "":
            if not self._data:
                self._event = "message"
                return None
            raw = "\n".join(self._data)
            event = self._event
            self._event = "message"
            self._data = []
            try:
                return event, json.loads(raw)
            except ValueError:
                return event, raw

        if line.startswith(":"):
            return None
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


class EventStreamListener:
    """Consumes /api/sse and hands every frame to a handler."""

    def __init__(
        self,
        client: ChatClient,
        handler: EventHandler,
        room_id: str | None = None,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        liveness_timeout: float = LIVENESS_TIMEOUT_SECONDS,
    ):
        self._client = client
        self._handler = handler
        self._room_id = room_id
        self._reconnect_delay = reconnect_delay
        self._liveness_timeout = liveness_timeout
        self._task: asyncio.Task | None = None
        self.status = "connecting"
        self.connections = 0

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="event-stream")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self) -> None:
        while True:
            try:
                await self._consume()
            except asyncio.TimeoutError:
                logger.warning(
                    "No event within %ss, reconnecting", self._liveness_timeout
                )
            except httpx.HTTPError as e:
                logger.warning("Event stream error: %s", e)
            self.status = "reconnecting"
            await asyncio.sleep(self._reconnect_delay)

    async def _consume(self) -> None:
        params = {"roomId": self._room_id} if self._room_id else None
        async with self._client.http.stream(
            "GET", "/api/sse", params=params, timeout=None
        ) as response:
            response.raise_for_status()
            self.connections += 1
            parser = SSEParser()
            lines = response.aiter_lines()
            while True:
                # Any frame, heartbeats included, proves liveness
                line = await self._next_line(lines)
                if line is None:
                    return

                frame = parser.feed(line.rstrip("\r"))
                if frame is None:
                    continue
                event, data = frame
                if event == "update":
                    try:
                        data = UpdateEvent.from_dict(data)
                    except (KeyError, TypeError, ValueError) as e:
                        logger.warning("Dropping malformed update frame: %s", e)
                        continue
                if event == "connected":
                    self.status = "connected"
                try:
                    await self._handler(event, data)
                except Exception as e:
                    logger.error("Error in event handler for %s: %s", event, e)

    async def _next_line(self, lines: AsyncIterator[str]) -> str | None:
        """Next line, or None at end of stream.

        Raises asyncio.TimeoutError when nothing arrives within the liveness
        window. Waits with asyncio.wait so stop() always cancels.
        """
        reader = asyncio.ensure_future(_read_line(lines))
        try:
            done, _ = await asyncio.wait({reader}, timeout=self._liveness_timeout)
        except BaseException:
            reader.cancel()
            raise
        if not done:
            reader.cancel()
            await asyncio.wait({reader})
            raise asyncio.TimeoutError
        return reader.result()
