"""EventBus implementation for in-process pub/sub."""

import asyncio
from typing import Any, Awaitable, Callable, Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)


ChannelHandler = Callable[[dict[str, Any]], Awaitable[None]]


class IEventBus(Protocol):
    """In-memory pub/sub keyed by channel name."""

    def subscribe(self, channel: str, handler: ChannelHandler) -> None:
        """Subscribe a handler to a channel."""
        ...

    def unsubscribe(self, channel: str, handler: ChannelHandler) -> None:
        """Remove a handler from a channel."""
        ...

    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        """Deliver an event to the channel's subscribers."""
        ...


class EventBus:
    """In-memory pub/sub event bus."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[ChannelHandler]] = {}

    def subscribe(self, channel: str, handler: ChannelHandler) -> None:
        """Subscribe a handler to a channel."""
        self._subscribers.setdefault(channel, []).append(handler)

    def unsubscribe(self, channel: str, handler: ChannelHandler) -> None:
        """Remove a handler from a channel. Unknown handlers are ignored."""
        handlers = self._subscribers.get(channel)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._subscribers[channel]

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, []))

    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        """Deliver an event to the channel's subscribers.

        Returns the number of handlers called, like Redis PUBLISH.
        """
        handlers = list(self._subscribers.get(channel, []))
        if not handlers:
            return 0

        results = await asyncio.gather(
            *[handler(event) for handler in handlers],
            return_exceptions=True,
        )

        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in handler %s on %s: %s", i, channel, result)

        return len(handlers)
