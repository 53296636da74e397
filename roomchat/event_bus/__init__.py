"""EventBus module."""

from .event_bus import ChannelHandler, EventBus, IEventBus

__all__ = ["ChannelHandler", "EventBus", "IEventBus"]
