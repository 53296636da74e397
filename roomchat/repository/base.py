"""Shared plumbing for repositories."""

from typing import Any

from ..clock import Clock, now_ms
from ..logging_config import get_logger
from ..models import UpdateEvent, UpdateType
from ..storage import IKeyValueStore

logger = get_logger(__name__)


class Repository:
    """Base class: a store, a clock and change notification."""

    def __init__(self, store: IKeyValueStore, clock: Clock = now_ms):
        self._store = store
        self._clock = clock

    async def _notify(
        self, channel: str, event_type: UpdateType, data: dict[str, Any]
    ) -> None:
        """Publish a change. Delivery is best effort; polling catches up."""
        try:
            await self._store.publish(channel, UpdateEvent(event_type, data).to_dict())
        except Exception as e:
            logger.warning("Failed to publish %s on %s: %s", event_type.value, channel, e)
