"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from roomchat.models import ChatMessage  # noqa: E402

T0 = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


def make_message(
    content: str = "hi",
    timestamp: int = T0,
    room_id: str = "general",
    msg_id: str | None = None,
    sender: str = "Alice",
    sender_id: str = "u1",
) -> ChatMessage:
    return ChatMessage(
        id=msg_id or f"{timestamp}-{content}",
        content=content,
        sender=sender,
        sender_id=sender_id,
        timestamp=timestamp,
        room_id=room_id,
    )


@pytest.fixture
def clock():
    """Controllable clock starting at T0."""
    return FakeClock()


@pytest_asyncio.fixture
async def store():
    """Create in-memory store for testing."""
    from roomchat.storage import SqliteStore

    st = SqliteStore(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def event_bus():
    """Create a bare EventBus."""
    from roomchat.event_bus import EventBus

    return EventBus()


@pytest.fixture
def messages(store, clock):
    from roomchat.repository import MessageRepository

    return MessageRepository(store, clock)


@pytest.fixture
def users(store, clock):
    from roomchat.repository import UserRepository

    return UserRepository(store, clock)


@pytest.fixture
def rooms(store, clock, messages, users):
    from roomchat.repository import RoomRepository

    return RoomRepository(store, messages, users, clock)


@pytest.fixture
def accounts(store, clock):
    from roomchat.repository import AccountRepository

    return AccountRepository(store, clock)


@pytest.fixture
def sweeper(messages, users, clock):
    from roomchat.sync import Sweeper

    return Sweeper(messages, users, clock)


@pytest.fixture
def sync(messages, users, rooms, sweeper, clock):
    from roomchat.sync import SyncService

    return SyncService(messages, users, rooms, sweeper, clock)


@pytest_asyncio.fixture
async def application(store, clock):
    """Started Application over the in-memory store."""
    from roomchat.app import Application
    from roomchat.config import Settings

    app = Application(Settings(), store=store, clock=clock)
    await app.start()
    yield app
    await app.stop()


@pytest_asyncio.fixture
async def api(application):
    """HTTP client wired to the FastAPI app in-process."""
    from roomchat.api import create_fastapi_app

    fastapi_app = create_fastapi_app(application)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=fastapi_app),
        base_url="http://test",
    ) as client:
        yield client
