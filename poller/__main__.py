"""Console client: register, join a room and print what arrives."""

import asyncio
import os
from pathlib import Path

from dotenv import load_dotenv

from roomchat.logging_config import get_logger, setup_logging

from .client import ChatClient
from .sync_loop import SyncLoop, SyncState

logger = get_logger(__name__)


async def run(api_url: str, username: str, room_id: str) -> None:
    """Poll until interrupted, logging each new message."""
    client = ChatClient(api_url)
    try:
        account = await client.check_auth() or await client.register(username)
        logger.info("Signed in as %s (%s)", account["username"], account["id"])

        def show(state: SyncState) -> None:
            for message in state.new_messages:
                logger.info("[%s] %s: %s", room_id, message["sender"], message["content"])

        loop = SyncLoop(client, account["id"], account["username"], room_id, on_update=show)
        await loop.start()
        try:
            await asyncio.Event().wait()
        finally:
            await loop.stop()
    finally:
        await client.aclose()


def main() -> None:
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging(console_only=True)

    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    api_url = os.getenv("CHAT_API_URL", f"http://{api_host}:{api_port}")

    try:
        asyncio.run(
            run(
                api_url,
                os.getenv("CHAT_USERNAME", "console"),
                os.getenv("CHAT_ROOM", "general"),
            )
        )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
