"""Main entry point for the roomchat server."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from roomchat.api import create_fastapi_app
from roomchat.app import Application
from roomchat.config import Settings
from roomchat.logging_config import setup_logging


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent
    load_dotenv(project_root / ".env")

    settings = Settings.from_env()
    setup_logging(settings.log_level)

    app = create_fastapi_app(Application(settings))

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
