"""Main application entry point.

Runs FastAPI with the NiceGUI chat page mounted on the same server.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run FastAPI with NiceGUI mounted, both on one port."""
    import uvicorn
    from nicegui import ui

    from delfin_chat.api.app import create_app
    from delfin_chat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="Delfin Chat",
        favicon="🐬",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "delfin-chat-secret"),
    )

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Chat UI available at http://localhost:{port}/")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
