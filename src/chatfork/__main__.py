"""Entry point for the Chatfork TUI application."""

import logging

from chatfork.app import ChatforkApp
from chatfork.config import settings


def main() -> None:
    """Run the Chatfork TUI application."""
    logging.basicConfig(
        filename=settings.log_file,
        level=settings.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    app = ChatforkApp()
    app.run()


if __name__ == "__main__":
    main()
