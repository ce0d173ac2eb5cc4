"""Application entry point running the reference trivia session service."""

from __future__ import annotations

from trivia_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_app.core.services.question_bank import QuestionBank
from trivia_app.core.services.session_backend import InMemorySessionService
from trivia_app.server.api_server import start_api_server
from trivia_app.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, load the question bank and serve the session API."""
    logger = configure_logging()
    logger.info("Starting trivia session service…")

    question_bank = QuestionBank.from_file()
    logger.info(
        "Loaded %d question(s) in categories: %s",
        question_bank.get_question_count(),
        ", ".join(question_bank.get_categories()),
    )
    service = InMemorySessionService(question_bank)
    server_thread = start_api_server(service=service, host=DEFAULT_HOST, port=DEFAULT_PORT)
    logger.info("Session API listening on http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)
    server_thread.join()


if __name__ == "__main__":
    main()
