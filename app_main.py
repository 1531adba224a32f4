"""Application entry point for QuizDesk."""

from __future__ import annotations

from quizdesk.constants.about import APP_NAME, APP_VERSION
from quizdesk.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizdesk.core.classroom_manager import ClassroomManager
from quizdesk.server.api_server import run_api_server
from quizdesk.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, load the sample classroom and serve the dashboards."""
    logger = configure_logging()
    logger.info("Starting %s %s…", APP_NAME, APP_VERSION)

    classroom = ClassroomManager.with_sample_data()
    logger.info("Dashboards available at http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)
    run_api_server(classroom, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
