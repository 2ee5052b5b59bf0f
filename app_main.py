"""Application entry point for the PinQuiz server."""

from __future__ import annotations

from pin_quiz.constants.about import APP_NAME, APP_VERSION
from pin_quiz.core.quiz_importer import QuizImportError, load_quiz_from_file
from pin_quiz.core.quiz_manager import QuizManager
from pin_quiz.server.api_server import run_api_server
from pin_quiz.utils.logging_config import configure_logging
from pin_quiz.utils.settings import Settings


def build_quiz_manager(settings: Settings) -> QuizManager:
    """Create the manager, preloading the seed quiz when one is configured."""
    manager = QuizManager()
    if settings.seed_quiz_path is not None:
        imported = load_quiz_from_file(settings.seed_quiz_path)
        manager.import_quiz(imported)
    return manager


def main() -> None:
    """Initialize logging, build the quiz manager and serve the API."""
    settings = Settings()
    logger = configure_logging(settings.log_level)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    try:
        quiz_manager = build_quiz_manager(settings)
    except (OSError, QuizImportError) as exc:
        logger.error("Could not load seed quiz %s: %s", settings.seed_quiz_path, exc)
        raise SystemExit(1) from exc

    run_api_server(
        quiz_manager=quiz_manager,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        cors_origins=settings.cors_origins,
    )


if __name__ == "__main__":
    main()
