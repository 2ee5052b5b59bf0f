"""PinQuiz: a PIN-based multiplayer quiz server."""

from pin_quiz.constants.about import APP_VERSION

__version__ = APP_VERSION
