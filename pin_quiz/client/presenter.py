"""Presentation values derived purely from the latest polled snapshot."""

from __future__ import annotations

from collections.abc import Sequence
import math

from pin_quiz.constants.quiz_constants import PODIUM_SIZE
from pin_quiz.server.schemas import PlayerOut, QuestionOut, QuizWithQuestionsOut, SessionOut


def current_question(session: SessionOut, quiz: QuizWithQuestionsOut) -> QuestionOut | None:
    index = session.currentQuestionIndex
    if 0 <= index < len(quiz.questions):
        return quiz.questions[index]
    return None


def progress_percent(session: SessionOut, quiz: QuizWithQuestionsOut) -> float:
    """Percentage of the quiz reached, counting the current question as reached."""
    if not quiz.questions:
        return 0.0
    reached = min(session.currentQuestionIndex + 1, len(quiz.questions))
    return reached / len(quiz.questions) * 100


def podium(players: Sequence[PlayerOut], size: int = PODIUM_SIZE) -> list[PlayerOut]:
    # Players arrive sorted by score from the server.
    return list(players[:size])


def winner(players: Sequence[PlayerOut]) -> PlayerOut | None:
    return players[0] if players else None


def average_score(players: Sequence[PlayerOut]) -> int:
    if not players:
        return 0
    # Halves round up.
    return math.floor(sum(p.score for p in players) / len(players) + 0.5)


def resolve_current_player(players: Sequence[PlayerOut], player_id: str | None) -> PlayerOut | None:
    """Find the player identified by the id issued at join time.

    Display names are never used for the lookup.
    """
    if player_id is None:
        return None
    return next((p for p in players if p.id == player_id), None)
