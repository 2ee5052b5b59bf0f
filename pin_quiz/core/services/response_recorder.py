"""Service for recording player answers and maintaining scores."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math

from pin_quiz.constants.quiz_constants import POINTS_PER_CORRECT_ANSWER
from pin_quiz.core.errors import AnswerRejectedError, EntityNotFoundError
from pin_quiz.core.models import Player, PlayerResponse, SessionStatus
from pin_quiz.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnswerOutcome:
    """Result of a server-scored answer: the stored response and the updated player."""

    response: PlayerResponse
    player: Player


def compute_response_time_ms(time_per_question: int, time_remaining: float) -> int:
    """Elapsed milliseconds derived from the client-reported countdown.

    The remaining time comes from the player's device, so a client can report
    any value; the result is only clamped to the question window.
    """
    if not math.isfinite(time_remaining):
        raise ValueError("Remaining time must be a finite number of seconds.")
    limit_ms = time_per_question * 1000
    elapsed = limit_ms - round(time_remaining * 1000)
    return max(0, min(limit_ms, elapsed))


class ResponseRecorder:
    """Appends player responses and applies the flat per-answer score."""

    def __init__(self, store: EntityStore, points_per_correct: int = POINTS_PER_CORRECT_ANSWER) -> None:
        self._store = store
        self._points = points_per_correct

    def record_response(
        self,
        player_id: str,
        question_id: str,
        is_correct: bool,
        selected_answer: str | None = None,
        response_time: int | None = None,
    ) -> PlayerResponse:
        """Store a client-scored response as-is. Duplicates are kept."""
        return self._store.create_response(
            player_id=player_id,
            question_id=question_id,
            is_correct=is_correct,
            selected_answer=selected_answer,
            response_time=response_time,
        )

    def update_score(self, player_id: str, score: int) -> Player | None:
        return self._store.update_player_score(player_id, score)

    def has_answered(self, player_id: str, question_id: str) -> bool:
        return any(r.question_id == question_id for r in self._store.get_player_responses(player_id))

    def submit_answer(
        self,
        player_id: str,
        question_id: str,
        selected_answer: str | None,
        time_remaining: float,
    ) -> AnswerOutcome:
        """Score an answer to the session's current question and award points.

        ``selected_answer`` of ``None`` records a timed-out, incorrect answer.
        The caller must hold the manager lock so the score read and write
        happen as one step.
        """
        player = self._store.get_player(player_id)
        if player is None:
            raise EntityNotFoundError("Player", player_id)
        question = self._store.get_question(question_id)
        if question is None:
            raise EntityNotFoundError("Question", question_id)
        session = self._store.get_session(player.session_id)
        if session is None:
            raise EntityNotFoundError("Session", player.session_id)
        quiz = self._store.get_quiz(session.quiz_id)
        if quiz is None:
            raise EntityNotFoundError("Quiz", session.quiz_id)

        if session.status is not SessionStatus.ACTIVE:
            raise AnswerRejectedError("Session is not accepting answers.")
        questions = self._store.get_questions(quiz.id)
        index = session.current_question_index
        if not 0 <= index < len(questions) or questions[index].id != question.id:
            raise AnswerRejectedError("Question is no longer active.")
        if self.has_answered(player.id, question.id):
            logger.warning("Player %s already answered question %s", player.id, question.id)
            raise AnswerRejectedError("Player has already answered this question.")
        if selected_answer is not None and selected_answer not in question.options():
            raise ValueError(f"Option '{selected_answer}' is not offered by this question.")

        is_correct = selected_answer is not None and selected_answer == question.correct_answer
        response = self._store.create_response(
            player_id=player.id,
            question_id=question.id,
            is_correct=is_correct,
            selected_answer=selected_answer,
            response_time=compute_response_time_ms(quiz.time_per_question, time_remaining),
        )
        if is_correct:
            player = self._store.update_player_score(player.id, player.score + self._points) or player
        logger.info(
            "Player %s answered %s on question %s (%s)",
            player.id,
            selected_answer,
            question.id,
            "correct" if is_correct else "incorrect",
        )
        return AnswerOutcome(response=response, player=player)
