"""In-memory storage for quizzes, questions, sessions, players and responses."""

from __future__ import annotations

import dataclasses
import random
from typing import Any
from uuid import uuid4

from pin_quiz.core.models import (
    Player,
    PlayerResponse,
    Question,
    Quiz,
    QuizSession,
    QuizWithQuestions,
    SessionStatus,
)
from pin_quiz.core.pin_generator import generate_unique_pin


def _new_id() -> str:
    return uuid4().hex


class EntityStore:
    """Volatile per-kind record maps with linear-scan lookups.

    Records are frozen dataclasses. Updates build a merged copy and store it
    under the same key, which keeps the key's insertion position. Lookups that
    miss return ``None``; nothing in here raises for an unknown id and nothing
    validates its input. Callers are expected to serialise access.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._quizzes: dict[str, Quiz] = {}
        self._questions: dict[str, Question] = {}
        self._sessions: dict[str, QuizSession] = {}
        self._players: dict[str, Player] = {}
        self._responses: dict[str, PlayerResponse] = {}

    # --- Quizzes ---

    def create_quiz(
        self,
        title: str,
        time_per_question: int,
        description: str | None = None,
        created_by: str | None = None,
    ) -> Quiz:
        quiz = Quiz(
            id=_new_id(),
            title=title,
            time_per_question=time_per_question,
            description=description,
            created_by=created_by,
        )
        self._quizzes[quiz.id] = quiz
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        return self._quizzes.get(quiz_id)

    def list_quizzes(self) -> list[Quiz]:
        return list(self._quizzes.values())

    def get_quiz_with_questions(self, quiz_id: str) -> QuizWithQuestions | None:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            return None
        return QuizWithQuestions(quiz=quiz, questions=self.get_questions(quiz_id))

    # --- Questions ---

    def create_question(
        self,
        quiz_id: str,
        question_text: str,
        option_a: str,
        option_b: str,
        correct_answer: str,
        order: int,
        option_c: str | None = None,
        option_d: str | None = None,
    ) -> Question:
        question = Question(
            id=_new_id(),
            quiz_id=quiz_id,
            question_text=question_text,
            option_a=option_a,
            option_b=option_b,
            option_c=option_c,
            option_d=option_d,
            correct_answer=correct_answer,
            order=order,
        )
        self._questions[question.id] = question
        return question

    def get_question(self, question_id: str) -> Question | None:
        return self._questions.get(question_id)

    def get_questions(self, quiz_id: str) -> list[Question]:
        """Questions of a quiz ascending by ``order``; equal orders keep insertion order."""
        return sorted(
            (q for q in self._questions.values() if q.quiz_id == quiz_id),
            key=lambda q: q.order,
        )

    # --- Sessions ---

    def create_session(self, quiz_id: str, host_id: str | None = None) -> QuizSession:
        taken = {session.pin for session in self._sessions.values()}
        session = QuizSession(
            id=_new_id(),
            quiz_id=quiz_id,
            pin=generate_unique_pin(self._rng, taken),
            status=SessionStatus.WAITING,
            current_question_index=0,
            host_id=host_id,
        )
        self._sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> QuizSession | None:
        return self._sessions.get(session_id)

    def get_session_by_pin(self, pin: str) -> QuizSession | None:
        return next((s for s in self._sessions.values() if s.pin == pin), None)

    def update_session(self, session_id: str, **changes: Any) -> QuizSession | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        updated = dataclasses.replace(session, **changes)
        self._sessions[session_id] = updated
        return updated

    # --- Players ---

    def create_player(self, session_id: str, name: str) -> Player:
        player = Player(id=_new_id(), session_id=session_id, name=name, score=0)
        self._players[player.id] = player
        return player

    def get_player(self, player_id: str) -> Player | None:
        return self._players.get(player_id)

    def get_session_players(self, session_id: str) -> list[Player]:
        """Players of a session by score descending; ties keep join order."""
        return sorted(
            (p for p in self._players.values() if p.session_id == session_id),
            key=lambda p: -p.score,
        )

    def update_player_score(self, player_id: str, score: int) -> Player | None:
        player = self._players.get(player_id)
        if player is None:
            return None
        updated = dataclasses.replace(player, score=score)
        self._players[player_id] = updated
        return updated

    # --- Responses ---

    def create_response(
        self,
        player_id: str,
        question_id: str,
        is_correct: bool,
        selected_answer: str | None = None,
        response_time: int | None = None,
    ) -> PlayerResponse:
        response = PlayerResponse(
            id=_new_id(),
            player_id=player_id,
            question_id=question_id,
            is_correct=is_correct,
            selected_answer=selected_answer,
            response_time=response_time,
        )
        self._responses[response.id] = response
        return response

    def get_player_responses(self, player_id: str) -> list[PlayerResponse]:
        return [r for r in self._responses.values() if r.player_id == player_id]

    def get_question_responses(self, question_id: str) -> list[PlayerResponse]:
        return [r for r in self._responses.values() if r.question_id == question_id]
