"""Business logic shared by the HTTP API, the start-up loader and the tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
import logging
from threading import Lock
from typing import Any

from pin_quiz.constants.quiz_constants import DEFAULT_TIME_PER_QUESTION_SECONDS
from pin_quiz.core.errors import JoinRejectedError
from pin_quiz.core.models import (
    Player,
    PlayerResponse,
    Question,
    QuestionDraft,
    Quiz,
    QuizSession,
    QuizWithQuestions,
    SessionStatus,
    utc_now,
)
from pin_quiz.core.quiz_exporter import serialize_quiz
from pin_quiz.core.quiz_importer import ImportedQuiz, parse_quiz_text
from pin_quiz.core.services.entity_store import EntityStore
from pin_quiz.core.services.response_recorder import AnswerOutcome, ResponseRecorder
from pin_quiz.core.services.session_lifecycle import SessionLifecycle

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade for quiz services: EntityStore, SessionLifecycle and ResponseRecorder.

    Every call takes the same lock, so a multi-step operation such as scoring
    an answer is applied as a single write.
    """

    def __init__(
        self,
        store: EntityStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._lock = Lock()

        # Services
        self._store = store or EntityStore()
        self._lifecycle = SessionLifecycle(self._store, clock=clock)
        self._recorder = ResponseRecorder(self._store)

    # --- Quizzes ---

    def list_quizzes(self) -> list[Quiz]:
        with self._lock:
            return self._store.list_quizzes()

    def get_quiz_with_questions(self, quiz_id: str) -> QuizWithQuestions | None:
        with self._lock:
            return self._store.get_quiz_with_questions(quiz_id)

    def create_quiz(
        self,
        title: str,
        time_per_question: int = DEFAULT_TIME_PER_QUESTION_SECONDS,
        description: str | None = None,
        created_by: str | None = None,
        questions: Iterable[QuestionDraft] = (),
    ) -> QuizWithQuestions:
        """Create a quiz and its questions in one step."""
        title = title.strip()
        if not title:
            raise ValueError("Quiz title must not be empty.")
        drafts = [self._prepare_draft(draft) for draft in questions]
        with self._lock:
            quiz = self._store.create_quiz(
                title=title,
                time_per_question=time_per_question,
                description=description,
                created_by=created_by,
            )
            for draft in drafts:
                self._insert_question(quiz.id, draft)
            logger.info("Created quiz %s '%s' with %d question(s)", quiz.id, quiz.title, len(drafts))
            return self._store.get_quiz_with_questions(quiz.id)

    def add_question(self, quiz_id: str, draft: QuestionDraft) -> Question | None:
        prepared = self._prepare_draft(draft)
        with self._lock:
            if self._store.get_quiz(quiz_id) is None:
                return None
            return self._insert_question(quiz_id, prepared)

    def import_quiz(self, imported: ImportedQuiz, created_by: str | None = None) -> QuizWithQuestions:
        return self.create_quiz(
            title=imported.title,
            time_per_question=imported.time_per_question,
            description=imported.description,
            created_by=created_by,
            questions=imported.questions,
        )

    def import_quiz_text(self, text: str, created_by: str | None = None) -> QuizWithQuestions:
        return self.import_quiz(parse_quiz_text(text), created_by=created_by)

    def export_quiz_text(self, quiz_id: str) -> str | None:
        with self._lock:
            quiz = self._store.get_quiz_with_questions(quiz_id)
        if quiz is None:
            return None
        return serialize_quiz(quiz)

    # --- Sessions ---

    def create_session(self, quiz_id: str, host_id: str | None = None) -> QuizSession | None:
        with self._lock:
            if self._store.get_quiz(quiz_id) is None:
                return None
            session = self._store.create_session(quiz_id=quiz_id, host_id=host_id)
            logger.info("Created session %s for quiz %s with pin %s", session.id, quiz_id, session.pin)
            return session

    def get_session(self, session_id: str) -> QuizSession | None:
        with self._lock:
            return self._store.get_session(session_id)

    def get_session_by_pin(self, pin: str) -> QuizSession | None:
        with self._lock:
            return self._store.get_session_by_pin(pin)

    def update_session(self, session_id: str, changes: Mapping[str, Any]) -> QuizSession | None:
        with self._lock:
            return self._lifecycle.apply_update(session_id, changes)

    def start_session(self, session_id: str) -> QuizSession | None:
        with self._lock:
            return self._lifecycle.start(session_id)

    def advance_session(self, session_id: str, from_index: int | None = None) -> QuizSession | None:
        with self._lock:
            return self._lifecycle.advance(session_id, from_index=from_index)

    def complete_session(self, session_id: str) -> QuizSession | None:
        with self._lock:
            return self._lifecycle.complete(session_id)

    # --- Players ---

    def join_session(self, session_id: str, name: str) -> Player | None:
        """Add a player to a waiting session. The returned id identifies the player from now on."""
        name = name.strip()
        if not name:
            raise ValueError("Player name must not be empty.")
        with self._lock:
            session = self._store.get_session(session_id)
            if session is None:
                return None
            if session.status is not SessionStatus.WAITING:
                raise JoinRejectedError("This quiz session has already started or ended.")
            player = self._store.create_player(session_id=session_id, name=name)
            logger.info("Player %s '%s' joined session %s", player.id, name, session_id)
            return player

    def get_player(self, player_id: str) -> Player | None:
        with self._lock:
            return self._store.get_player(player_id)

    def get_session_players(self, session_id: str) -> list[Player]:
        with self._lock:
            return self._store.get_session_players(session_id)

    def update_player_score(self, player_id: str, score: int) -> Player | None:
        with self._lock:
            return self._recorder.update_score(player_id, score)

    # --- Responses ---

    def record_response(
        self,
        player_id: str,
        question_id: str,
        is_correct: bool,
        selected_answer: str | None = None,
        response_time: int | None = None,
    ) -> PlayerResponse:
        with self._lock:
            return self._recorder.record_response(
                player_id=player_id,
                question_id=question_id,
                is_correct=is_correct,
                selected_answer=selected_answer,
                response_time=response_time,
            )

    def submit_answer(
        self,
        player_id: str,
        question_id: str,
        selected_answer: str | None,
        time_remaining: float,
    ) -> AnswerOutcome:
        with self._lock:
            return self._recorder.submit_answer(
                player_id=player_id,
                question_id=question_id,
                selected_answer=selected_answer,
                time_remaining=time_remaining,
            )

    def get_player_responses(self, player_id: str) -> list[PlayerResponse]:
        with self._lock:
            return self._store.get_player_responses(player_id)

    def get_question_responses(self, question_id: str) -> list[PlayerResponse]:
        with self._lock:
            return self._store.get_question_responses(question_id)

    # --- Helpers ---

    def _insert_question(self, quiz_id: str, draft: QuestionDraft) -> Question:
        order = draft.order
        if order is None:
            existing = self._store.get_questions(quiz_id)
            order = existing[-1].order + 1 if existing else 1
        return self._store.create_question(
            quiz_id=quiz_id,
            question_text=draft.question_text,
            option_a=draft.option_a,
            option_b=draft.option_b,
            option_c=draft.option_c,
            option_d=draft.option_d,
            correct_answer=draft.correct_answer,
            order=order,
        )

    @staticmethod
    def _prepare_draft(draft: QuestionDraft) -> QuestionDraft:
        """Validate and normalize a question before storage."""
        question_text = draft.question_text.strip()
        if not question_text:
            raise ValueError("Question text must not be empty.")
        option_c = (draft.option_c or "").strip() or None
        option_d = (draft.option_d or "").strip() or None
        if option_d and not option_c:
            raise ValueError("Option D requires option C.")
        prepared = QuestionDraft(
            question_text=question_text,
            option_a=draft.option_a.strip(),
            option_b=draft.option_b.strip(),
            option_c=option_c,
            option_d=option_d,
            correct_answer=draft.correct_answer.strip().upper(),
            order=draft.order,
        )
        if not prepared.option_a or not prepared.option_b:
            raise ValueError("Options A and B must not be empty.")
        offered = {"A", "B"} | {letter for letter, text in (("C", option_c), ("D", option_d)) if text}
        if prepared.correct_answer not in offered:
            raise ValueError(
                f"Correct answer '{prepared.correct_answer}' is not one of the offered options."
            )
        if prepared.order is not None and prepared.order < 1:
            raise ValueError("Question order starts at 1.")
        return prepared
