"""Service governing quiz session status transitions and question progress."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
import logging
from typing import Any

from pin_quiz.core.errors import SessionTransitionError
from pin_quiz.core.models import QuizSession, SessionStatus, utc_now
from pin_quiz.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.WAITING: frozenset({SessionStatus.WAITING, SessionStatus.ACTIVE}),
    SessionStatus.ACTIVE: frozenset({SessionStatus.ACTIVE, SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset({SessionStatus.COMPLETED}),
}

# Fields a completed session tolerates in a repeated final update.
_IGNORED_WHEN_COMPLETED = frozenset({"status", "ended_at"})

UPDATABLE_FIELDS = frozenset(
    {"status", "current_question_index", "host_id", "started_at", "ended_at"}
)


class SessionLifecycle:
    """Moves sessions through waiting -> active -> completed.

    Every method returns ``None`` when the session id is unknown. Illegal
    transitions raise :class:`SessionTransitionError`; an out-of-range
    question index raises ``ValueError``.
    """

    def __init__(self, store: EntityStore, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock

    def start(self, session_id: str) -> QuizSession | None:
        session = self._store.get_session(session_id)
        if session is None:
            return None
        if session.status is SessionStatus.ACTIVE:
            return session
        self._ensure_transition(session, SessionStatus.ACTIVE)
        self._ensure_has_players(session)
        logger.info("Session %s (pin %s) started", session.id, session.pin)
        return self._store.update_session(
            session_id,
            status=SessionStatus.ACTIVE,
            started_at=self._clock(),
            current_question_index=0,
        )

    def advance(self, session_id: str, from_index: int | None = None) -> QuizSession | None:
        """Move to the next question, completing the session after the last one.

        When ``from_index`` is given the advance only happens if the session is
        still on that index, so two callers racing to advance the same
        question move it forward once.
        """
        session = self._store.get_session(session_id)
        if session is None:
            return None
        if session.status is SessionStatus.COMPLETED:
            return session
        if session.status is SessionStatus.WAITING:
            raise SessionTransitionError("Cannot advance a session that has not started.")
        if from_index is not None and from_index != session.current_question_index:
            logger.info(
                "Ignoring advance of session %s from index %s; already at %s",
                session.id,
                from_index,
                session.current_question_index,
            )
            return session

        next_index = session.current_question_index + 1
        if next_index >= self._question_count(session):
            return self._mark_completed(session)
        logger.info("Session %s advanced to question index %s", session.id, next_index)
        return self._store.update_session(session_id, current_question_index=next_index)

    def complete(self, session_id: str) -> QuizSession | None:
        session = self._store.get_session(session_id)
        if session is None:
            return None
        if session.status is SessionStatus.COMPLETED:
            return session
        self._ensure_transition(session, SessionStatus.COMPLETED)
        return self._mark_completed(session)

    def apply_update(self, session_id: str, changes: Mapping[str, Any]) -> QuizSession | None:
        """Apply a partial update, enforcing the transition table and index bounds."""
        session = self._store.get_session(session_id)
        if session is None:
            return None

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported session fields: {', '.join(sorted(unknown))}")

        updates = dict(changes)
        if "status" in updates:
            updates["status"] = SessionStatus(updates["status"])
        target_status = updates.get("status", session.status)

        if session.status is SessionStatus.COMPLETED:
            return self._repeat_on_completed(session, updates)

        self._ensure_transition(session, target_status)
        if "current_question_index" in updates:
            self._ensure_index_in_range(session, updates["current_question_index"])

        if target_status is not session.status:
            if target_status is SessionStatus.ACTIVE:
                self._ensure_has_players(session)
                if updates.get("started_at") is None:
                    updates["started_at"] = self._clock()
                updates.setdefault("current_question_index", 0)
            elif target_status is SessionStatus.COMPLETED:
                if updates.get("ended_at") is None:
                    updates["ended_at"] = self._clock()
            logger.info(
                "Session %s moved from %s to %s",
                session.id,
                session.status.value,
                target_status.value,
            )
        return self._store.update_session(session_id, **updates)

    def _repeat_on_completed(self, session: QuizSession, updates: dict[str, Any]) -> QuizSession:
        for field_name, value in updates.items():
            if field_name == "status" and value is not SessionStatus.COMPLETED:
                logger.warning("Rejected reopening completed session %s", session.id)
                raise SessionTransitionError(
                    f"Cannot move a completed session back to '{value.value}'."
                )
            if field_name in _IGNORED_WHEN_COMPLETED:
                continue
            if getattr(session, field_name) != value:
                raise SessionTransitionError("Session is completed and can no longer change.")
        return session

    def _mark_completed(self, session: QuizSession) -> QuizSession | None:
        logger.info("Session %s (pin %s) completed", session.id, session.pin)
        return self._store.update_session(
            session.id,
            status=SessionStatus.COMPLETED,
            ended_at=self._clock(),
        )

    def _question_count(self, session: QuizSession) -> int:
        return len(self._store.get_questions(session.quiz_id))

    def _ensure_index_in_range(self, session: QuizSession, index: int) -> None:
        if not isinstance(index, int):
            raise ValueError("Question index must be an integer.")
        total = self._question_count(session)
        if not 0 <= index <= total:
            raise ValueError(f"Question index {index} out of range 0..{total}")

    def _ensure_has_players(self, session: QuizSession) -> None:
        if not self._store.get_session_players(session.id):
            raise SessionTransitionError("Cannot start a session without players.")

    @staticmethod
    def _ensure_transition(session: QuizSession, target: SessionStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[session.status]:
            logger.warning(
                "Rejected transition of session %s from %s to %s",
                session.id,
                session.status.value,
                target.value,
            )
            raise SessionTransitionError(
                f"Cannot move session from '{session.status.value}' to '{target.value}'."
            )
