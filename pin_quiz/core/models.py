"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Lifecycle states of a quiz session."""

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class Quiz:
    """Quiz metadata. Questions are stored separately and joined on read."""

    id: str
    title: str
    time_per_question: int
    description: str | None = None
    created_by: str | None = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with two to four lettered options."""

    id: str
    quiz_id: str
    question_text: str
    option_a: str
    option_b: str
    correct_answer: str
    order: int
    option_c: str | None = None
    option_d: str | None = None

    def options(self) -> dict[str, str]:
        """Return the offered options keyed by letter, skipping absent ones."""
        letters = {
            "A": self.option_a,
            "B": self.option_b,
            "C": self.option_c,
            "D": self.option_d,
        }
        return {letter: text for letter, text in letters.items() if text}


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    """Question content before it is attached to a stored quiz."""

    question_text: str
    option_a: str
    option_b: str
    correct_answer: str
    option_c: str | None = None
    option_d: str | None = None
    order: int | None = None  # None appends after the last question


@dataclass(frozen=True, slots=True)
class QuizWithQuestions:
    quiz: Quiz
    questions: list[Question]


@dataclass(frozen=True, slots=True)
class QuizSession:
    """One play-through of a quiz, addressed by its PIN."""

    id: str
    quiz_id: str
    pin: str
    status: SessionStatus = SessionStatus.WAITING
    current_question_index: int = 0
    host_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Player:
    """A participant in a session. Names are not unique."""

    id: str
    session_id: str
    name: str
    score: int = 0
    joined_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class PlayerResponse:
    """Append-only record of a submitted answer."""

    id: str
    player_id: str
    question_id: str
    is_correct: bool
    selected_answer: str | None = None
    response_time: int | None = None  # milliseconds
    submitted_at: datetime = field(default_factory=utc_now)
