"""Request and response payloads for the HTTP API.

Field names are camelCase on the wire; the ``from_model`` helpers convert the
core dataclasses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pin_quiz.constants.quiz_constants import (
    DEFAULT_TIME_PER_QUESTION_SECONDS,
    MAX_TIME_PER_QUESTION_SECONDS,
    MIN_TIME_PER_QUESTION_SECONDS,
)
from pin_quiz.core.models import (
    Player,
    PlayerResponse,
    Question,
    QuestionDraft,
    Quiz,
    QuizSession,
    QuizWithQuestions,
    SessionStatus,
)

OptionLetter = Literal["A", "B", "C", "D"]


# --- Requests ---

class QuestionCreate(BaseModel):
    questionText: str = Field(..., min_length=1)
    optionA: str = Field(..., min_length=1)
    optionB: str = Field(..., min_length=1)
    optionC: Optional[str] = None
    optionD: Optional[str] = None
    correctAnswer: OptionLetter
    order: Optional[int] = Field(None, ge=1)

    def to_draft(self) -> QuestionDraft:
        return QuestionDraft(
            question_text=self.questionText,
            option_a=self.optionA,
            option_b=self.optionB,
            option_c=self.optionC,
            option_d=self.optionD,
            correct_answer=self.correctAnswer,
            order=self.order,
        )


class QuizCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    timePerQuestion: int = Field(
        DEFAULT_TIME_PER_QUESTION_SECONDS,
        ge=MIN_TIME_PER_QUESTION_SECONDS,
        le=MAX_TIME_PER_QUESTION_SECONDS,
    )
    createdBy: Optional[str] = None
    questions: list[QuestionCreate] = Field(default_factory=list)


class SessionCreate(BaseModel):
    quizId: str
    hostId: Optional[str] = None


class SessionUpdate(BaseModel):
    """Partial session update; only the fields present in the body are applied."""

    model_config = ConfigDict(extra="forbid")

    status: Optional[SessionStatus] = None
    currentQuestionIndex: Optional[int] = None
    hostId: Optional[str] = None
    startedAt: Optional[datetime] = None
    endedAt: Optional[datetime] = None

    @field_validator("status", "currentQuestionIndex")
    @classmethod
    def _reject_null(cls, value: object) -> object:
        # Omit the field to leave it unchanged.
        if value is None:
            raise ValueError("must not be null")
        return value

    def to_changes(self) -> dict[str, object]:
        names = {
            "status": "status",
            "currentQuestionIndex": "current_question_index",
            "hostId": "host_id",
            "startedAt": "started_at",
            "endedAt": "ended_at",
        }
        return {names[key]: value for key, value in self.model_dump(exclude_unset=True).items()}


class AdvanceRequest(BaseModel):
    fromIndex: Optional[int] = Field(None, ge=0)


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class ScoreUpdate(BaseModel):
    score: int


class ResponseCreate(BaseModel):
    playerId: str
    questionId: str
    selectedAnswer: Optional[OptionLetter] = None
    isCorrect: bool
    responseTime: Optional[int] = Field(None, ge=0)


class AnswerSubmit(BaseModel):
    playerId: str
    questionId: str
    selectedAnswer: Optional[OptionLetter] = None
    timeRemaining: float = Field(..., ge=0, allow_inf_nan=False)


# --- Responses ---

class QuestionOut(BaseModel):
    id: str
    quizId: str
    questionText: str
    optionA: str
    optionB: str
    optionC: Optional[str] = None
    optionD: Optional[str] = None
    correctAnswer: OptionLetter
    order: int

    @classmethod
    def from_model(cls, question: Question) -> "QuestionOut":
        return cls(
            id=question.id,
            quizId=question.quiz_id,
            questionText=question.question_text,
            optionA=question.option_a,
            optionB=question.option_b,
            optionC=question.option_c,
            optionD=question.option_d,
            correctAnswer=question.correct_answer,
            order=question.order,
        )


class QuizOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    timePerQuestion: int
    createdBy: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_model(cls, quiz: Quiz) -> "QuizOut":
        return cls(
            id=quiz.id,
            title=quiz.title,
            description=quiz.description,
            timePerQuestion=quiz.time_per_question,
            createdBy=quiz.created_by,
            createdAt=quiz.created_at,
        )


class QuizWithQuestionsOut(QuizOut):
    questions: list[QuestionOut]

    @classmethod
    def from_quiz(cls, quiz: QuizWithQuestions) -> "QuizWithQuestionsOut":
        return cls(
            **QuizOut.from_model(quiz.quiz).model_dump(),
            questions=[QuestionOut.from_model(q) for q in quiz.questions],
        )


class SessionOut(BaseModel):
    id: str
    quizId: str
    pin: str
    hostId: Optional[str] = None
    status: SessionStatus
    currentQuestionIndex: int
    startedAt: Optional[datetime] = None
    endedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, session: QuizSession) -> "SessionOut":
        return cls(
            id=session.id,
            quizId=session.quiz_id,
            pin=session.pin,
            hostId=session.host_id,
            status=session.status,
            currentQuestionIndex=session.current_question_index,
            startedAt=session.started_at,
            endedAt=session.ended_at,
        )


class PlayerOut(BaseModel):
    id: str
    sessionId: str
    name: str
    score: int
    joinedAt: datetime

    @classmethod
    def from_model(cls, player: Player) -> "PlayerOut":
        return cls(
            id=player.id,
            sessionId=player.session_id,
            name=player.name,
            score=player.score,
            joinedAt=player.joined_at,
        )


class PlayerResponseOut(BaseModel):
    id: str
    playerId: str
    questionId: str
    selectedAnswer: Optional[OptionLetter] = None
    isCorrect: bool
    responseTime: Optional[int] = None
    submittedAt: datetime

    @classmethod
    def from_model(cls, response: PlayerResponse) -> "PlayerResponseOut":
        return cls(
            id=response.id,
            playerId=response.player_id,
            questionId=response.question_id,
            selectedAnswer=response.selected_answer,
            isCorrect=response.is_correct,
            responseTime=response.response_time,
            submittedAt=response.submitted_at,
        )


class AnswerOut(BaseModel):
    response: PlayerResponseOut
    player: PlayerOut
