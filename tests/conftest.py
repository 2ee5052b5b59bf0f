from __future__ import annotations

from datetime import datetime, timedelta, timezone
import random

from fastapi.testclient import TestClient
import pytest

from pin_quiz.core.models import QuestionDraft
from pin_quiz.core.quiz_manager import QuizManager
from pin_quiz.core.services.entity_store import EntityStore
from pin_quiz.server.api_server import create_api_app


class TickingClock:
    """Returns a later timestamp on every call."""

    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def make_drafts(count: int = 2) -> list[QuestionDraft]:
    return [
        QuestionDraft(
            question_text=f"Question {n}?",
            option_a=f"Answer {n}a",
            option_b=f"Answer {n}b",
            option_c=f"Answer {n}c",
            option_d=f"Answer {n}d",
            correct_answer="B",
            order=n,
        )
        for n in range(1, count + 1)
    ]


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store() -> EntityStore:
    return EntityStore(rng=random.Random(1234))


@pytest.fixture
def manager(store: EntityStore, clock: TickingClock) -> QuizManager:
    return QuizManager(store=store, clock=clock)


@pytest.fixture
def client(manager: QuizManager) -> TestClient:
    with TestClient(create_api_app(manager)) as test_client:
        yield test_client


@pytest.fixture
def quiz_payload() -> dict:
    return {
        "title": "Capitals",
        "description": "European capitals",
        "timePerQuestion": 30,
        "questions": [
            {
                "questionText": "Capital of France?",
                "optionA": "Paris",
                "optionB": "Lyon",
                "optionC": "Nice",
                "optionD": "Lille",
                "correctAnswer": "A",
                "order": 1,
            },
            {
                "questionText": "Capital of Norway?",
                "optionA": "Bergen",
                "optionB": "Oslo",
                "correctAnswer": "B",
                "order": 2,
            },
        ],
    }
