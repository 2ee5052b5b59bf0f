"""Thin httpx wrapper around the quiz HTTP API."""

from __future__ import annotations

from typing import Any

import httpx

from pin_quiz.constants.network_constants import API_PREFIX, DEFAULT_CLIENT_TIMEOUT_SECONDS
from pin_quiz.server.schemas import (
    AnswerOut,
    PlayerOut,
    PlayerResponseOut,
    QuestionOut,
    QuizOut,
    QuizWithQuestionsOut,
    SessionOut,
)


class ApiClient:
    """Calls the quiz API and parses responses into the server's schemas.

    Non-2xx responses raise :class:`httpx.HTTPStatusError`. Nothing is
    retried; pollers simply call again on their next tick.
    """

    def __init__(self, http_client: httpx.Client, prefix: str = API_PREFIX) -> None:
        self._http = http_client
        self._prefix = prefix.rstrip("/")

    @classmethod
    def from_base_url(
        cls,
        base_url: str,
        timeout: float = DEFAULT_CLIENT_TIMEOUT_SECONDS,
    ) -> "ApiClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def close(self) -> None:
        self._http.close()

    # --- Quizzes ---

    def get_quizzes(self) -> list[QuizOut]:
        return [QuizOut.model_validate(item) for item in self._request("GET", "/quizzes")]

    def get_quiz(self, quiz_id: str) -> QuizWithQuestionsOut:
        return QuizWithQuestionsOut.model_validate(self._request("GET", f"/quizzes/{quiz_id}"))

    def create_quiz(
        self,
        title: str,
        time_per_question: int,
        description: str | None = None,
        questions: list[dict[str, Any]] | None = None,
    ) -> QuizWithQuestionsOut:
        """Create a quiz together with its questions in a single request."""
        body = {
            "title": title,
            "description": description,
            "timePerQuestion": time_per_question,
            "questions": questions or [],
        }
        return QuizWithQuestionsOut.model_validate(self._request("POST", "/quizzes", json=body))

    def add_question(self, quiz_id: str, question: dict[str, Any]) -> QuestionOut:
        return QuestionOut.model_validate(
            self._request("POST", f"/quizzes/{quiz_id}/questions", json=question)
        )

    # --- Sessions ---

    def create_session(self, quiz_id: str, host_id: str | None = None) -> SessionOut:
        body = {"quizId": quiz_id, "hostId": host_id}
        return SessionOut.model_validate(self._request("POST", "/sessions", json=body))

    def get_session_by_pin(self, pin: str) -> SessionOut:
        return SessionOut.model_validate(self._request("GET", f"/sessions/pin/{pin}"))

    def get_session(self, session_id: str) -> SessionOut:
        return SessionOut.model_validate(self._request("GET", f"/sessions/{session_id}"))

    def update_session(self, session_id: str, **updates: Any) -> SessionOut:
        """PATCH the session with camelCase fields, e.g. ``status="active"``."""
        return SessionOut.model_validate(
            self._request("PATCH", f"/sessions/{session_id}", json=updates)
        )

    def start_session(self, session_id: str) -> SessionOut:
        return SessionOut.model_validate(self._request("POST", f"/sessions/{session_id}/start"))

    def advance_session(self, session_id: str, from_index: int | None = None) -> SessionOut:
        return SessionOut.model_validate(
            self._request("POST", f"/sessions/{session_id}/advance", json={"fromIndex": from_index})
        )

    # --- Players ---

    def join_session(self, session_id: str, name: str) -> PlayerOut:
        return PlayerOut.model_validate(
            self._request("POST", f"/sessions/{session_id}/players", json={"name": name})
        )

    def join_by_pin(self, pin: str, name: str) -> tuple[SessionOut, PlayerOut]:
        session = self.get_session_by_pin(pin)
        return session, self.join_session(session.id, name)

    def get_session_players(self, session_id: str) -> list[PlayerOut]:
        return [
            PlayerOut.model_validate(item)
            for item in self._request("GET", f"/sessions/{session_id}/players")
        ]

    def update_player_score(self, player_id: str, score: int) -> PlayerOut:
        return PlayerOut.model_validate(
            self._request("PATCH", f"/players/{player_id}/score", json={"score": score})
        )

    # --- Responses ---

    def submit_response(
        self,
        player_id: str,
        question_id: str,
        selected_answer: str | None,
        is_correct: bool,
        response_time: int | None,
    ) -> PlayerResponseOut:
        body = {
            "playerId": player_id,
            "questionId": question_id,
            "selectedAnswer": selected_answer,
            "isCorrect": is_correct,
            "responseTime": response_time,
        }
        return PlayerResponseOut.model_validate(self._request("POST", "/responses", json=body))

    def submit_answer(
        self,
        session_id: str,
        player_id: str,
        question_id: str,
        selected_answer: str | None,
        time_remaining: float,
    ) -> AnswerOut:
        body = {
            "playerId": player_id,
            "questionId": question_id,
            "selectedAnswer": selected_answer,
            "timeRemaining": time_remaining,
        }
        return AnswerOut.model_validate(
            self._request("POST", f"/sessions/{session_id}/answers", json=body)
        )

    def get_question_responses(self, question_id: str) -> list[PlayerResponseOut]:
        return [
            PlayerResponseOut.model_validate(item)
            for item in self._request("GET", f"/questions/{question_id}/responses")
        ]

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._http.request(method, f"{self._prefix}{path}", **kwargs)
        response.raise_for_status()
        return response.json()
