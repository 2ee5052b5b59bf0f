from __future__ import annotations

from datetime import datetime, timezone
import threading
import time

from fastapi.testclient import TestClient
import httpx
import pytest

from pin_quiz.client import (
    ApiClient,
    LeaderboardAutoAdvance,
    SessionPoller,
    average_score,
    current_question,
    podium,
    progress_percent,
    resolve_current_player,
    winner,
)
from pin_quiz.server.schemas import PlayerOut, SessionOut

JOINED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _player(player_id: str, score: int) -> PlayerOut:
    return PlayerOut(id=player_id, sessionId="s", name=player_id.title(), score=score, joinedAt=JOINED)


@pytest.fixture
def api(client: TestClient) -> ApiClient:
    return ApiClient(client)


@pytest.fixture
def lobby(api: ApiClient, quiz_payload: dict):
    quiz = api.create_quiz(
        title=quiz_payload["title"],
        time_per_question=quiz_payload["timePerQuestion"],
        questions=quiz_payload["questions"],
    )
    session = api.create_session(quiz.id)
    return quiz, session


# --- Presenter ---


def test_current_question_and_progress(api: ApiClient, lobby) -> None:
    quiz, session = lobby
    api.join_session(session.id, "Ann")
    started = api.start_session(session.id)

    assert current_question(started, quiz).questionText == "Capital of France?"
    assert progress_percent(started, quiz) == 50.0

    moved = api.advance_session(session.id, from_index=0)
    assert current_question(moved, quiz).questionText == "Capital of Norway?"
    assert progress_percent(moved, quiz) == 100.0

    finished = api.advance_session(session.id, from_index=1)
    assert finished.status == "completed"
    assert progress_percent(finished, quiz) == 100.0


def test_current_question_out_of_range(lobby) -> None:
    quiz, session = lobby
    past_end = session.model_copy(update={"currentQuestionIndex": 2})

    assert current_question(past_end, quiz) is None


def test_progress_of_empty_quiz(api: ApiClient) -> None:
    quiz = api.create_quiz(title="Empty", time_per_question=30)
    session = api.create_session(quiz.id)

    assert progress_percent(session, quiz) == 0.0


def test_podium_and_winner() -> None:
    players = [_player("dee", 300), _player("ann", 200), _player("bob", 100), _player("cid", 0)]

    assert [p.id for p in podium(players)] == ["dee", "ann", "bob"]
    assert [p.id for p in podium(players[:2])] == ["dee", "ann"]
    assert winner(players).id == "dee"
    assert winner([]) is None


def test_average_score_rounds_halves_up() -> None:
    assert average_score([]) == 0
    assert average_score([_player("ann", 100), _player("bob", 0)]) == 50
    assert average_score([_player("ann", 100), _player("bob", 0), _player("cid", 0)]) == 33
    assert average_score([_player("ann", 1), _player("bob", 0)]) == 1


def test_resolve_current_player_by_id_only() -> None:
    twins = [_player("first", 0), _player("second", 100)]
    twins = [p.model_copy(update={"name": "Ann"}) for p in twins]

    assert resolve_current_player(twins, "second").score == 100
    assert resolve_current_player(twins, "Ann") is None
    assert resolve_current_player(twins, None) is None


# --- Api client ---


def test_join_by_pin(api: ApiClient, lobby) -> None:
    _, session = lobby

    found, player = api.join_by_pin(session.pin, "Ann")

    assert found.id == session.id
    assert player.sessionId == session.id
    assert [p.id for p in api.get_session_players(session.id)] == [player.id]


def test_client_raises_on_error_status(api: ApiClient) -> None:
    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        api.get_session_by_pin("000000")

    assert exc_info.value.response.status_code == 404


def test_submit_answer_through_client(api: ApiClient, lobby) -> None:
    quiz, session = lobby
    ann = api.join_session(session.id, "Ann")
    api.update_session(session.id, status="active")

    outcome = api.submit_answer(session.id, ann.id, quiz.questions[0].id, "A", time_remaining=29.5)

    assert outcome.player.score == 100
    assert outcome.response.responseTime == 500
    assert [r.playerId for r in api.get_question_responses(quiz.questions[0].id)] == [ann.id]


# --- Poller ---


def test_poll_once_builds_snapshot(api: ApiClient, lobby) -> None:
    quiz, session = lobby
    api.join_session(session.id, "Ann")
    poller = SessionPoller(api, session.id, on_update=lambda snapshot: None)

    snapshot = poller.poll_once()

    assert snapshot.session.id == session.id
    assert snapshot.quiz.id == quiz.id
    assert [p.name for p in snapshot.players] == ["Ann"]
    assert poller.last_snapshot is snapshot


def test_poll_sees_progress_made_elsewhere(api: ApiClient, lobby) -> None:
    _, session = lobby
    api.join_session(session.id, "Ann")
    poller = SessionPoller(api, session.id, on_update=lambda snapshot: None)
    assert poller.poll_once().session.status == "waiting"

    api.start_session(session.id)

    assert poller.poll_once().session.status == "active"


class _FakeClient:
    """Offline stand-in for ApiClient in the threaded tests."""

    def __init__(self, session: SessionOut, quiz, fail: bool = False) -> None:
        self.session = session
        self.quiz = quiz
        self.fail = fail
        self.quiz_fetches = 0
        self.advance_calls: list[int | None] = []

    def get_session(self, session_id: str) -> SessionOut:
        if self.fail:
            raise httpx.ConnectError("offline")
        return self.session

    def get_quiz(self, quiz_id: str):
        self.quiz_fetches += 1
        return self.quiz

    def get_session_players(self, session_id: str) -> list[PlayerOut]:
        return []

    def advance_session(self, session_id: str, from_index: int | None = None) -> SessionOut:
        self.advance_calls.append(from_index)
        if self.fail:
            raise httpx.ConnectError("offline")
        return self.session.model_copy(update={"currentQuestionIndex": self.session.currentQuestionIndex + 1})


def test_poller_thread_delivers_updates(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz)
    received = []
    ticked = threading.Event()

    def on_update(snapshot) -> None:
        received.append(snapshot)
        if len(received) >= 3:
            ticked.set()

    poller = SessionPoller(fake, session.id, on_update=on_update, interval_seconds=0.01)
    poller.start()
    try:
        assert ticked.wait(timeout=5)
        assert poller.is_running()
    finally:
        poller.stop(timeout=1)

    assert not poller.is_running()
    assert fake.quiz_fetches == 1


def test_poller_survives_failed_ticks(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz, fail=True)
    received = []
    poller = SessionPoller(fake, session.id, on_update=received.append, interval_seconds=0.01)

    poller.start()
    time.sleep(0.05)
    still_running = poller.is_running()
    poller.stop(timeout=1)

    assert still_running
    assert received == []


def test_auto_advance_pins_from_index(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz)
    advanced = []
    timer = LeaderboardAutoAdvance(fake, session.id, from_index=0, delay_seconds=0, on_advanced=advanced.append)

    timer.start()

    assert timer.wait(timeout=2)
    assert fake.advance_calls == [0]
    assert advanced[0].currentQuestionIndex == 1


def test_auto_advance_failure_still_fires(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz, fail=True)
    advanced = []
    timer = LeaderboardAutoAdvance(fake, session.id, from_index=0, delay_seconds=0, on_advanced=advanced.append)

    timer.start()

    assert timer.wait(timeout=2)
    assert fake.advance_calls == [0]
    assert advanced == []


def test_auto_advance_cancelled(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz)
    timer = LeaderboardAutoAdvance(fake, session.id, from_index=0, delay_seconds=60)

    timer.start()
    timer.cancel()

    assert timer.wait(timeout=1)
    assert not timer.fired
    assert fake.advance_calls == []


def test_auto_advance_cancelled_before_start_never_fires(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz)
    timer = LeaderboardAutoAdvance(fake, session.id, from_index=0, delay_seconds=0)

    timer.cancel()
    timer.start()

    assert timer.wait()
    time.sleep(0.05)
    assert not timer.fired
    assert fake.advance_calls == []


def test_poller_keeps_running_after_callback_error(lobby, caplog: pytest.LogCaptureFixture) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz)
    calls = []
    recovered = threading.Event()

    def on_update(snapshot) -> None:
        calls.append(snapshot)
        if len(calls) == 1:
            raise KeyError("view not ready")
        recovered.set()

    poller = SessionPoller(fake, session.id, on_update=on_update, interval_seconds=0.01)
    with caplog.at_level("ERROR", logger="pin_quiz.client.poller"):
        poller.start()
        try:
            assert recovered.wait(timeout=5)
            assert poller.is_running()
        finally:
            poller.stop(timeout=1)

    assert any("Unexpected error while polling" in record.message for record in caplog.records)


def test_poller_keeps_running_after_malformed_payload(lobby) -> None:
    quiz, session = lobby
    fake = _FakeClient(session, quiz)
    bodies = iter([{"id": session.id}])
    received = threading.Event()

    def get_session(session_id: str) -> SessionOut:
        body = next(bodies, None)
        if body is not None:
            return SessionOut.model_validate(body)
        return session

    fake.get_session = get_session
    poller = SessionPoller(fake, session.id, on_update=lambda snapshot: received.set(), interval_seconds=0.01)
    poller.start()
    try:
        assert received.wait(timeout=5)
    finally:
        poller.stop(timeout=1)
