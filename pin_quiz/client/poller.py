"""Fixed-interval polling of session state, standing in for push updates."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from threading import Event, Lock, Thread, Timer

import httpx

from pin_quiz.client.api_client import ApiClient
from pin_quiz.constants.quiz_constants import (
    LEADERBOARD_AUTO_ADVANCE_SECONDS,
    SESSION_POLL_INTERVAL_SECONDS,
)
from pin_quiz.server.schemas import PlayerOut, QuizWithQuestionsOut, SessionOut

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Everything a view needs to render one poll tick."""

    session: SessionOut
    quiz: QuizWithQuestionsOut
    players: list[PlayerOut]


class SessionPoller:
    """Re-fetches a session and its roster on a fixed cadence.

    The quiz itself is immutable once created, so it is fetched once per quiz
    id and reused. Each tick is independent: a failed request is logged and
    the next tick simply tries again.
    """

    def __init__(
        self,
        client: ApiClient,
        session_id: str,
        on_update: Callable[[SessionSnapshot], None],
        interval_seconds: float = SESSION_POLL_INTERVAL_SECONDS,
    ) -> None:
        self._client = client
        self._session_id = session_id
        self._on_update = on_update
        self._interval = interval_seconds
        self._quiz: QuizWithQuestionsOut | None = None
        self._stop = Event()
        self._thread: Thread | None = None
        self.last_snapshot: SessionSnapshot | None = None

    def poll_once(self) -> SessionSnapshot:
        session = self._client.get_session(self._session_id)
        if self._quiz is None or self._quiz.id != session.quizId:
            self._quiz = self._client.get_quiz(session.quizId)
        players = self._client.get_session_players(self._session_id)
        snapshot = SessionSnapshot(session=session, quiz=self._quiz, players=players)
        self.last_snapshot = snapshot
        return snapshot

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name=f"SessionPoller-{self._session_id}", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._on_update(self.poll_once())
            except httpx.HTTPError as exc:
                logger.warning("Polling session %s failed: %s", self._session_id, exc)
            except Exception:
                logger.exception("Unexpected error while polling session %s", self._session_id)
            self._stop.wait(self._interval)


class LeaderboardAutoAdvance:
    """One-shot timer that advances the session after the leaderboard is shown.

    The advance is pinned to the question index seen on entry, so it is a
    no-op if the host already moved on. ``wait`` returns once the timer has
    either fired or been cancelled; ``fired`` tells the two apart.
    """

    def __init__(
        self,
        client: ApiClient,
        session_id: str,
        from_index: int,
        delay_seconds: float = LEADERBOARD_AUTO_ADVANCE_SECONDS,
        on_advanced: Callable[[SessionOut], None] | None = None,
    ) -> None:
        self._client = client
        self._session_id = session_id
        self._from_index = from_index
        self._delay = delay_seconds
        self._on_advanced = on_advanced
        self._lock = Lock()
        self._timer: Timer | None = None
        self._cancelled = False
        self._done = Event()
        self.fired = False

    def start(self) -> None:
        with self._lock:
            if self._timer is not None or self._cancelled:
                return
            self._timer = Timer(self._delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Stop a pending advance. An advance already in flight still completes."""
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
            if not self.fired:
                self._done.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the timer has fired or been cancelled; returns False on timeout."""
        return self._done.wait(timeout)

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self.fired = True
        try:
            session = self._client.advance_session(self._session_id, from_index=self._from_index)
        except httpx.HTTPError as exc:
            logger.warning("Auto-advance of session %s failed: %s", self._session_id, exc)
        else:
            if self._on_advanced is not None:
                self._on_advanced(session)
        finally:
            self._done.set()
