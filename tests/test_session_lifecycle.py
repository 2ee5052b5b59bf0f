from __future__ import annotations

import pytest

from conftest import TickingClock
from pin_quiz.core.errors import SessionTransitionError
from pin_quiz.core.models import SessionStatus
from pin_quiz.core.services.entity_store import EntityStore
from pin_quiz.core.services.session_lifecycle import SessionLifecycle


@pytest.fixture
def lifecycle(store: EntityStore, clock: TickingClock) -> SessionLifecycle:
    return SessionLifecycle(store, clock=clock)


@pytest.fixture
def session(store: EntityStore):
    quiz = store.create_quiz(title="Two questions", time_per_question=30)
    for order in (1, 2):
        store.create_question(
            quiz_id=quiz.id,
            question_text=f"Q{order}",
            option_a="a",
            option_b="b",
            correct_answer="A",
            order=order,
        )
    session = store.create_session(quiz.id)
    store.create_player(session.id, "Ann")
    return session


def test_start_activates_and_resets_index(lifecycle: SessionLifecycle, store: EntityStore, session) -> None:
    store.update_session(session.id, current_question_index=1)

    started = lifecycle.start(session.id)

    assert started.status is SessionStatus.ACTIVE
    assert started.current_question_index == 0
    assert started.started_at is not None


def test_start_requires_players(lifecycle: SessionLifecycle, store: EntityStore) -> None:
    quiz = store.create_quiz(title="Empty room", time_per_question=30)
    empty = store.create_session(quiz.id)

    with pytest.raises(SessionTransitionError):
        lifecycle.start(empty.id)


def test_start_is_noop_when_already_active(lifecycle: SessionLifecycle, session) -> None:
    first = lifecycle.start(session.id)
    again = lifecycle.start(session.id)

    assert again == first


def test_unknown_session_returns_none(lifecycle: SessionLifecycle) -> None:
    assert lifecycle.start("missing") is None
    assert lifecycle.advance("missing") is None
    assert lifecycle.complete("missing") is None
    assert lifecycle.apply_update("missing", {"status": "active"}) is None


def test_advance_walks_questions_then_completes(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)

    second = lifecycle.advance(session.id)
    assert second.status is SessionStatus.ACTIVE
    assert second.current_question_index == 1

    finished = lifecycle.advance(session.id)
    assert finished.status is SessionStatus.COMPLETED
    assert finished.ended_at is not None


def test_advance_on_completed_session_is_idempotent(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)
    lifecycle.advance(session.id)
    finished = lifecycle.advance(session.id)

    repeated = lifecycle.advance(session.id)

    assert repeated == finished
    assert repeated.ended_at == finished.ended_at


def test_advance_before_start_is_rejected(lifecycle: SessionLifecycle, session) -> None:
    with pytest.raises(SessionTransitionError):
        lifecycle.advance(session.id)


def test_advance_with_stale_index_does_nothing(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)
    moved = lifecycle.advance(session.id, from_index=0)

    stale = lifecycle.advance(session.id, from_index=0)

    assert stale == moved
    assert stale.current_question_index == 1
    assert stale.status is SessionStatus.ACTIVE


def test_complete_requires_active(lifecycle: SessionLifecycle, session) -> None:
    with pytest.raises(SessionTransitionError):
        lifecycle.complete(session.id)

    lifecycle.start(session.id)
    done = lifecycle.complete(session.id)
    assert done.status is SessionStatus.COMPLETED
    assert lifecycle.complete(session.id) == done


def test_patch_to_active_fills_start_time(lifecycle: SessionLifecycle, session) -> None:
    updated = lifecycle.apply_update(session.id, {"status": "active"})

    assert updated.status is SessionStatus.ACTIVE
    assert updated.started_at is not None
    assert updated.current_question_index == 0


def test_patch_completion_is_idempotent(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)
    lifecycle.apply_update(session.id, {"current_question_index": 1})
    changes = {"status": SessionStatus.COMPLETED, "current_question_index": 2}

    completed = lifecycle.apply_update(session.id, changes)
    repeated = lifecycle.apply_update(session.id, changes)

    assert completed.status is SessionStatus.COMPLETED
    assert completed.ended_at is not None
    assert repeated.ended_at == completed.ended_at
    assert repeated == completed


def test_completed_session_cannot_reopen(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)
    lifecycle.complete(session.id)

    with pytest.raises(SessionTransitionError):
        lifecycle.apply_update(session.id, {"status": "active"})
    with pytest.raises(SessionTransitionError):
        lifecycle.apply_update(session.id, {"current_question_index": 1})


def test_waiting_cannot_jump_to_completed(lifecycle: SessionLifecycle, session) -> None:
    with pytest.raises(SessionTransitionError):
        lifecycle.apply_update(session.id, {"status": "completed"})


def test_patch_index_out_of_range(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)

    with pytest.raises(ValueError):
        lifecycle.apply_update(session.id, {"current_question_index": 3})
    with pytest.raises(ValueError):
        lifecycle.apply_update(session.id, {"current_question_index": -1})


def test_patch_rejects_unknown_fields(lifecycle: SessionLifecycle, session) -> None:
    with pytest.raises(ValueError):
        lifecycle.apply_update(session.id, {"pin": "111111"})


def test_patch_index_must_be_integer(lifecycle: SessionLifecycle, session) -> None:
    lifecycle.start(session.id)

    with pytest.raises(ValueError):
        lifecycle.apply_update(session.id, {"current_question_index": None})
