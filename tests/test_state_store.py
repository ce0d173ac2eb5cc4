"""Tests for the game state reducer and store."""

import pytest

from trivia_app.core.models import (
    AnswerOption,
    GameStatus,
    GameSummary,
    QuestionPresentation,
    Session,
    SessionStatus,
    UserProfile,
)
from trivia_app.core.state_store import (
    AnswerRevealed,
    CategoriesLoaded,
    ErrorChanged,
    GameCompleted,
    GameReset,
    GameResumed,
    GameStarted,
    GameStatusChanged,
    GameState,
    LoadingChanged,
    OperationStarted,
    QuestionAdvanced,
    SessionChanged,
    SessionCreated,
    StateStore,
    SummaryLoaded,
    UserProfileLoaded,
    reduce,
)


def _session(**overrides):
    values = dict(
        id="s1",
        user_id="u1",
        total_rounds=2,
        questions_per_round=2,
        categories=("science",),
        status=SessionStatus.ACTIVE,
    )
    values.update(overrides)
    return Session(**values)


def _question(question_id="g1", sequence_number=1):
    return QuestionPresentation(
        id=question_id,
        session_id="s1",
        sequence_number=sequence_number,
        round_number=1,
        category="science",
        question_text="What is the chemical symbol for gold?",
        options=tuple(
            AnswerOption(label, text) for label, text in zip("ABCD", ("Ag", "Au", "Gd", "Go"))
        ),
        total_questions=4,
    )


def _summary():
    return GameSummary(session_id="s1", total_score=3, total_questions=4, correct_answers=3, total_duration_ms=1200)


def test_error_ends_loading():
    state = reduce(GameState(), LoadingChanged(True))
    state = reduce(state, ErrorChanged("boom"))

    assert state.error == "boom"
    assert state.loading is False


def test_game_started_sets_session_and_question_together():
    state = reduce(GameState(), SessionCreated(_session(status=SessionStatus.SETUP)))
    assert state.game_status is GameStatus.SETUP

    state = reduce(state, GameStarted(_session(), _question()))

    assert state.game_status is GameStatus.PLAYING
    assert state.session.status is SessionStatus.ACTIVE
    assert state.question.id == "g1"


def test_answer_revealed_fills_in_correct_answer():
    playing = reduce(GameState(), GameStarted(_session(), _question()))
    refreshed = _session(score=1, current_question_index=1)

    state = reduce(playing, AnswerRevealed(session=refreshed, is_correct=True, correct_answer="Au"))

    assert state.question.correct_answer == "Au"
    assert playing.question.correct_answer is None
    assert state.session.score == 1
    assert state.show_result is True
    assert state.last_answer_correct is True


def test_answer_revealed_without_session_keeps_current():
    playing = reduce(GameState(), GameStarted(_session(), _question()))

    state = reduce(playing, AnswerRevealed(session=None, is_correct=False, correct_answer="Au"))

    assert state.session is playing.session
    assert state.last_correct_answer == "Au"


def test_question_advanced_hides_result():
    state = reduce(GameState(), GameStarted(_session(), _question()))
    state = reduce(state, AnswerRevealed(session=None, is_correct=True, correct_answer="Au"))

    state = reduce(state, QuestionAdvanced(_question("g2", 2)))

    assert state.question.id == "g2"
    assert state.show_result is False
    assert state.last_answer_correct is None


def test_game_completed_keeps_loaded_summary():
    state = reduce(GameState(), SummaryLoaded(_summary()))

    state = reduce(state, GameCompleted())

    assert state.game_status is GameStatus.COMPLETED
    assert state.summary.total_score == 3


def test_resume_clears_summary():
    state = reduce(GameState(), GameCompleted(_summary()))

    state = reduce(state, GameResumed(_question("g3", 3)))

    assert state.game_status is GameStatus.PLAYING
    assert state.summary is None


def test_reset_keeps_profile_and_categories():
    state = reduce(GameState(), UserProfileLoaded(UserProfile(id="u1", username="Quizzer")))
    state = reduce(state, CategoriesLoaded(("science",)))
    state = reduce(state, GameStarted(_session(), _question()))

    state = reduce(state, GameReset())

    assert state.session is None
    assert state.question is None
    assert state.game_status is GameStatus.IDLE
    assert state.user_profile.username == "Quizzer"
    assert state.available_categories == ("science",)


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        reduce(GameState(), object())


def test_store_notifies_subscribers_with_new_snapshot():
    store = StateStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.dispatch(GameStarted(_session(), _question()))
    unsubscribe()
    store.dispatch(GameReset())

    assert len(seen) == 1
    assert seen[0].game_status is GameStatus.PLAYING
    assert store.state.game_status is GameStatus.IDLE


def test_plain_field_events():
    state = reduce(GameState(), SessionChanged(_session()))
    state = reduce(state, GameStatusChanged(GameStatus.PAUSED))

    assert state.session.id == "s1"
    assert state.game_status is GameStatus.PAUSED
    assert state.question is None


def test_operation_started_sets_loading_and_clears_error():
    state = reduce(GameState(), ErrorChanged("previous failure"))

    state = reduce(state, OperationStarted())

    assert state.loading is True
    assert state.error is None
