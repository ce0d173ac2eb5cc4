"""Tests for the in-memory session service."""

import pytest

from trivia_app.core.errors import ConflictError, NotFoundError, ServiceError, ValidationError
from trivia_app.core.models import SessionConfig, SessionPatch, SessionStatus, SubmitAnswerRequest

from conftest import USER_ID, correct_answer_for, wrong_answer_for


async def _answer(backend, question_bank, question, correct=True):
    text = correct_answer_for(question_bank, question) if correct else wrong_answer_for(question_bank, question)
    return await backend.submit_answer(
        SubmitAnswerRequest(
            session_id=question.session_id,
            question_id=question.id,
            answer_text=text,
            elapsed_ms=400,
        )
    )


async def _started(backend, rounds=2, per_round=2, categories=("science",)):
    session = await backend.create_session(USER_ID, SessionConfig(rounds, per_round, categories))
    return await backend.start_session(session.id)


@pytest.mark.asyncio
async def test_create_session_normalizes_categories(backend):
    session = await backend.create_session(USER_ID, SessionConfig(1, 2, (" Science ", "science")))

    assert session.categories == ("science",)
    assert session.status is SessionStatus.SETUP


@pytest.mark.asyncio
async def test_create_session_rejects_unknown_category(backend):
    with pytest.raises(ValidationError, match="Unknown categories: art"):
        await backend.create_session(USER_ID, SessionConfig(1, 1, ("art",)))


@pytest.mark.asyncio
async def test_start_session_hides_correct_answer(backend):
    started = await _started(backend)

    assert started.session.status is SessionStatus.ACTIVE
    assert started.session.start_time is not None
    assert started.first_question.correct_answer is None
    assert [o.label for o in started.first_question.options] == ["A", "B", "C", "D"]
    assert started.first_question.total_questions == 4


@pytest.mark.asyncio
async def test_start_twice_conflicts(backend):
    started = await _started(backend)

    with pytest.raises(ConflictError):
        await backend.start_session(started.session.id)


@pytest.mark.asyncio
async def test_full_game_positions_and_flags(backend, question_bank):
    started = await _started(backend)
    question = started.first_question
    flags = []
    positions = []

    for correct in (True, False, True, True):
        result = await _answer(backend, question_bank, question, correct)
        session = await backend.get_session(question.session_id)
        flags.append((result.round_complete, result.game_complete))
        positions.append((session.current_round, session.current_question_index))
        question = result.next_question

    assert flags == [(False, False), (True, False), (False, False), (True, True)]
    assert positions[:3] == [(1, 1), (2, 0), (2, 1)]
    assert question is None

    session = await backend.get_session(started.session.id)
    assert session.status is SessionStatus.COMPLETED
    assert session.score == 3
    assert session.end_time is not None
    assert session.total_duration_ms is not None


@pytest.mark.asyncio
async def test_answer_for_other_question_conflicts(backend, question_bank):
    started = await _started(backend)

    with pytest.raises(ConflictError):
        await backend.submit_answer(
            SubmitAnswerRequest(started.session.id, "not-current", "Au", 100)
        )


@pytest.mark.asyncio
async def test_pause_blocks_answers_until_resumed(backend, question_bank):
    started = await _started(backend)
    await backend.pause_session(started.session.id)

    with pytest.raises(ConflictError):
        await _answer(backend, question_bank, started.first_question)

    question = await backend.resume_session(started.session.id)
    assert question.id == started.first_question.id
    result = await _answer(backend, question_bank, question)
    assert result.is_correct is True


@pytest.mark.asyncio
async def test_summary_only_after_completion(backend, question_bank):
    started = await _started(backend, rounds=1, per_round=2, categories=("science", "history"))

    with pytest.raises(ConflictError):
        await backend.get_summary(started.session.id)

    result = await _answer(backend, question_bank, started.first_question, correct=True)
    await _answer(backend, question_bank, result.next_question, correct=False)
    summary = await backend.get_summary(started.session.id)

    assert summary.total_score == 1
    assert summary.correct_answers == 1
    assert summary.accuracy_percentage == 50.0
    assert summary.rounds[0].duration_ms == 800
    assert sum(c.total_questions for c in summary.categories) == 2
    assert summary.personal_best is True


@pytest.mark.asyncio
async def test_personal_best_compares_previous_games(backend, question_bank):
    first = await _started(backend, rounds=1, per_round=1)
    await _answer(backend, question_bank, first.first_question, correct=True)
    second = await _started(backend, rounds=1, per_round=1)
    await _answer(backend, question_bank, second.first_question, correct=False)

    summary = await backend.get_summary(second.session.id)

    assert summary.personal_best is False


@pytest.mark.asyncio
async def test_new_game_avoids_seen_questions(backend):
    first = await _started(backend, rounds=1, per_round=2)
    second = await _started(backend, rounds=1, per_round=2)

    assert first.first_question.question_text != second.first_question.question_text


@pytest.mark.asyncio
async def test_complete_session_from_paused(backend):
    started = await _started(backend)
    await backend.pause_session(started.session.id)

    summary = await backend.complete_session(started.session.id)

    assert summary.correct_answers == 0
    assert (await backend.get_session(started.session.id)).status is SessionStatus.COMPLETED


@pytest.mark.asyncio
async def test_complete_setup_session_conflicts(backend):
    session = await backend.create_session(USER_ID, SessionConfig(1, 1, ("science",)))

    with pytest.raises(ConflictError):
        await backend.complete_session(session.id)


@pytest.mark.asyncio
async def test_update_and_list_sessions(backend):
    older = await backend.create_session(USER_ID, SessionConfig(1, 1, ("science",)))
    newer = await backend.create_session(USER_ID, SessionConfig(1, 1, ("history",)))
    await backend.create_session("someone-else", SessionConfig(1, 1, ("history",)))

    updated = await backend.update_session(older.id, SessionPatch(status=SessionStatus.ABANDONED))
    sessions = await backend.list_sessions(USER_ID)

    assert updated.status is SessionStatus.ABANDONED
    assert [s.id for s in sessions] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_unknown_session_is_not_found(backend):
    with pytest.raises(NotFoundError, match="Game session nope not found."):
        await backend.get_session("nope")


@pytest.mark.asyncio
async def test_profiles(backend):
    assert await backend.get_user_profile(USER_ID) is None

    profile = await backend.create_user_profile(USER_ID, "  Quizzer ", ("science",))

    assert profile.username == "Quizzer"
    assert await backend.get_user_profile(USER_ID) == profile
    with pytest.raises(ConflictError):
        await backend.create_user_profile(USER_ID, "Again")
    with pytest.raises(ValidationError):
        await backend.create_user_profile("user-2", "   ")


@pytest.mark.asyncio
async def test_finished_sessions_cannot_be_patched(backend, question_bank):
    started = await _started(backend, rounds=1, per_round=1)
    await _answer(backend, question_bank, started.first_question)
    abandoned = await backend.create_session(USER_ID, SessionConfig(1, 1, ("history",)))
    await backend.update_session(abandoned.id, SessionPatch(status=SessionStatus.ABANDONED))

    with pytest.raises(ConflictError, match="already completed"):
        await backend.update_session(started.session.id, SessionPatch(status=SessionStatus.ABANDONED))
    with pytest.raises(ConflictError, match="already abandoned"):
        await backend.update_session(abandoned.id, SessionPatch(status=SessionStatus.ACTIVE))

    assert (await backend.get_summary(started.session.id)).total_score == 1


@pytest.mark.asyncio
async def test_start_fails_cleanly_when_no_questions_drawn(backend, question_bank, monkeypatch):
    session = await backend.create_session(USER_ID, SessionConfig(1, 1, ("science",)))
    monkeypatch.setattr(question_bank, "draw", lambda *args, **kwargs: [])

    with pytest.raises(ServiceError, match="No questions could be drawn"):
        await backend.start_session(session.id)

    assert (await backend.get_session(session.id)).status is SessionStatus.SETUP
