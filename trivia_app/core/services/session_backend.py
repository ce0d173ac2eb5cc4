"""In-memory session service holding the authoritative copy of every session."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
import logging
import random
from threading import Lock
from uuid import uuid4

from trivia_app.constants.game_constants import ANSWER_LABELS, POINTS_PER_CORRECT_ANSWER
from trivia_app.core.errors import ConflictError, NotFoundError, ServiceError, ValidationError
from trivia_app.core.models import (
    AnswerOption,
    AnswerResult,
    CategorySummary,
    GameSummary,
    QuestionPresentation,
    RoundSummary,
    Session,
    SessionConfig,
    SessionPatch,
    SessionStatus,
    StartedSession,
    SubmitAnswerRequest,
    TriviaQuestion,
    UserProfile,
)
from trivia_app.core.services.question_bank import QuestionBank
from trivia_app.core.services.session_service import validate_session_config

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class _GameQuestion:
    """A bank question placed into a session, with its shuffled options."""

    id: str
    question: TriviaQuestion
    sequence_number: int
    round_number: int
    presented_options: list[str]
    user_answer: str | None = None
    is_correct: bool | None = None
    elapsed_ms: int | None = None
    points_awarded: int = 0


@dataclass(slots=True)
class _SessionRecord:
    session: Session
    questions: list[_GameQuestion]
    created_at: datetime
    answered_count: int = 0

    def current_question(self) -> _GameQuestion | None:
        if self.answered_count >= len(self.questions):
            return None
        return self.questions[self.answered_count]


class InMemorySessionService:
    """Reference implementation of the Question/Session service.

    Performs the server-side bookkeeping: drawing questions, scoring answers,
    advancing round/question positions and aggregating summaries.
    """

    def __init__(self, question_bank: QuestionBank, seed: int | None = None) -> None:
        self._lock = Lock()
        self._bank = question_bank
        self._rng = random.Random(seed)
        self._records: dict[str, _SessionRecord] = {}
        self._profiles: dict[str, UserProfile] = {}

    # --- Catalogue & profiles ---

    async def get_available_categories(self) -> list[str]:
        with self._lock:
            return self._bank.get_categories()

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        with self._lock:
            return self._profiles.get(user_id)

    async def create_user_profile(
        self,
        user_id: str,
        username: str,
        favorite_categories: tuple[str, ...] = (),
    ) -> UserProfile:
        cleaned = username.strip()
        if not cleaned:
            raise ValidationError("Username must not be empty.")
        with self._lock:
            if user_id in self._profiles:
                raise ConflictError(f"Profile for user {user_id} already exists.")
            profile = UserProfile(
                id=user_id,
                username=cleaned,
                favorite_categories=tuple(favorite_categories),
            )
            self._profiles[user_id] = profile
            return profile

    # --- Session lifecycle ---

    async def create_session(self, user_id: str, config: SessionConfig) -> Session:
        config = validate_session_config(config)
        with self._lock:
            unknown = set(config.categories) - set(self._bank.get_categories())
            if unknown:
                raise ValidationError(f"Unknown categories: {', '.join(sorted(unknown))}")
            required = config.total_rounds * config.questions_per_round
            available = self._bank.count_for_categories(config.categories)
            if available < required:
                raise ValidationError(
                    f"Only {available} question(s) available for the selected categories; "
                    f"{required} required."
                )
            session = Session(
                id=uuid4().hex,
                user_id=user_id,
                total_rounds=config.total_rounds,
                questions_per_round=config.questions_per_round,
                categories=config.categories,
            )
            self._records[session.id] = _SessionRecord(
                session=session, questions=[], created_at=_utcnow()
            )
            logger.info("Created session %s for user %s", session.id, user_id)
            return session

    async def start_session(self, session_id: str) -> StartedSession:
        with self._lock:
            record = self._get_record(session_id)
            session = record.session
            if session.status is not SessionStatus.SETUP:
                raise ConflictError("Game session is not in setup state.")

            drawn = self._bank.draw(
                session.categories,
                session.total_questions,
                self._rng,
                exclude_ids=self._used_question_ids(session.user_id),
            )
            record.questions = [
                self._place_question(question, index, session.questions_per_round)
                for index, question in enumerate(drawn)
            ]
            first = record.current_question()
            if first is None:
                raise ServiceError(f"No questions could be drawn for game session {session_id}.")
            record.session = replace(
                session,
                status=SessionStatus.ACTIVE,
                start_time=_utcnow(),
                current_round=1,
                current_question_index=0,
            )
            return StartedSession(
                session=record.session,
                first_question=self._present(record, first),
            )

    async def get_session(self, session_id: str) -> Session:
        with self._lock:
            return self._get_record(session_id).session

    async def submit_answer(self, request: SubmitAnswerRequest) -> AnswerResult:
        with self._lock:
            record = self._get_record(request.session_id)
            session = record.session
            if session.status is not SessionStatus.ACTIVE:
                raise ConflictError(f"Game session is {session.status.value}, not active.")
            current = record.current_question()
            if current is None or current.id != request.question_id:
                raise ConflictError("Question is not the current question of this session.")

            is_correct = request.answer_text == current.question.correct_answer
            current.user_answer = request.answer_text
            current.is_correct = is_correct
            current.elapsed_ms = max(0, int(request.elapsed_ms))
            current.points_awarded = POINTS_PER_CORRECT_ANSWER if is_correct else 0
            record.answered_count += 1

            answered = record.answered_count
            per_round = session.questions_per_round
            game_complete = answered >= session.total_questions
            round_complete = answered % per_round == 0
            new_score = session.score + current.points_awarded

            if game_complete:
                end_time = _utcnow()
                record.session = replace(
                    session,
                    score=new_score,
                    status=SessionStatus.COMPLETED,
                    end_time=end_time,
                    total_duration_ms=self._duration_ms(session.start_time, end_time),
                )
                self._record_profile_totals(record)
            else:
                record.session = replace(
                    session,
                    score=new_score,
                    current_round=answered // per_round + 1,
                    current_question_index=answered % per_round,
                )

            next_game_question = None if game_complete else record.current_question()
            return AnswerResult(
                is_correct=is_correct,
                correct_answer=current.question.correct_answer,
                round_complete=round_complete,
                game_complete=game_complete,
                updated_score=new_score,
                next_question=(
                    self._present(record, next_game_question) if next_game_question else None
                ),
            )

    async def pause_session(self, session_id: str) -> None:
        with self._lock:
            record = self._get_record(session_id)
            if record.session.status is not SessionStatus.ACTIVE:
                raise ConflictError("Only an active game can be paused.")
            record.session = replace(record.session, status=SessionStatus.PAUSED)

    async def resume_session(self, session_id: str) -> QuestionPresentation:
        with self._lock:
            record = self._get_record(session_id)
            if record.session.status not in (SessionStatus.PAUSED, SessionStatus.ACTIVE):
                raise ConflictError("Only a paused game can be resumed.")
            current = record.current_question()
            if current is None:
                raise ConflictError("No current question available.")
            record.session = replace(record.session, status=SessionStatus.ACTIVE)
            return self._present(record, current)

    async def complete_session(self, session_id: str) -> GameSummary:
        with self._lock:
            record = self._get_record(session_id)
            status = record.session.status
            if status in (SessionStatus.ACTIVE, SessionStatus.PAUSED):
                end_time = _utcnow()
                record.session = replace(
                    record.session,
                    status=SessionStatus.COMPLETED,
                    end_time=end_time,
                    total_duration_ms=self._duration_ms(record.session.start_time, end_time),
                )
                self._record_profile_totals(record)
            elif status is not SessionStatus.COMPLETED:
                raise ConflictError(f"A {status.value} game cannot be completed.")
            return self._summarize(record)

    async def get_summary(self, session_id: str) -> GameSummary:
        with self._lock:
            record = self._get_record(session_id)
            if record.session.status is not SessionStatus.COMPLETED:
                raise ConflictError("Summary is only available for completed games.")
            return self._summarize(record)

    async def update_session(self, session_id: str, patch: SessionPatch) -> Session:
        with self._lock:
            record = self._get_record(session_id)
            status = record.session.status
            if status in (SessionStatus.COMPLETED, SessionStatus.ABANDONED):
                raise ConflictError(f"Game session is already {status.value}.")
            changes: dict[str, object] = {}
            if patch.status is not None:
                changes["status"] = patch.status
            if patch.end_time is not None:
                changes["end_time"] = patch.end_time
            record.session = replace(record.session, **changes)
            return record.session

    async def list_sessions(self, user_id: str) -> list[Session]:
        with self._lock:
            # Newest first; insertion order breaks timestamp ties.
            records = [r for r in reversed(self._records.values()) if r.session.user_id == user_id]
            records.sort(key=lambda r: r.created_at, reverse=True)
            return [r.session for r in records]

    # --- Helpers ---

    def _get_record(self, session_id: str) -> _SessionRecord:
        record = self._records.get(session_id)
        if record is None:
            raise NotFoundError(f"Game session {session_id} not found.")
        return record

    def _used_question_ids(self, user_id: str) -> set[str]:
        return {
            game_question.question.id
            for record in self._records.values()
            if record.session.user_id == user_id
            for game_question in record.questions
        }

    def _place_question(
        self, question: TriviaQuestion, index: int, questions_per_round: int
    ) -> _GameQuestion:
        presented = list(question.options)
        self._rng.shuffle(presented)
        return _GameQuestion(
            id=uuid4().hex,
            question=question,
            sequence_number=index + 1,
            round_number=index // questions_per_round + 1,
            presented_options=presented,
        )

    @staticmethod
    def _present(record: _SessionRecord, game_question: _GameQuestion) -> QuestionPresentation:
        # The correct answer never leaves the service before the question is answered.
        return QuestionPresentation(
            id=game_question.id,
            session_id=record.session.id,
            sequence_number=game_question.sequence_number,
            round_number=game_question.round_number,
            category=game_question.question.category,
            question_text=game_question.question.question_text,
            options=tuple(
                AnswerOption(label=label, text=text)
                for label, text in zip(ANSWER_LABELS, game_question.presented_options)
            ),
            total_questions=record.session.total_questions,
        )

    @staticmethod
    def _duration_ms(start: datetime | None, end: datetime) -> int | None:
        if start is None:
            return None
        return int((end - start).total_seconds() * 1000)

    def _record_profile_totals(self, record: _SessionRecord) -> None:
        profile = self._profiles.get(record.session.user_id)
        if profile is None:
            return
        answered = [q for q in record.questions if q.is_correct is not None]
        self._profiles[profile.id] = replace(
            profile,
            total_games_played=profile.total_games_played + 1,
            total_correct_answers=profile.total_correct_answers
            + sum(1 for q in answered if q.is_correct),
            total_questions_answered=profile.total_questions_answered + len(answered),
        )

    def _summarize(self, record: _SessionRecord) -> GameSummary:
        session = record.session
        answered = [q for q in record.questions if q.is_correct is not None]

        rounds: dict[int, list[_GameQuestion]] = {}
        categories: dict[str, list[_GameQuestion]] = {}
        for game_question in answered:
            rounds.setdefault(game_question.round_number, []).append(game_question)
            categories.setdefault(game_question.question.category, []).append(game_question)

        round_summaries = tuple(
            RoundSummary(
                round_number=number,
                correct_answers=sum(1 for q in items if q.is_correct),
                total_questions=len(items),
                round_score=sum(q.points_awarded for q in items),
                duration_ms=sum(q.elapsed_ms or 0 for q in items),
            )
            for number, items in sorted(rounds.items())
        )
        category_summaries = tuple(
            CategorySummary(
                category=name,
                correct_answers=sum(1 for q in items if q.is_correct),
                total_questions=len(items),
            )
            for name, items in sorted(categories.items())
        )

        other_scores = [
            r.session.score
            for r in self._records.values()
            if r.session.user_id == session.user_id
            and r.session.id != session.id
            and r.session.status is SessionStatus.COMPLETED
        ]
        return GameSummary(
            session_id=session.id,
            total_score=session.score,
            total_questions=session.total_questions,
            correct_answers=sum(1 for q in answered if q.is_correct),
            total_duration_ms=session.total_duration_ms or 0,
            rounds=round_summaries,
            categories=category_summaries,
            personal_best=not other_scores or session.score >= max(other_scores),
        )
