"""Wire schemas shared by the FastAPI server and the HTTP client."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

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
    UserProfile,
)


class _DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CreateSessionPayload(BaseModel):
    """Payload schema for creating a session."""

    user_id: str = Field(min_length=1)
    total_rounds: int = Field(ge=1)
    questions_per_round: int = Field(ge=1)
    categories: list[str] = Field(min_length=1)

    def to_config(self) -> SessionConfig:
        return SessionConfig(
            total_rounds=self.total_rounds,
            questions_per_round=self.questions_per_round,
            categories=tuple(self.categories),
        )


class SubmitAnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    question_id: str
    answer_text: str
    elapsed_ms: int = Field(ge=0)


class SessionPatchPayload(BaseModel):
    status: SessionStatus | None = None
    end_time: datetime | None = None

    def to_patch(self) -> SessionPatch:
        return SessionPatch(status=self.status, end_time=self.end_time)


class CreateProfilePayload(BaseModel):
    user_id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    favorite_categories: list[str] = Field(default_factory=list)


class SessionModel(_DomainModel):
    id: str
    user_id: str
    total_rounds: int
    questions_per_round: int
    categories: list[str]
    status: SessionStatus
    current_round: int
    current_question_index: int
    score: int
    start_time: datetime | None = None
    end_time: datetime | None = None
    total_duration_ms: int | None = None

    def to_domain(self) -> Session:
        return Session(
            id=self.id,
            user_id=self.user_id,
            total_rounds=self.total_rounds,
            questions_per_round=self.questions_per_round,
            categories=tuple(self.categories),
            status=self.status,
            current_round=self.current_round,
            current_question_index=self.current_question_index,
            score=self.score,
            start_time=self.start_time,
            end_time=self.end_time,
            total_duration_ms=self.total_duration_ms,
        )


class AnswerOptionModel(_DomainModel):
    label: str
    text: str


class QuestionModel(_DomainModel):
    """Question as served before it is answered; carries no correct answer."""

    id: str
    session_id: str
    sequence_number: int
    round_number: int
    category: str
    question_text: str
    options: list[AnswerOptionModel]
    total_questions: int

    def to_domain(self) -> QuestionPresentation:
        return QuestionPresentation(
            id=self.id,
            session_id=self.session_id,
            sequence_number=self.sequence_number,
            round_number=self.round_number,
            category=self.category,
            question_text=self.question_text,
            options=tuple(AnswerOption(label=o.label, text=o.text) for o in self.options),
            total_questions=self.total_questions,
        )


class StartedSessionModel(_DomainModel):
    session: SessionModel
    first_question: QuestionModel

    def to_domain(self) -> StartedSession:
        return StartedSession(
            session=self.session.to_domain(),
            first_question=self.first_question.to_domain(),
        )


class AnswerResultModel(_DomainModel):
    is_correct: bool
    correct_answer: str
    round_complete: bool = False
    game_complete: bool = False
    updated_score: int = 0
    next_question: QuestionModel | None = None

    def to_domain(self) -> AnswerResult:
        return AnswerResult(
            is_correct=self.is_correct,
            correct_answer=self.correct_answer,
            round_complete=self.round_complete,
            game_complete=self.game_complete,
            updated_score=self.updated_score,
            next_question=self.next_question.to_domain() if self.next_question else None,
        )


class RoundSummaryModel(_DomainModel):
    round_number: int
    correct_answers: int
    total_questions: int
    round_score: int
    duration_ms: int
    accuracy_percentage: float = 0.0


class CategorySummaryModel(_DomainModel):
    category: str
    correct_answers: int
    total_questions: int
    accuracy_percentage: float = 0.0


class GameSummaryModel(_DomainModel):
    session_id: str
    total_score: int
    total_questions: int
    correct_answers: int
    total_duration_ms: int
    accuracy_percentage: float = 0.0
    rounds: list[RoundSummaryModel] = Field(default_factory=list)
    categories: list[CategorySummaryModel] = Field(default_factory=list)
    personal_best: bool = False

    def to_domain(self) -> GameSummary:
        return GameSummary(
            session_id=self.session_id,
            total_score=self.total_score,
            total_questions=self.total_questions,
            correct_answers=self.correct_answers,
            total_duration_ms=self.total_duration_ms,
            rounds=tuple(
                RoundSummary(
                    round_number=r.round_number,
                    correct_answers=r.correct_answers,
                    total_questions=r.total_questions,
                    round_score=r.round_score,
                    duration_ms=r.duration_ms,
                )
                for r in self.rounds
            ),
            categories=tuple(
                CategorySummary(
                    category=c.category,
                    correct_answers=c.correct_answers,
                    total_questions=c.total_questions,
                )
                for c in self.categories
            ),
            personal_best=self.personal_best,
        )


class UserProfileModel(_DomainModel):
    id: str
    username: str
    total_games_played: int = 0
    total_correct_answers: int = 0
    total_questions_answered: int = 0
    favorite_categories: list[str] = Field(default_factory=list)

    def to_domain(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            username=self.username,
            total_games_played=self.total_games_played,
            total_correct_answers=self.total_correct_answers,
            total_questions_answered=self.total_questions_answered,
            favorite_categories=tuple(self.favorite_categories),
        )
