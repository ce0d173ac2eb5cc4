"""Domain models for the trivia game session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle status of a session as stored by the session service."""

    SETUP = "setup"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class GameStatus(str, Enum):
    """Flow state exposed to the presentation layer."""

    IDLE = "idle"
    SETUP = "setup"
    PLAYING = "playing"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(slots=True)
class TriviaQuestion:
    """Question bank entry with four options, one of them correct."""

    id: str
    category: str
    question_text: str
    options: list[str]
    correct_option_index: int

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_option_index]


@dataclass(slots=True, frozen=True)
class SessionConfig:
    """Parameters for a new session."""

    total_rounds: int
    questions_per_round: int
    categories: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class Session:
    """One playthrough. The service copy is authoritative."""

    id: str
    user_id: str
    total_rounds: int
    questions_per_round: int
    categories: tuple[str, ...]
    status: SessionStatus = SessionStatus.SETUP
    current_round: int = 1
    current_question_index: int = 0
    score: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    total_duration_ms: int | None = None

    @property
    def total_questions(self) -> int:
        return self.total_rounds * self.questions_per_round

    def position_is_valid(self) -> bool:
        """Check the round/question bounds required while the game is in play."""
        if self.status not in (SessionStatus.ACTIVE, SessionStatus.PAUSED):
            return True
        return (
            1 <= self.current_round <= self.total_rounds
            and 0 <= self.current_question_index < self.questions_per_round
        )


@dataclass(slots=True, frozen=True)
class SessionPatch:
    """Partial update applied through ``update_session``."""

    status: SessionStatus | None = None
    end_time: datetime | None = None


@dataclass(slots=True, frozen=True)
class AnswerOption:
    label: str
    text: str


@dataclass(slots=True, frozen=True)
class QuestionPresentation:
    """A question as shown to the player.

    ``correct_answer`` stays ``None`` until the verdict for this question has
    been revealed.
    """

    id: str
    session_id: str
    sequence_number: int
    round_number: int
    category: str
    question_text: str
    options: tuple[AnswerOption, ...]
    total_questions: int
    correct_answer: str | None = None

    def option_texts(self) -> list[str]:
        return [option.text for option in self.options]


@dataclass(slots=True, frozen=True)
class StartedSession:
    session: Session
    first_question: QuestionPresentation


@dataclass(slots=True, frozen=True)
class SubmitAnswerRequest:
    session_id: str
    question_id: str
    answer_text: str
    elapsed_ms: int


@dataclass(slots=True, frozen=True)
class AnswerResult:
    """Verdict for one submission, consumed immediately by the answer pipeline."""

    is_correct: bool
    correct_answer: str
    round_complete: bool = False
    game_complete: bool = False
    updated_score: int = 0
    next_question: QuestionPresentation | None = None


@dataclass(slots=True, frozen=True)
class RoundSummary:
    round_number: int
    correct_answers: int
    total_questions: int
    round_score: int
    duration_ms: int

    @property
    def accuracy_percentage(self) -> float:
        if not self.total_questions:
            return 0.0
        return (self.correct_answers / self.total_questions) * 100


@dataclass(slots=True, frozen=True)
class CategorySummary:
    category: str
    correct_answers: int
    total_questions: int

    @property
    def accuracy_percentage(self) -> float:
        if not self.total_questions:
            return 0.0
        return (self.correct_answers / self.total_questions) * 100


@dataclass(slots=True, frozen=True)
class GameSummary:
    """Terminal aggregate for a completed session."""

    session_id: str
    total_score: int
    total_questions: int
    correct_answers: int
    total_duration_ms: int
    rounds: tuple[RoundSummary, ...] = ()
    categories: tuple[CategorySummary, ...] = ()
    personal_best: bool = False

    @property
    def accuracy_percentage(self) -> float:
        if not self.total_questions:
            return 0.0
        return (self.correct_answers / self.total_questions) * 100


@dataclass(slots=True, frozen=True)
class UserProfile:
    id: str
    username: str
    total_games_played: int = 0
    total_correct_answers: int = 0
    total_questions_answered: int = 0
    favorite_categories: tuple[str, ...] = field(default_factory=tuple)
