"""Interfaces of the collaborators consumed by the session controller."""

from __future__ import annotations

from typing import Protocol

from trivia_app.core.errors import ServiceError, ValidationError
from trivia_app.core.models import (
    AnswerResult,
    GameSummary,
    QuestionPresentation,
    Session,
    SessionConfig,
    SessionPatch,
    StartedSession,
    SubmitAnswerRequest,
    UserProfile,
)


class SessionService(Protocol):
    """Question/Session service. Its copy of every session is authoritative."""

    async def get_available_categories(self) -> list[str]: ...

    async def get_user_profile(self, user_id: str) -> UserProfile | None: ...

    async def create_user_profile(
        self,
        user_id: str,
        username: str,
        favorite_categories: tuple[str, ...] = (),
    ) -> UserProfile: ...

    async def create_session(self, user_id: str, config: SessionConfig) -> Session: ...

    async def start_session(self, session_id: str) -> StartedSession: ...

    async def get_session(self, session_id: str) -> Session: ...

    async def submit_answer(self, request: SubmitAnswerRequest) -> AnswerResult: ...

    async def pause_session(self, session_id: str) -> None: ...

    async def resume_session(self, session_id: str) -> QuestionPresentation: ...

    async def complete_session(self, session_id: str) -> GameSummary: ...

    async def get_summary(self, session_id: str) -> GameSummary: ...

    async def update_session(self, session_id: str, patch: SessionPatch) -> Session: ...

    async def list_sessions(self, user_id: str) -> list[Session]: ...


class IdentityProvider(Protocol):
    def current_user_id(self) -> str | None: ...


class StaticIdentityProvider:
    """Identity provider returning a fixed user id (``None`` when signed out)."""

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id

    def current_user_id(self) -> str | None:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id

    def sign_out(self) -> None:
        self._user_id = None


def validate_session_config(config: SessionConfig) -> SessionConfig:
    """Return a normalized copy of ``config`` or raise ValidationError."""
    if not isinstance(config.total_rounds, int) or config.total_rounds < 1:
        raise ValidationError("A game needs at least one round.")
    if not isinstance(config.questions_per_round, int) or config.questions_per_round < 1:
        raise ValidationError("Each round needs at least one question.")
    categories = tuple(
        dict.fromkeys(c.strip().lower() for c in config.categories if c and c.strip())
    )
    if not categories:
        raise ValidationError("Select at least one category.")
    return SessionConfig(
        total_rounds=config.total_rounds,
        questions_per_round=config.questions_per_round,
        categories=categories,
    )


def ensure_valid_position(session: Session) -> Session:
    """Reject a session whose round/question position is out of bounds while in play."""
    if not session.position_is_valid():
        raise ServiceError(
            f"Service returned session {session.id} at round {session.current_round}, "
            f"question index {session.current_question_index}, outside "
            f"{session.total_rounds} round(s) of {session.questions_per_round}."
        )
    return session
