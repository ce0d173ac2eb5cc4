"""Canonical game state and the events that transition it.

Every change to the game state is expressed as one of the event classes
below and applied by :func:`reduce`, a pure function returning a new
:class:`GameState`. :class:`StateStore` owns the current snapshot, swaps it
whole on each dispatch and notifies subscribers with the new snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from threading import Lock
from typing import Callable, Union

from trivia_app.core.models import (
    GameStatus,
    GameSummary,
    QuestionPresentation,
    Session,
    UserProfile,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GameState:
    # Cross-session data, kept on reset.
    user_profile: UserProfile | None = None
    available_categories: tuple[str, ...] = ()
    history: tuple[Session, ...] = ()

    # Session-scoped data.
    session: Session | None = None
    question: QuestionPresentation | None = None
    game_status: GameStatus = GameStatus.IDLE
    summary: GameSummary | None = None

    # UI flags.
    loading: bool = False
    error: str | None = None
    answering: bool = False
    show_result: bool = False
    last_answer_correct: bool | None = None
    last_correct_answer: str | None = None


@dataclass(slots=True, frozen=True)
class LoadingChanged:
    loading: bool


@dataclass(slots=True, frozen=True)
class ErrorChanged:
    message: str | None


@dataclass(slots=True, frozen=True)
class OperationStarted:
    """A service call began: loading on, previous error cleared."""


@dataclass(slots=True, frozen=True)
class UserProfileLoaded:
    profile: UserProfile | None


@dataclass(slots=True, frozen=True)
class CategoriesLoaded:
    categories: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class HistoryLoaded:
    sessions: tuple[Session, ...]


@dataclass(slots=True, frozen=True)
class SessionChanged:
    session: Session | None


@dataclass(slots=True, frozen=True)
class GameStatusChanged:
    status: GameStatus


@dataclass(slots=True, frozen=True)
class AnsweringChanged:
    answering: bool


@dataclass(slots=True, frozen=True)
class SummaryLoaded:
    summary: GameSummary | None


@dataclass(slots=True, frozen=True)
class SessionCreated:
    session: Session


@dataclass(slots=True, frozen=True)
class SessionAdopted:
    """A session set directly (e.g. picked from history) becomes the one in play."""

    session: Session


@dataclass(slots=True, frozen=True)
class GameStarted:
    session: Session
    question: QuestionPresentation


@dataclass(slots=True, frozen=True)
class AnswerRevealed:
    """Verdict of a submission together with the refreshed session."""

    session: Session | None
    is_correct: bool
    correct_answer: str


@dataclass(slots=True, frozen=True)
class QuestionAdvanced:
    question: QuestionPresentation


@dataclass(slots=True, frozen=True)
class GamePaused:
    pass


@dataclass(slots=True, frozen=True)
class GameResumed:
    question: QuestionPresentation
    session: Session | None = None


@dataclass(slots=True, frozen=True)
class GameCompleted:
    summary: GameSummary | None = None


@dataclass(slots=True, frozen=True)
class GameReset:
    pass


GameEvent = Union[
    LoadingChanged,
    ErrorChanged,
    OperationStarted,
    UserProfileLoaded,
    CategoriesLoaded,
    HistoryLoaded,
    SessionChanged,
    GameStatusChanged,
    AnsweringChanged,
    SummaryLoaded,
    SessionCreated,
    SessionAdopted,
    GameStarted,
    AnswerRevealed,
    QuestionAdvanced,
    GamePaused,
    GameResumed,
    GameCompleted,
    GameReset,
]

_HIDDEN_RESULT = {"show_result": False, "last_answer_correct": None, "last_correct_answer": None}


def reduce(state: GameState, event: GameEvent) -> GameState:
    """Return the state that results from applying ``event`` to ``state``."""
    if isinstance(event, LoadingChanged):
        return replace(state, loading=event.loading)
    if isinstance(event, ErrorChanged):
        # An error ends the operation in flight.
        return replace(state, error=event.message, loading=False)
    if isinstance(event, OperationStarted):
        return replace(state, loading=True, error=None)
    if isinstance(event, UserProfileLoaded):
        return replace(state, user_profile=event.profile)
    if isinstance(event, CategoriesLoaded):
        return replace(state, available_categories=tuple(event.categories))
    if isinstance(event, HistoryLoaded):
        return replace(state, history=tuple(event.sessions))
    if isinstance(event, SessionChanged):
        return replace(state, session=event.session)
    if isinstance(event, GameStatusChanged):
        return replace(state, game_status=event.status)
    if isinstance(event, AnsweringChanged):
        return replace(state, answering=event.answering)
    if isinstance(event, SummaryLoaded):
        return replace(state, summary=event.summary)
    if isinstance(event, SessionCreated):
        return replace(
            state,
            session=event.session,
            question=None,
            summary=None,
            game_status=GameStatus.SETUP,
            **_HIDDEN_RESULT,
        )
    if isinstance(event, SessionAdopted):
        return replace(state, session=event.session, game_status=GameStatus.PLAYING)
    if isinstance(event, GameStarted):
        return replace(
            state,
            session=event.session,
            question=event.question,
            game_status=GameStatus.PLAYING,
            **_HIDDEN_RESULT,
        )
    if isinstance(event, AnswerRevealed):
        question = state.question
        if question is not None:
            question = replace(question, correct_answer=event.correct_answer)
        return replace(
            state,
            session=event.session if event.session is not None else state.session,
            question=question,
            show_result=True,
            last_answer_correct=event.is_correct,
            last_correct_answer=event.correct_answer,
        )
    if isinstance(event, QuestionAdvanced):
        return replace(state, question=event.question, **_HIDDEN_RESULT)
    if isinstance(event, GamePaused):
        return replace(state, game_status=GameStatus.PAUSED)
    if isinstance(event, GameResumed):
        return replace(
            state,
            session=event.session if event.session is not None else state.session,
            question=event.question,
            game_status=GameStatus.PLAYING,
            summary=None,
            **_HIDDEN_RESULT,
        )
    if isinstance(event, GameCompleted):
        return replace(
            state,
            game_status=GameStatus.COMPLETED,
            summary=event.summary if event.summary is not None else state.summary,
        )
    if isinstance(event, GameReset):
        return GameState(
            user_profile=state.user_profile,
            available_categories=state.available_categories,
            history=state.history,
        )
    raise TypeError(f"Unknown game event: {event!r}")


Listener = Callable[[GameState], None]


@dataclass(slots=True)
class _Subscription:
    listener: Listener
    active: bool = field(default=True)


class StateStore:
    """Owns the single game state snapshot."""

    def __init__(self, initial: GameState | None = None) -> None:
        self._lock = Lock()
        self._state = initial or GameState()
        self._subscriptions: list[_Subscription] = []

    @property
    def state(self) -> GameState:
        with self._lock:
            return self._state

    def dispatch(self, event: GameEvent) -> GameState:
        with self._lock:
            self._state = reduce(self._state, event)
            new_state = self._state
            subscriptions = [s for s in self._subscriptions if s.active]
        logger.debug("Applied %s", type(event).__name__)
        for subscription in subscriptions:
            subscription.listener(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every new snapshot; returns an unsubscribe callable."""
        subscription = _Subscription(listener)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                subscription.active = False
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe
