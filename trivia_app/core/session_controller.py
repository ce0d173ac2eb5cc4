"""Game flow orchestration shared by every presentation layer."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import AsyncIterator, Callable

from trivia_app.constants.game_constants import ADVANCE_DELAY_MS
from trivia_app.core.answer_pipeline import AnswerPipeline
from trivia_app.core.errors import ConflictError, TriviaError, ValidationError
from trivia_app.core.models import (
    AnswerResult,
    GameStatus,
    QuestionPresentation,
    Session,
    SessionConfig,
    SessionPatch,
    SessionStatus,
)
from trivia_app.core.scheduling import AdvanceScheduler, QuestionClock
from trivia_app.core.services.session_service import (
    IdentityProvider,
    SessionService,
    ensure_valid_position,
    validate_session_config,
)
from trivia_app.core.state_store import (
    CategoriesLoaded,
    ErrorChanged,
    GameCompleted,
    GamePaused,
    GameReset,
    GameResumed,
    GameStarted,
    GameState,
    HistoryLoaded,
    LoadingChanged,
    OperationStarted,
    QuestionAdvanced,
    SessionAdopted,
    SessionCreated,
    StateStore,
    UserProfileLoaded,
)

logger = logging.getLogger(__name__)


class SessionController:
    """Drives one player's games: setup, play, pause/resume and completion.

    Every intent validates its preconditions against the store, calls the
    session service and applies the outcome to the store. Failures are
    stored in the error field and never raised to the caller.
    """

    def __init__(
        self,
        service: SessionService,
        identity: IdentityProvider,
        store: StateStore | None = None,
        advance_delay_ms: int = ADVANCE_DELAY_MS,
    ) -> None:
        self._service = service
        self._identity = identity
        self._store = store or StateStore()
        self._scheduler = AdvanceScheduler(advance_delay_ms)
        self._clock = QuestionClock()
        self._pipeline = AnswerPipeline(service, self._store, self._scheduler, self._clock)

    @property
    def state(self) -> GameState:
        return self._store.state

    @property
    def scheduler(self) -> AdvanceScheduler:
        return self._scheduler

    def subscribe(self, listener: Callable[[GameState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def answer_elapsed_ms(self) -> int:
        return self._clock.elapsed_ms()

    # --- Profile & catalogue ---

    async def load_user_profile(self, user_id: str | None = None) -> None:
        async with self._operation("Failed to load user profile"):
            profile = await self._service.get_user_profile(self._resolve_user_id(user_id))
            self._store.dispatch(UserProfileLoaded(profile))

    async def create_user_profile(
        self,
        username: str,
        favorite_categories: tuple[str, ...] = (),
        user_id: str | None = None,
    ) -> None:
        async with self._operation("Failed to create user profile"):
            profile = await self._service.create_user_profile(
                self._resolve_user_id(user_id), username, tuple(favorite_categories)
            )
            self._store.dispatch(UserProfileLoaded(profile))

    async def load_available_categories(self) -> None:
        async with self._operation("Failed to load categories"):
            categories = await self._service.get_available_categories()
            self._store.dispatch(CategoriesLoaded(tuple(categories)))

    async def load_game_history(self, user_id: str | None = None) -> None:
        async with self._operation("Failed to load game history"):
            sessions = await self._service.list_sessions(self._resolve_user_id(user_id))
            self._store.dispatch(HistoryLoaded(tuple(sessions)))

    # --- Game setup ---

    async def create_game_session(self, config: SessionConfig, user_id: str | None = None) -> None:
        async with self._operation("Failed to create game session"):
            config = validate_session_config(config)
            owner = self._resolve_user_id(user_id)
            session = await self._service.create_session(owner, config)
            self._discard_pending_work()
            self._store.dispatch(SessionCreated(session))
            logger.info("Session %s created (%s)", session.id, ", ".join(config.categories))

    async def start_game(self) -> None:
        session = self._require_session()
        if session is None:
            return
        async with self._operation("Failed to start game"):
            started = await self._service.start_session(session.id)
            ensure_valid_position(started.session)
            # Session and first question land in one snapshot.
            self._store.dispatch(GameStarted(started.session, started.first_question))
            self._clock.restart()
            logger.info("Session %s started", session.id)

    # --- Game flow ---

    async def submit_answer(self, answer_text: str, elapsed_ms: int | None = None) -> AnswerResult | None:
        return await self._pipeline.submit(answer_text, elapsed_ms)

    async def pause_game(self) -> None:
        session = self._require_session()
        if session is None:
            return
        state = self._store.state
        if state.answering:
            logger.info("Pause ignored for session %s: answer in flight", session.id)
            return
        if state.game_status is not GameStatus.PLAYING:
            logger.info("Pause ignored for session %s: game is %s", session.id, state.game_status.value)
            return
        async with self._operation("Failed to pause game"):
            await self._service.pause_session(session.id)
            self._scheduler.cancel(session.id)
            self._clock.stop()
            self._store.dispatch(GamePaused())
            logger.info("Session %s paused", session.id)

    async def resume_game(self) -> None:
        session = self._require_session()
        if session is None:
            return
        state = self._store.state
        if state.answering or state.game_status not in (GameStatus.PAUSED, GameStatus.PLAYING):
            logger.info("Resume ignored for session %s: game is %s", session.id, state.game_status.value)
            return
        async with self._operation("Failed to resume game"):
            await self._resume(session.id)

    async def resume_paused_game(self, session_id: str) -> None:
        """Load a session by id (e.g. after a restart) and resume it."""
        async with self._operation("Failed to resume game"):
            session = await self._service.get_session(session_id)
            if session.status not in (SessionStatus.PAUSED, SessionStatus.ACTIVE):
                raise ValidationError(
                    f"Game session {session_id} is {session.status.value} and cannot be resumed."
                )
            self._discard_pending_work()
            await self._resume(session_id)

    async def complete_game(self) -> None:
        session = self._require_session()
        if session is None:
            return
        async with self._operation("Failed to complete game"):
            summary = await self._service.complete_session(session.id)
            self._scheduler.cancel(session.id)
            self._clock.stop()
            self._store.dispatch(GameCompleted(summary))
            logger.info("Session %s completed on request", session.id)

    async def abandon_game(self, session_id: str | None = None) -> None:
        """Close a session without playing it to the end.

        The remote session is marked abandoned with an end time. If it is the
        session in play, the local state returns to idle. A game that already
        finished keeps its outcome; the service refuses the change.
        """
        current = self._store.state.session
        target = session_id or (current.id if current else None)
        if target is None:
            self._store.dispatch(ErrorChanged("No active game session"))
            return
        async with self._operation("Failed to abandon game"):
            await self._service.update_session(
                target,
                SessionPatch(status=SessionStatus.ABANDONED, end_time=datetime.now(timezone.utc)),
            )
            current = self._store.state.session
            if current is not None and current.id == target:
                self._discard_pending_work()
                self._store.dispatch(GameReset())
            logger.info("Session %s abandoned", target)

            profile = self._store.state.user_profile
            if profile is not None:
                sessions = await self._service.list_sessions(profile.id)
                self._store.dispatch(HistoryLoaded(tuple(sessions)))

    # --- Utility ---

    def reset_game_state(self) -> None:
        self._discard_pending_work()
        self._store.dispatch(GameReset())

    def clear_error(self) -> None:
        self._store.dispatch(ErrorChanged(None))

    def set_current_session(self, session: Session) -> None:
        self._store.dispatch(SessionAdopted(session))

    def set_current_question(self, question: QuestionPresentation) -> None:
        self._store.dispatch(QuestionAdvanced(question))
        self._clock.restart()

    async def close(self) -> None:
        """Cancel pending advances; call when the controller is discarded."""
        self._scheduler.cancel_all()
        await self._scheduler.wait_idle()

    # --- Internals ---

    async def _resume(self, session_id: str) -> None:
        # Always ask the service: another device or a restart may have moved on.
        question = await self._service.resume_session(session_id)
        session = ensure_valid_position(await self._service.get_session(session_id))
        self._scheduler.cancel(session_id)
        self._store.dispatch(GameResumed(question=question, session=session))
        self._clock.restart()
        logger.info("Session %s resumed at round %s", session_id, session.current_round)

    def _require_session(self) -> Session | None:
        session = self._store.state.session
        if session is None:
            self._store.dispatch(ErrorChanged("No active game session"))
        return session

    def _resolve_user_id(self, user_id: str | None) -> str:
        resolved = user_id or self._identity.current_user_id()
        if not resolved:
            raise ValidationError("No authenticated user")
        return resolved

    def _discard_pending_work(self) -> None:
        self._scheduler.cancel_all()
        self._clock.stop()

    @asynccontextmanager
    async def _operation(self, failure_message: str) -> AsyncIterator[None]:
        self._store.dispatch(OperationStarted())
        try:
            yield
        except ConflictError as exc:
            logger.info("%s: %s", failure_message, exc)
        except TriviaError as exc:
            logger.warning("%s: %s", failure_message, exc)
            self._store.dispatch(ErrorChanged(str(exc) or failure_message))
        finally:
            self._store.dispatch(LoadingChanged(False))
