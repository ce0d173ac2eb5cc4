"""Submission of a single answer and interpretation of the service verdict."""

from __future__ import annotations

import logging

from trivia_app.core.errors import ConflictError, TriviaError
from trivia_app.core.models import (
    AnswerResult,
    GameStatus,
    QuestionPresentation,
    SubmitAnswerRequest,
)
from trivia_app.core.scheduling import AdvanceScheduler, QuestionClock
from trivia_app.core.services.session_service import SessionService, ensure_valid_position
from trivia_app.core.state_store import (
    AnswerRevealed,
    AnsweringChanged,
    ErrorChanged,
    GameCompleted,
    QuestionAdvanced,
    StateStore,
    SummaryLoaded,
)

logger = logging.getLogger(__name__)


class AnswerPipeline:
    """Submits answers for the session held in the store.

    Nothing in the store changes before the service has confirmed the
    verdict. The switch to the next question is delayed so the player can
    read the result, and is dropped if the session left play meanwhile.
    """

    def __init__(
        self,
        service: SessionService,
        store: StateStore,
        scheduler: AdvanceScheduler,
        clock: QuestionClock,
    ) -> None:
        self._service = service
        self._store = store
        self._scheduler = scheduler
        self._clock = clock

    async def submit(self, answer_text: str, elapsed_ms: int | None = None) -> AnswerResult | None:
        """Submit ``answer_text`` for the current question.

        Returns the verdict, or ``None`` when the submission was rejected
        locally or failed (the reason is left in the store's error field).
        """
        state = self._store.state
        session, question = state.session, state.question
        if session is None or question is None:
            self._store.dispatch(ErrorChanged("No active question"))
            return None
        try:
            self._check_can_submit()
        except ConflictError as exc:
            logger.info("Ignoring answer for session %s: %s", session.id, exc)
            return None

        request = SubmitAnswerRequest(
            session_id=session.id,
            question_id=question.id,
            answer_text=answer_text,
            elapsed_ms=self._clock.elapsed_ms() if elapsed_ms is None else max(0, int(elapsed_ms)),
        )

        self._store.dispatch(AnsweringChanged(True))
        self._store.dispatch(ErrorChanged(None))
        try:
            try:
                result = await self._service.submit_answer(request)
            except TriviaError as exc:
                self._store.dispatch(ErrorChanged(str(exc) or "Failed to submit answer"))
                return None

            refresh_error: TriviaError | None = None
            try:
                refreshed = ensure_valid_position(await self._service.get_session(session.id))
            except TriviaError as exc:
                logger.warning("Could not refresh session %s after answer: %s", session.id, exc)
                refreshed, refresh_error = None, exc

            if not self._is_current(session.id):
                logger.info("Discarding verdict for session %s; it is no longer current", session.id)
                return result

            self._store.dispatch(
                AnswerRevealed(
                    session=refreshed,
                    is_correct=result.is_correct,
                    correct_answer=result.correct_answer,
                )
            )
            if refresh_error is not None:
                self._store.dispatch(ErrorChanged(str(refresh_error) or "Failed to refresh game session"))
        finally:
            self._store.dispatch(AnsweringChanged(False))

        logger.info(
            "Answer result for session %s: correct=%s round_complete=%s game_complete=%s next=%s",
            session.id,
            result.is_correct,
            result.round_complete,
            result.game_complete,
            result.next_question is not None,
        )
        # A final question can be round-complete and game-complete at once.
        if result.game_complete:
            await self._finish(session.id)
        elif result.round_complete:
            if result.next_question is not None:
                self._schedule_advance(session.id, result.next_question)
        elif result.next_question is not None:
            self._schedule_advance(session.id, result.next_question)
        else:
            logger.warning("Session %s returned no next question", session.id)
        return result

    def _check_can_submit(self) -> None:
        state = self._store.state
        if state.answering:
            raise ConflictError("An answer is already being submitted.")
        if state.game_status is not GameStatus.PLAYING:
            raise ConflictError(f"Game is {state.game_status.value}, not playing.")
        if state.show_result:
            raise ConflictError("This question has already been answered.")

    def _is_current(self, session_id: str) -> bool:
        session = self._store.state.session
        return session is not None and session.id == session_id

    async def _finish(self, session_id: str) -> None:
        self._scheduler.cancel(session_id)
        self._clock.stop()
        self._store.dispatch(GameCompleted())
        logger.info("Game %s completed", session_id)
        try:
            summary = await self._service.get_summary(session_id)
        except TriviaError as exc:
            # The game stays completed; only the summary is missing.
            logger.warning("Could not load summary for session %s: %s", session_id, exc)
            self._store.dispatch(ErrorChanged(str(exc) or "Failed to load game summary"))
            return
        if self._is_current(session_id):
            self._store.dispatch(SummaryLoaded(summary))

    def _schedule_advance(self, session_id: str, next_question: QuestionPresentation) -> None:
        def advance() -> None:
            state = self._store.state
            if (
                state.session is None
                or state.session.id != session_id
                or state.game_status is not GameStatus.PLAYING
            ):
                logger.info("Dropping stale advance for session %s", session_id)
                return
            self._store.dispatch(QuestionAdvanced(next_question))
            self._clock.restart()

        self._scheduler.schedule(session_id, advance)
