"""FastAPI server exposing the question/session service over HTTP."""

from __future__ import annotations

import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
import uvicorn

from trivia_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_app.core.errors import ConflictError, NotFoundError, TriviaError, ValidationError
from trivia_app.core.models import SubmitAnswerRequest
from trivia_app.core.schemas import (
    AnswerResultModel,
    CreateProfilePayload,
    CreateSessionPayload,
    GameSummaryModel,
    QuestionModel,
    SessionModel,
    SessionPatchPayload,
    StartedSessionModel,
    SubmitAnswerPayload,
    UserProfileModel,
)
from trivia_app.core.services.session_service import SessionService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[TriviaError], int] = {
    NotFoundError: 404,
    ConflictError: 409,
    ValidationError: 422,
}


def _status_for(exc: TriviaError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 502


def _get_service_dependency(service: SessionService):
    def dependency() -> SessionService:
        return service

    return dependency


def create_api_app(service: SessionService) -> FastAPI:
    """Create a FastAPI application wired to the provided session service."""
    app = FastAPI(title="Trivia Session API", version="0.1.0")
    service_dep = _get_service_dependency(service)

    @app.exception_handler(TriviaError)
    async def handle_trivia_error(request: Request, exc: TriviaError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/categories")
    async def get_categories(svc: SessionService = Depends(service_dep)) -> list[str]:
        return await svc.get_available_categories()

    @app.get("/profiles/{user_id}", response_model=UserProfileModel)
    async def get_profile(user_id: str, svc: SessionService = Depends(service_dep)) -> UserProfileModel:
        profile = await svc.get_user_profile(user_id)
        if profile is None:
            raise HTTPException(status_code=404, detail=f"Profile for user {user_id} not found.")
        return UserProfileModel.model_validate(profile)

    @app.post("/profiles", status_code=201, response_model=UserProfileModel)
    async def create_profile(
        payload: CreateProfilePayload,
        svc: SessionService = Depends(service_dep),
    ) -> UserProfileModel:
        profile = await svc.create_user_profile(
            payload.user_id, payload.username, tuple(payload.favorite_categories)
        )
        return UserProfileModel.model_validate(profile)

    @app.post("/sessions", status_code=201, response_model=SessionModel)
    async def create_session(
        payload: CreateSessionPayload,
        svc: SessionService = Depends(service_dep),
    ) -> SessionModel:
        session = await svc.create_session(payload.user_id, payload.to_config())
        return SessionModel.model_validate(session)

    @app.get("/sessions/{session_id}", response_model=SessionModel)
    async def get_session(session_id: str, svc: SessionService = Depends(service_dep)) -> SessionModel:
        return SessionModel.model_validate(await svc.get_session(session_id))

    @app.patch("/sessions/{session_id}", response_model=SessionModel)
    async def update_session(
        session_id: str,
        payload: SessionPatchPayload,
        svc: SessionService = Depends(service_dep),
    ) -> SessionModel:
        session = await svc.update_session(session_id, payload.to_patch())
        return SessionModel.model_validate(session)

    @app.post("/sessions/{session_id}/start", response_model=StartedSessionModel)
    async def start_session(
        session_id: str, svc: SessionService = Depends(service_dep)
    ) -> StartedSessionModel:
        return StartedSessionModel.model_validate(await svc.start_session(session_id))

    @app.post("/sessions/{session_id}/answers", response_model=AnswerResultModel)
    async def submit_answer(
        session_id: str,
        payload: SubmitAnswerPayload,
        svc: SessionService = Depends(service_dep),
    ) -> AnswerResultModel:
        result = await svc.submit_answer(
            SubmitAnswerRequest(
                session_id=session_id,
                question_id=payload.question_id,
                answer_text=payload.answer_text,
                elapsed_ms=payload.elapsed_ms,
            )
        )
        return AnswerResultModel.model_validate(result)

    @app.post("/sessions/{session_id}/pause", status_code=204)
    async def pause_session(session_id: str, svc: SessionService = Depends(service_dep)) -> None:
        await svc.pause_session(session_id)

    @app.post("/sessions/{session_id}/resume", response_model=QuestionModel)
    async def resume_session(session_id: str, svc: SessionService = Depends(service_dep)) -> QuestionModel:
        return QuestionModel.model_validate(await svc.resume_session(session_id))

    @app.post("/sessions/{session_id}/complete", response_model=GameSummaryModel)
    async def complete_session(
        session_id: str, svc: SessionService = Depends(service_dep)
    ) -> GameSummaryModel:
        return GameSummaryModel.model_validate(await svc.complete_session(session_id))

    @app.get("/sessions/{session_id}/summary", response_model=GameSummaryModel)
    async def get_summary(session_id: str, svc: SessionService = Depends(service_dep)) -> GameSummaryModel:
        return GameSummaryModel.model_validate(await svc.get_summary(session_id))

    @app.get("/users/{user_id}/sessions", response_model=list[SessionModel])
    async def list_sessions(user_id: str, svc: SessionService = Depends(service_dep)) -> list[SessionModel]:
        return [SessionModel.model_validate(s) for s in await svc.list_sessions(user_id)]

    return app


def start_api_server(
    service: SessionService,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(service)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="TriviaApiServer", daemon=True)
    thread.start()
    return thread
