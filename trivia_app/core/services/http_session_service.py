"""httpx client for the question/session service HTTP API."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from trivia_app.constants.network_constants import DEFAULT_SERVICE_URL, SERVICE_TIMEOUT_SECONDS
from trivia_app.core.errors import ConflictError, NotFoundError, ServiceError, ValidationError
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
from trivia_app.core.schemas import (
    AnswerResultModel,
    GameSummaryModel,
    QuestionModel,
    SessionModel,
    StartedSessionModel,
    UserProfileModel,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI request validation errors.
        return "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict)) or str(detail)
    return str(detail) if detail else response.reason_phrase


class HttpSessionService:
    """Session service reached over HTTP.

    Transport failures, timeouts and unexpected responses all surface as
    :class:`ServiceError`; 404, 409 and 422 map to NotFoundError,
    ConflictError and ValidationError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVICE_URL,
        timeout: float = SERVICE_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpSessionService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Catalogue & profiles ---

    async def get_available_categories(self) -> list[str]:
        response = await self._request("GET", "/categories")
        data = self._json(response)
        if not isinstance(data, list):
            raise ServiceError("Session service returned malformed categories.")
        return [str(item) for item in data]

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        try:
            response = await self._request("GET", f"/profiles/{user_id}")
        except NotFoundError:
            return None
        return self._parse(UserProfileModel, response).to_domain()

    async def create_user_profile(
        self,
        user_id: str,
        username: str,
        favorite_categories: tuple[str, ...] = (),
    ) -> UserProfile:
        response = await self._request(
            "POST",
            "/profiles",
            json={
                "user_id": user_id,
                "username": username,
                "favorite_categories": list(favorite_categories),
            },
        )
        return self._parse(UserProfileModel, response).to_domain()

    # --- Sessions ---

    async def create_session(self, user_id: str, config: SessionConfig) -> Session:
        response = await self._request(
            "POST",
            "/sessions",
            json={
                "user_id": user_id,
                "total_rounds": config.total_rounds,
                "questions_per_round": config.questions_per_round,
                "categories": list(config.categories),
            },
        )
        return self._parse(SessionModel, response).to_domain()

    async def start_session(self, session_id: str) -> StartedSession:
        response = await self._request("POST", f"/sessions/{session_id}/start")
        return self._parse(StartedSessionModel, response).to_domain()

    async def get_session(self, session_id: str) -> Session:
        response = await self._request("GET", f"/sessions/{session_id}")
        return self._parse(SessionModel, response).to_domain()

    async def submit_answer(self, request: SubmitAnswerRequest) -> AnswerResult:
        response = await self._request(
            "POST",
            f"/sessions/{request.session_id}/answers",
            json={
                "question_id": request.question_id,
                "answer_text": request.answer_text,
                "elapsed_ms": request.elapsed_ms,
            },
        )
        return self._parse(AnswerResultModel, response).to_domain()

    async def pause_session(self, session_id: str) -> None:
        await self._request("POST", f"/sessions/{session_id}/pause")

    async def resume_session(self, session_id: str) -> QuestionPresentation:
        response = await self._request("POST", f"/sessions/{session_id}/resume")
        return self._parse(QuestionModel, response).to_domain()

    async def complete_session(self, session_id: str) -> GameSummary:
        response = await self._request("POST", f"/sessions/{session_id}/complete")
        return self._parse(GameSummaryModel, response).to_domain()

    async def get_summary(self, session_id: str) -> GameSummary:
        response = await self._request("GET", f"/sessions/{session_id}/summary")
        return self._parse(GameSummaryModel, response).to_domain()

    async def update_session(self, session_id: str, patch: SessionPatch) -> Session:
        body: dict[str, Any] = {}
        if patch.status is not None:
            body["status"] = patch.status.value
        if patch.end_time is not None:
            body["end_time"] = patch.end_time.isoformat()
        response = await self._request("PATCH", f"/sessions/{session_id}", json=body)
        return self._parse(SessionModel, response).to_domain()

    async def list_sessions(self, user_id: str) -> list[Session]:
        response = await self._request("GET", f"/users/{user_id}/sessions")
        data = self._json(response)
        if not isinstance(data, list):
            raise ServiceError("Session service returned a malformed session list.")
        try:
            return [SessionModel.model_validate(item).to_domain() for item in data]
        except PydanticValidationError as exc:
            raise ServiceError(f"Session service returned a malformed session: {exc}") from exc

    # --- Helpers ---

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise ServiceError(f"Session service timed out on {method} {path}.") from exc
        except httpx.HTTPError as exc:
            raise ServiceError(f"Session service unreachable: {exc}") from exc

        if response.is_success:
            return response
        detail = _detail(response)
        logger.debug("%s %s -> %s: %s", method, path, response.status_code, detail)
        if response.status_code == 404:
            raise NotFoundError(detail)
        if response.status_code == 409:
            raise ConflictError(detail)
        if response.status_code == 422:
            raise ValidationError(detail)
        raise ServiceError(f"Session service error {response.status_code}: {detail}")

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError("Session service returned invalid JSON.") from exc

    @classmethod
    def _parse(cls, model: type[ModelT], response: httpx.Response) -> ModelT:
        try:
            return model.model_validate(cls._json(response))
        except PydanticValidationError as exc:
            raise ServiceError(f"Session service returned an unexpected payload: {exc}") from exc
