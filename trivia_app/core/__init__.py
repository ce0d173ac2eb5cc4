"""Trivia game-session core: controller, state store and wizard."""

from .errors import ConflictError, NotFoundError, ServiceError, TriviaError, ValidationError
from .models import GameStatus, SessionConfig, SessionStatus
from .session_controller import SessionController
from .state_store import GameState, StateStore
from .wizard import GameWizard, WizardStep

__all__ = [
    "ConflictError",
    "GameState",
    "GameStatus",
    "GameWizard",
    "NotFoundError",
    "ServiceError",
    "SessionConfig",
    "SessionController",
    "SessionStatus",
    "StateStore",
    "TriviaError",
    "ValidationError",
    "WizardStep",
]
