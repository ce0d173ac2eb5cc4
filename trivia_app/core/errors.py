"""Error taxonomy shared by the controller, the service backend and the clients."""

from __future__ import annotations


class TriviaError(Exception):
    """Base class for every error raised by the trivia core."""


class ValidationError(TriviaError):
    """Raised for malformed configuration, before any service call is made."""


class NotFoundError(TriviaError):
    """Raised when a session (or profile) does not exist."""


class ServiceError(TriviaError):
    """Raised when the session service fails or cannot be reached."""


class ConflictError(TriviaError):
    """Raised when an intent does not fit the current state (e.g. double submit)."""
