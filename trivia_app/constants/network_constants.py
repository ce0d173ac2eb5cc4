"""Network configuration constants for the trivia service."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
DEFAULT_SERVICE_URL: str = "http://127.0.0.1:8000"
SERVICE_TIMEOUT_SECONDS: float = 10.0
