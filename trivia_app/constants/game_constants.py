"""Game-flow constants shared by the controller, the wizard and the service."""

from pathlib import Path

# Time the verdict stays on screen before the next question replaces it.
ADVANCE_DELAY_MS: int = 2000

ANSWER_LABELS: tuple[str, ...] = ("A", "B", "C", "D")
POINTS_PER_CORRECT_ANSWER: int = 1

DEFAULT_TOTAL_ROUNDS: int = 3
DEFAULT_QUESTIONS_PER_ROUND: int = 10
DEFAULT_MAX_TEAMS: int = 6
DEFAULT_MAX_PLAYERS_PER_TEAM: int = 4
DEFAULT_MIN_PLAYERS_PER_TEAM: int = 2

DEFAULT_QUESTION_FILE: Path = Path(__file__).resolve().parent.parent / "data" / "questions.txt"
