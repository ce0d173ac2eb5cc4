"""Step-by-step validation of a draft game configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
import logging
from typing import Any, Awaitable, Callable

from trivia_app.constants.game_constants import (
    DEFAULT_MAX_PLAYERS_PER_TEAM,
    DEFAULT_MAX_TEAMS,
    DEFAULT_MIN_PLAYERS_PER_TEAM,
    DEFAULT_QUESTIONS_PER_ROUND,
    DEFAULT_TOTAL_ROUNDS,
)
from trivia_app.core.models import SessionConfig

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    BASIC = "basic"
    ROUNDS = "rounds"
    QUESTIONS = "questions"
    TEAMS = "teams"
    REVIEW = "review"


@dataclass(slots=True, frozen=True)
class StepInfo:
    step: WizardStep
    title: str
    description: str


WIZARD_STEPS: tuple[StepInfo, ...] = (
    StepInfo(WizardStep.BASIC, "Basic Info", "Game title, location, and date"),
    StepInfo(WizardStep.ROUNDS, "Rounds", "Configure rounds and questions"),
    StepInfo(WizardStep.QUESTIONS, "Questions", "Select categories"),
    StepInfo(WizardStep.TEAMS, "Teams", "Team settings and registration"),
    StepInfo(WizardStep.REVIEW, "Review", "Review and create game"),
)
_STEP_ORDER: tuple[WizardStep, ...] = tuple(info.step for info in WIZARD_STEPS)


@dataclass(slots=True, frozen=True)
class WizardConfiguration:
    """Draft game definition edited through the wizard."""

    title: str = ""
    location: str = ""
    scheduled_date: str = ""
    total_rounds: int = DEFAULT_TOTAL_ROUNDS
    questions_per_round: int = DEFAULT_QUESTIONS_PER_ROUND
    selected_categories: tuple[str, ...] = ()
    max_teams: int = DEFAULT_MAX_TEAMS
    max_players_per_team: int = DEFAULT_MAX_PLAYERS_PER_TEAM
    min_players_per_team: int = DEFAULT_MIN_PLAYERS_PER_TEAM
    self_registration_enabled: bool = True

    def to_session_config(self) -> SessionConfig:
        return SessionConfig(
            total_rounds=self.total_rounds,
            questions_per_round=self.questions_per_round,
            categories=tuple(self.selected_categories),
        )


_CONFIG_FIELDS = {f.name for f in fields(WizardConfiguration)}

CompletionCallback = Callable[[WizardConfiguration], Awaitable[None]]


class GameWizard:
    """Five-step wizard; moving forward requires the current step to be valid.

    ``basic`` is valid when the title is non-empty and ``questions`` when at
    least one category is selected. The other steps are valid unless marked
    otherwise with :meth:`set_step_valid`.
    """

    def __init__(
        self,
        initial: dict[str, Any] | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self._initial = dict(initial or {})
        self._on_complete = on_complete
        self.current_step: WizardStep = WizardStep.BASIC
        self.config: WizardConfiguration = WizardConfiguration()
        self.step_validation: dict[WizardStep, bool] = {}
        self.is_submitting: bool = False
        self.reset()

    # --- Derived values ---

    @property
    def current_step_index(self) -> int:
        return _STEP_ORDER.index(self.current_step)

    @property
    def current_step_info(self) -> StepInfo:
        return WIZARD_STEPS[self.current_step_index]

    @property
    def progress(self) -> float:
        return ((self.current_step_index + 1) / len(_STEP_ORDER)) * 100

    @property
    def can_go_next(self) -> bool:
        return self.step_validation[self.current_step]

    @property
    def can_go_back(self) -> bool:
        return self.current_step_index > 0

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == len(_STEP_ORDER) - 1

    @property
    def is_valid(self) -> bool:
        return (
            all(self.step_validation.values())
            and bool(self.config.title.strip())
            and bool(self.config.selected_categories)
        )

    # --- Navigation ---

    def go_next(self) -> None:
        if self.can_go_next and not self.is_last_step:
            self.current_step = _STEP_ORDER[self.current_step_index + 1]

    def go_back(self) -> None:
        if self.can_go_back:
            self.current_step = _STEP_ORDER[self.current_step_index - 1]

    def go_to_step(self, step: WizardStep | str) -> None:
        try:
            self.current_step = WizardStep(step)
        except ValueError:
            logger.debug("Ignoring unknown wizard step %r", step)

    # --- Editing ---

    def update(self, **changes: Any) -> None:
        unknown = set(changes) - _CONFIG_FIELDS
        if unknown:
            raise TypeError(f"Unknown configuration field(s): {', '.join(sorted(unknown))}")
        if "selected_categories" in changes:
            changes["selected_categories"] = tuple(changes["selected_categories"])
        self.config = replace(self.config, **changes)
        self._revalidate_data_steps()

    def set_step_valid(self, step: WizardStep | str, valid: bool) -> None:
        self.step_validation[WizardStep(step)] = valid

    # --- Completion ---

    async def complete(self) -> bool:
        """Hand the configuration to the completion callback.

        Returns ``False`` without doing anything while the wizard is invalid.
        """
        if not self.is_valid:
            return False
        self.is_submitting = True
        try:
            if self._on_complete is not None:
                await self._on_complete(self.config)
        finally:
            self.is_submitting = False
        return True

    def reset(self) -> None:
        self.current_step = WizardStep.BASIC
        initial = dict(self._initial)
        if "selected_categories" in initial:
            initial["selected_categories"] = tuple(initial["selected_categories"])
        self.config = replace(WizardConfiguration(), **initial)
        self.step_validation = {step: True for step in _STEP_ORDER}
        self._revalidate_data_steps()
        self.is_submitting = False

    def _revalidate_data_steps(self) -> None:
        self.step_validation[WizardStep.BASIC] = bool(self.config.title.strip())
        self.step_validation[WizardStep.QUESTIONS] = bool(self.config.selected_categories)
