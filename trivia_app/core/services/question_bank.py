"""Service for storing trivia questions and drawing them into sessions."""

from __future__ import annotations

from pathlib import Path
import random

from trivia_app.constants.game_constants import ANSWER_LABELS, DEFAULT_QUESTION_FILE
from trivia_app.core.errors import ValidationError
from trivia_app.core.models import TriviaQuestion
from trivia_app.core.question_importer import load_questions_from_file


class QuestionBank:
    """Holds the catalogue of questions the session service draws from."""

    def __init__(self, questions: list[TriviaQuestion] | None = None) -> None:
        self._questions: list[TriviaQuestion] = []
        self._question_counter: int = 0
        if questions:
            self.load_questions(questions)

    @classmethod
    def from_file(cls, file_path: Path = DEFAULT_QUESTION_FILE) -> QuestionBank:
        imported = load_questions_from_file(file_path)
        return cls(imported.questions)

    def load_questions(self, questions: list[TriviaQuestion]) -> None:
        """Replace the current catalogue with a new list of questions."""
        if not questions:
            raise ValueError("Question bank must contain at least one question.")
        self._questions = [self._prepare_question(q) for q in questions]

    def add_question(self, question: TriviaQuestion) -> TriviaQuestion:
        prepared = self._prepare_question(question)
        self._questions.append(prepared)
        return prepared

    def get_questions(self) -> list[TriviaQuestion]:
        return list(self._questions)

    def get_question_count(self) -> int:
        return len(self._questions)

    def get_categories(self) -> list[str]:
        return sorted({question.category for question in self._questions})

    def count_for_categories(self, categories: tuple[str, ...]) -> int:
        wanted = set(categories)
        return sum(1 for question in self._questions if question.category in wanted)

    def draw(
        self,
        categories: tuple[str, ...],
        count: int,
        rng: random.Random,
        exclude_ids: set[str] | None = None,
    ) -> list[TriviaQuestion]:
        """Pick ``count`` distinct questions from the given categories.

        Questions in ``exclude_ids`` are skipped while enough others remain.
        """
        wanted = set(categories)
        pool = [q for q in self._questions if q.category in wanted]
        if len(pool) < count:
            raise ValidationError(
                f"Only {len(pool)} question(s) available for {', '.join(sorted(wanted))}; "
                f"{count} required."
            )
        if exclude_ids:
            fresh = [q for q in pool if q.id not in exclude_ids]
            if len(fresh) >= count:
                pool = fresh
        return rng.sample(pool, count)

    def _prepare_question(self, question: TriviaQuestion) -> TriviaQuestion:
        """Validate and normalize a question before storage."""
        if len(question.options) != len(ANSWER_LABELS):
            raise ValueError("Each question must have exactly four options.")
        options = [option.strip() for option in question.options]
        if any(not option for option in options):
            raise ValueError("Option text cannot be empty.")
        if not 0 <= question.correct_option_index < len(options):
            raise ValueError("Correct option index must be between 0 and 3.")

        cleaned_text = question.question_text.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")
        category = question.category.strip().lower()
        if not category:
            raise ValueError("Question category must not be empty.")

        return TriviaQuestion(
            id=self._next_question_id(),
            category=category,
            question_text=cleaned_text,
            options=options,
            correct_option_index=question.correct_option_index,
        )

    def _next_question_id(self) -> str:
        self._question_counter += 1
        return f"q{self._question_counter}"
