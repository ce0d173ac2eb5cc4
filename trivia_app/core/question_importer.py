"""Utilities for importing the trivia question bank from a text file.

File format (repeat blocks separated by blank lines or '---'):

    CATEGORY: category name
    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D

Example:

    CATEGORY: science
    Q: What is the chemical symbol for gold?
    A: Ag
    B: Au
    C: Gd
    D: Go
    CORRECT: B

A block without CATEGORY inherits the category of the previous block, so a
file can group all questions of one category under a single header.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from trivia_app.constants.game_constants import ANSWER_LABELS
from trivia_app.core.models import TriviaQuestion


class QuestionImportError(Exception):
    """Raised when a question file cannot be parsed."""


@dataclass(slots=True)
class ImportedQuestionBank:
    """Container for imported question bank metadata and questions."""

    source_path: Path
    questions: list[TriviaQuestion]


def load_questions_from_file(file_path: Path) -> ImportedQuestionBank:
    text = file_path.read_text(encoding="utf-8")
    questions = parse_question_text(text)
    if not questions:
        raise QuestionImportError("Question file did not contain any questions.")
    return ImportedQuestionBank(source_path=file_path, questions=questions)


def parse_question_text(text: str) -> list[TriviaQuestion]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped.startswith("#"):
            continue
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions: list[TriviaQuestion] = []
    category: str | None = None
    for block in blocks:
        if not block:
            continue
        question, category = _parse_block(block, category)
        if question is not None:
            questions.append(question)
    return questions


def _parse_block(block: str, inherited_category: str | None) -> tuple[TriviaQuestion | None, str | None]:
    category = inherited_category
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("CATEGORY:"):
            category = line.split(":", 1)[1].strip().lower() or None
            current_section = None
            continue

        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in ANSWER_LABELS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in ANSWER_LABELS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    # A block holding only a CATEGORY header switches the category for what follows.
    if not question_lines and not options and correct_letter is None:
        return None, category

    if category is None:
        raise QuestionImportError("Question has no category (CATEGORY: ...)")
    if not question_lines:
        raise QuestionImportError("Question text missing (Q: ...)")
    if len(options) != len(ANSWER_LABELS):
        raise QuestionImportError("Each question must define exactly four options (A-D).")

    option_list = [options.get(letter, "").strip() for letter in ANSWER_LABELS]
    if any(not opt for opt in option_list):
        raise QuestionImportError("Option text cannot be empty.")
    if len(set(option_list)) != len(option_list):
        raise QuestionImportError("Option texts must be unique within a question.")

    if correct_letter is None:
        raise QuestionImportError("Every trivia question needs a CORRECT answer.")
    if correct_letter not in ANSWER_LABELS:
        raise QuestionImportError("CORRECT must be one of A, B, C, or D.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text cannot be empty.")

    question = TriviaQuestion(
        id="",  # assigned by QuestionBank when the questions are loaded
        category=category,
        question_text=question_text,
        options=option_list,
        correct_option_index=ANSWER_LABELS.index(correct_letter),
    )
    return question, category
