"""Pytest configuration and shared fixtures."""

import asyncio
from collections import Counter

import pytest

from trivia_app.core.errors import TriviaError
from trivia_app.core.models import QuestionPresentation
from trivia_app.core.question_importer import parse_question_text
from trivia_app.core.services.question_bank import QuestionBank
from trivia_app.core.services.session_backend import InMemorySessionService
from trivia_app.core.services.session_service import StaticIdentityProvider
from trivia_app.core.session_controller import SessionController

USER_ID = "user-1"

QUESTION_TEXT = """
CATEGORY: science
Q: What is the chemical symbol for gold?
A: Ag
B: Au
C: Gd
D: Go
CORRECT: B

Q: How many planets are in the solar system?
A: Seven
B: Eight
C: Nine
D: Ten
CORRECT: B

Q: What gas do plants absorb from the air?
A: Oxygen
B: Nitrogen
C: Carbon dioxide
D: Helium
CORRECT: C

Q: What is the boiling point of water at sea level in Celsius?
A: 90
B: 100
C: 110
D: 120
CORRECT: B

Q: Which particle carries a negative charge?
A: Proton
B: Neutron
C: Electron
D: Photon
CORRECT: C

---
CATEGORY: history
Q: In which year did the Berlin Wall fall?
A: 1987
B: 1989
C: 1991
D: 1993
CORRECT: B

Q: Who was the first emperor of Rome?
A: Julius Caesar
B: Nero
C: Augustus
D: Caligula
CORRECT: C

Q: Which ship sank on its maiden voyage in 1912?
A: Lusitania
B: Titanic
C: Britannic
D: Olympic
CORRECT: B

Q: Which civilisation built Machu Picchu?
A: Aztec
B: Maya
C: Inca
D: Olmec
CORRECT: C
"""


class RecordingService:
    """Wraps a session service, counting calls and injecting failures.

    ``failures[name]`` is raised (once) by the next call to ``name``;
    ``gates[name]`` holds calls to ``name`` until the event is set.
    """

    def __init__(self, inner):
        self.inner = inner
        self.calls: Counter[str] = Counter()
        self.failures: dict[str, TriviaError] = {}
        self.gates: dict[str, asyncio.Event] = {}

    def __getattr__(self, name):
        target = getattr(self.inner, name)

        async def call(*args, **kwargs):
            self.calls[name] += 1
            gate = self.gates.get(name)
            if gate is not None:
                await gate.wait()
            failure = self.failures.pop(name, None)
            if failure is not None:
                raise failure
            return await target(*args, **kwargs)

        return call


def correct_answer_for(bank: QuestionBank, question: QuestionPresentation) -> str:
    for candidate in bank.get_questions():
        if candidate.question_text == question.question_text:
            return candidate.correct_answer
    raise LookupError(question.question_text)


def wrong_answer_for(bank: QuestionBank, question: QuestionPresentation) -> str:
    correct = correct_answer_for(bank, question)
    return next(text for text in question.option_texts() if text != correct)


@pytest.fixture
def question_bank() -> QuestionBank:
    return QuestionBank(parse_question_text(QUESTION_TEXT))


@pytest.fixture
def backend(question_bank) -> InMemorySessionService:
    return InMemorySessionService(question_bank, seed=7)


@pytest.fixture
def service(backend) -> RecordingService:
    return RecordingService(backend)


@pytest.fixture
def identity() -> StaticIdentityProvider:
    return StaticIdentityProvider(USER_ID)


@pytest.fixture
def controller(service, identity) -> SessionController:
    return SessionController(service, identity, advance_delay_ms=10)
