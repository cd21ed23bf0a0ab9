"""
Pytest configuration and shared fixtures for foxquiz tests.
"""

import asyncio
import logging
from typing import Dict, Optional

import pytest

from foxquiz.config import settings
from foxquiz.database import Storage
from foxquiz.history import HistoryStore
from foxquiz.identity import IdentityStore
from foxquiz.models import AttemptRecord, Option, Question, Quiz
from foxquiz.quiz_source import FOX_QUIZ, QuizFetchError, QuizSource, StaticQuizSource
from foxquiz.session import SessionController


class MemoryStorage(Storage):
    """In-memory storage slots for testing."""

    def __init__(self):
        self.slots: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def set(self, key: str, value: str) -> None:
        self.slots[key] = value

    def remove(self, key: str) -> None:
        self.slots.pop(key, None)


class FailingQuizSource(QuizSource):
    def __init__(self):
        self.calls = 0

    async def fetch(self, topic: str) -> Quiz:
        self.calls += 1
        raise QuizFetchError("generator unavailable")


class EmptyQuizSource(QuizSource):
    async def fetch(self, topic: str) -> Quiz:
        return Quiz(title="Empty", description="", questions=[])


class BlockingQuizSource(QuizSource):
    """Holds every fetch until `release` is set."""

    def __init__(self):
        self.calls = 0
        self.release = asyncio.Event()

    async def fetch(self, topic: str) -> Quiz:
        self.calls += 1
        await self.release.wait()
        return FOX_QUIZ


CORRECT_ANSWERS = {q.id: q.correct_option_id for q in FOX_QUIZ.questions}


def wrong_option(question: Question) -> str:
    return next(o.id for o in question.options if o.id != question.correct_option_id)


def make_record(username="dana", score=3, total=5, timestamp=1_700_000_000_000):
    return AttemptRecord(
        username=username,
        topic="foxes",
        score=score,
        total_questions=total,
        timestamp=timestamp,
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def history(storage):
    return HistoryStore(storage)


@pytest.fixture
def identity_store(storage):
    return IdentityStore(storage)


@pytest.fixture
def controller(history, identity_store):
    controller = SessionController(StaticQuizSource(), history, identity_store)
    controller.startup()
    return controller


@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    """Points log and database directories at a temporary location."""
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    monkeypatch.setattr(settings, "DB_DIR", str(tmp_path / "db"))
    yield settings
    logger = logging.getLogger("foxquiz")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def sample_question():
    return Question(
        id="q1",
        text="Which one?",
        options=[Option(id="a", text="A"), Option(id="b", text="B")],
        correct_option_id="b",
    )
