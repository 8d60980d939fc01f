"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import os
import random
import sys
import tempfile
from collections import deque
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Keep the app's import-time setup away from the working directory.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "quiz-test-logs"))

from quiz_engine.editions import QuestionBank  # noqa: E402
from quiz_engine.engine import QuizEngine  # noqa: E402
from quiz_engine.grading import GradeResult, GradingOracle  # noqa: E402
from quiz_engine.history import InMemoryAttemptHistory  # noqa: E402
from quiz_engine.models import Grade, Question  # noqa: E402
from quiz_engine.persistence import InMemorySnapshotStore  # noqa: E402
from quiz_engine.progress import InMemoryProgressStore  # noqa: E402
from quiz_engine.quota import InMemoryQuotaStore  # noqa: E402
from quiz_engine.selector import QuestionSelector  # noqa: E402


class ScriptedOracle(GradingOracle):
    """Returns queued grades in order, then `default`. Records every call."""

    def __init__(self, default: Grade = Grade.CORRECT):
        self.default = default
        self.queue = deque()
        self.calls = []
        self.error = None

    def script(self, *grades):
        self.queue.extend(Grade(g) for g in grades)

    async def grade(self, question, accepted_answer, user_answer, style):
        self.calls.append((question, user_answer, style))
        if self.error is not None:
            raise self.error
        grade = self.queue.popleft() if self.queue else self.default
        return GradeResult(grade=grade, feedback=f"graded {grade.value}")


class ManualClock:
    def __init__(self, now: datetime = datetime(2025, 6, 1, 9, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def make_bank(size_a: int = 12, size_b: int = 24) -> QuestionBank:
    return QuestionBank({
        "A": [Question(prompt=f"A question {i}", accepted_answer=f"A answer {i}") for i in range(size_a)],
        "B": [Question(prompt=f"B question {i}", accepted_answer=f"B answer {i}") for i in range(size_b)],
    })


@pytest.fixture
def bank():
    return make_bank()


@pytest.fixture
def oracle():
    return ScriptedOracle()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def selector():
    return QuestionSelector(rng=random.Random(7))


@pytest.fixture
def stores(clock):
    return {
        "progress": InMemoryProgressStore(),
        "quota": InMemoryQuotaStore(clock=clock),
        "snapshots": InMemorySnapshotStore(),
        "history": InMemoryAttemptHistory(),
    }


@pytest.fixture
def quiz_engine(bank, oracle, stores, selector, clock):
    return QuizEngine(
        bank=bank,
        oracle=oracle,
        progress=stores["progress"],
        quota_store=stores["quota"],
        snapshots=stores["snapshots"],
        history=stores["history"],
        selector=selector,
        daily_limit=100,
        clock=clock,
    )


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """Create an in-memory SQLite engine shared across threads."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture
def db_session(in_memory_engine):
    """Create an in-memory database session with every quiz table."""
    import quiz_api.models  # noqa: F401
    from quiz_api.config import Base
    Base.metadata.create_all(in_memory_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)
    session = SessionLocal()
    yield session
    session.close()
