"""
Pytest configuration and fixtures.
"""
import os

# Must be set before the application settings are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REQUIRE_AUTH"] = "false"
os.environ["ATTEMPT_SWEEP_INTERVAL_SECONDS"] = "0"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.exc import IntegrityError  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from assessment_engine.core.config import settings  # noqa: E402
from assessment_engine.core.dependencies import get_clock, get_db, get_settings  # noqa: E402
from assessment_engine.main import app  # noqa: E402
from assessment_engine.models import Base, Linkage, Test, TestQuestion  # noqa: E402
from assessment_engine.models.test import QuestionType, TestStatus, TimeMode  # noqa: E402

SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock injected wherever the engine reads the time."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app_settings():
    """Settings used by the app during a test; tweak fields per test."""
    return settings.model_copy(update={"REQUIRE_AUTH": False})


@pytest.fixture(scope="function")
def client(db_session, clock, app_settings):
    """Test client wired to the test database, clock and settings."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_settings] = lambda: app_settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def single_choice(order: int, correct: str = "a", points: int = 5, **kwargs) -> TestQuestion:
    return TestQuestion(
        order=order,
        question_type=QuestionType.MULTIPLE_CHOICE.value,
        question_text=f"Question {order}",
        options=[
            {"id": "a", "text": "Option A"},
            {"id": "b", "text": "Option B"},
            {"id": "c", "text": "Option C"},
        ],
        correct_answer=correct,
        explanation=f"Explanation {order}",
        points=points,
        **kwargs,
    )


@pytest.fixture
def make_test(db_session):
    """
    Factory for published tests.

    Without ``questions`` the test gets two single-choice questions worth
    5 points each, both answered by option ``a``.
    """

    def _make_test(questions=None, **overrides) -> Test:
        fields = dict(
            title="Unit 1 Evaluation",
            status=TestStatus.PUBLISHED.value,
            time_mode=TimeMode.UNLIMITED.value,
            passing_score=60,
            max_attempts=3,
            show_results_immediately=True,
            show_correct_answers=True,
            is_active=True,
        )
        fields.update(overrides)
        test = Test(**fields)
        test.questions = questions if questions is not None else [single_choice(1), single_choice(2)]
        db_session.add(test)
        db_session.commit()
        db_session.refresh(test)
        return test

    return _make_test


@pytest.fixture
def make_linkage(db_session):
    """Factory for linkages of a test into a course."""

    def _make_linkage(test: Test, **overrides) -> Linkage:
        fields = dict(test_id=test.id, course_id="course-1", is_required=True)
        fields.update(overrides)
        linkage = Linkage(**fields)
        db_session.add(linkage)
        db_session.commit()
        db_session.refresh(linkage)
        return linkage

    return _make_linkage


@pytest.fixture
def question_ids(db_session):
    """Question ids of a test in authored order."""

    def _question_ids(test: Test):
        return [
            q.id
            for q in db_session.query(TestQuestion)
            .filter(TestQuestion.test_id == test.id)
            .order_by(TestQuestion.order)
            .all()
        ]

    return _question_ids


@pytest.fixture
def lose_next_commit(db_session, monkeypatch):
    """
    Make the next commit lose a race: ``winner(db)`` writes and commits its
    rows first, then the commit fails on the unique key.
    """
    real_commit = db_session.commit

    def _arm(winner):
        armed = {"value": True}

        def commit():
            if armed["value"]:
                armed["value"] = False
                db_session.rollback()
                winner(db_session)
                real_commit()
                raise IntegrityError("INSERT INTO test_answers", {}, Exception("UNIQUE constraint failed"))
            real_commit()

        monkeypatch.setattr(db_session, "commit", commit)

    return _arm
