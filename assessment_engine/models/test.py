"""
Test (evaluation) and question models.
"""
import enum
import uuid

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Boolean, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from assessment_engine.core.config import settings
from assessment_engine.db.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class TestStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class TimeMode(str, enum.Enum):
    UNLIMITED = "unlimited"
    TIMED = "timed"


class QuestionType(str, enum.Enum):
    """Stored question types. ``multiple_choice`` is the single-answer variant."""

    MULTIPLE_CHOICE = "multiple_choice"
    MULTIPLE_ANSWER = "multiple_answer"
    TRUE_FALSE = "true_false"
    OPEN_ENDED = "open_ended"
    POLL = "poll"
    REORDER = "reorder"
    MATCH = "match"
    DRAG_DROP = "drag_drop"
    SEQUENCING = "sequencing"


class Test(Base):
    """Gradeable evaluation definition."""

    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    status = Column(String(20), default=TestStatus.DRAFT.value, nullable=False)
    time_mode = Column(String(20), default=TimeMode.UNLIMITED.value, nullable=False)
    time_limit_minutes = Column(Integer, nullable=True)
    passing_score = Column(Float, default=settings.DEFAULT_PASSING_SCORE, nullable=False)  # Percentage
    max_attempts = Column(Integer, default=1, nullable=False)
    shuffle_questions = Column(Boolean, default=False, nullable=False)
    shuffle_options = Column(Boolean, default=False, nullable=False)
    show_results_immediately = Column(Boolean, default=True, nullable=False)
    show_correct_answers = Column(Boolean, default=False, nullable=False)
    allow_review = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(36), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    questions = relationship(
        "TestQuestion",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestQuestion.order",
    )
    linkages = relationship("Linkage", back_populates="test", cascade="all, delete-orphan")

    @property
    def is_timed(self) -> bool:
        return self.time_mode == TimeMode.TIMED.value

    @property
    def attempt_limit(self) -> int:
        # A limit of 0 still admits the first attempt
        return max(self.max_attempts or 0, 1)


class TestQuestion(Base):
    """Question belonging to exactly one test."""

    __tablename__ = "test_questions"
    __test__ = False

    id = Column(String(36), primary_key=True, default=generate_uuid)
    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    question_type = Column(String(30), nullable=False)
    question_text = Column(Text, nullable=False)
    question_media_url = Column(String, nullable=True)
    options = Column(JSON, nullable=True)  # Option list, or {left, right, pairs} for match
    correct_answer = Column(JSON, nullable=True)  # Value, list or mapping depending on type
    explanation = Column(Text, nullable=True)
    points = Column(Integer, default=1, nullable=False)
    time_limit_seconds = Column(Integer, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    is_required = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    test = relationship("Test", back_populates="questions")
