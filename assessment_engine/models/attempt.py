"""
Models for tracking a student's attempts at a test and the answers given.
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, JSON, DateTime, ForeignKey, Float, Index, UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from assessment_engine.db.base import Base
from assessment_engine.models.test import generate_uuid


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    TIMED_OUT = "timed_out"


class Attempt(Base):
    """One student's pass through a test via a linkage."""

    __tablename__ = "test_attempts"
    __table_args__ = (
        UniqueConstraint("student_id", "linkage_id", "attempt_number", name="uq_attempt_number"),
        # At most one in-progress attempt per (student, linkage)
        Index(
            "ix_attempts_one_in_progress",
            "student_id",
            "linkage_id",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
            sqlite_where=text("status = 'in_progress'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    linkage_id = Column(String(36), ForeignKey("linked_tests.id", ondelete="CASCADE"), nullable=False, index=True)
    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(String(36), nullable=True)
    student_id = Column(String(36), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False)

    status = Column(String(20), default=AttemptStatus.IN_PROGRESS.value, nullable=False)
    score = Column(Integer, nullable=True)
    max_score = Column(Integer, nullable=True)
    percentage = Column(Float, nullable=True)
    passed = Column(Boolean, nullable=True)
    accredited = Column(Boolean, default=False, nullable=False)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    time_spent_seconds = Column(Integer, nullable=True)

    # Materialized at start so resumes show the same arrangement
    question_order = Column(JSON, nullable=True)  # [question_id, ...]
    option_order = Column(JSON, nullable=True)  # {question_id: [option_id, ...]}

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    linkage = relationship("Linkage", back_populates="attempts")
    test = relationship("Test")
    answers = relationship("Answer", back_populates="attempt", cascade="all, delete-orphan")

    @property
    def is_terminal(self) -> bool:
        return self.status != AttemptStatus.IN_PROGRESS.value


class Answer(Base):
    """A student's response to one question within one attempt."""

    __tablename__ = "test_answers"
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answer_attempt_question"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    attempt_id = Column(String(36), ForeignKey("test_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(36), ForeignKey("test_questions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(String(36), nullable=False)

    answer = Column(JSON, nullable=True)  # Shape depends on question type
    is_correct = Column(Boolean, nullable=True)  # Null until graded
    points_earned = Column(Integer, default=0, nullable=False)
    time_spent_seconds = Column(Integer, nullable=True)  # Client-reported, analytics only

    answered_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    attempt = relationship("Attempt", back_populates="answers")
    question = relationship("TestQuestion")
