"""
Linkage model: a test attached to a course, optionally scoped to a lesson or section.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from assessment_engine.db.base import Base
from assessment_engine.models.test import generate_uuid


class Linkage(Base):
    """Unit of availability for a test inside a course."""

    __tablename__ = "linked_tests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    # Course, lesson and section rows belong to the course service
    course_id = Column(String(36), nullable=False, index=True)
    lesson_id = Column(String(36), nullable=True)
    section_id = Column(String(36), nullable=True)
    is_required = Column(Boolean, default=True, nullable=False)  # Counts toward accreditation
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_until = Column(DateTime(timezone=True), nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    test = relationship("Test", back_populates="linkages")
    attempts = relationship("Attempt", back_populates="linkage", cascade="all, delete-orphan")
