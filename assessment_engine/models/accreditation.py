"""
Course accreditation records emitted when a required test is passed.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Float, UniqueConstraint
from sqlalchemy.orm import relationship

from assessment_engine.db.base import Base
from assessment_engine.models.test import generate_uuid


class CourseAccreditation(Base):
    """A student met a required test's passing bar for a course."""

    __tablename__ = "course_accreditations"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_accreditation_student_course"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    student_id = Column(String(36), nullable=False, index=True)
    course_id = Column(String(36), nullable=False, index=True)
    test_attempt_id = Column(String(36), ForeignKey("test_attempts.id", ondelete="SET NULL"), nullable=True)
    final_score = Column(Float, nullable=True)
    accredited_at = Column(DateTime(timezone=True), nullable=False)
    # Owned by the certificate issuance service
    certificate_issued = Column(Boolean, default=False, nullable=False)

    # Relationships
    test_attempt = relationship("Attempt")
