"""
Accreditation emission for passed, required tests.
"""
import logging
from datetime import datetime
from typing import Any, Optional, Tuple

from sqlalchemy.orm import Session

from assessment_engine.models.accreditation import CourseAccreditation

logger = logging.getLogger(__name__)


class AccreditationService:
    """Writes ``course_accreditations`` rows; certificate issuance reads them."""

    def __init__(self, db: Session):
        self.db = db

    def requires_accreditation(self, linkage: Any) -> bool:
        return bool(linkage is not None and linkage.is_required and linkage.course_id)

    def get(self, student_id: str, course_id: str) -> Optional[CourseAccreditation]:
        return (
            self.db.query(CourseAccreditation)
            .filter(
                CourseAccreditation.student_id == student_id,
                CourseAccreditation.course_id == course_id,
            )
            .first()
        )

    def grant(self, attempt: Any, linkage: Any, now: datetime) -> Tuple[Optional[CourseAccreditation], bool]:
        """
        Record that ``attempt`` accredits its student for the linkage's course.

        Idempotent per (student, course): an existing record is returned
        untouched.

        Returns:
            (record, created). ``(None, False)`` when the attempt does not qualify.
        """
        if not attempt.passed or not self.requires_accreditation(linkage):
            return None, False

        existing = self.get(attempt.student_id, linkage.course_id)
        if existing is not None:
            return existing, False

        record = CourseAccreditation(
            student_id=attempt.student_id,
            course_id=linkage.course_id,
            test_attempt_id=attempt.id,
            final_score=attempt.percentage,
            accredited_at=now,
            certificate_issued=False,
        )
        self.db.add(record)
        logger.info(
            f"Student {attempt.student_id} accredited for course {linkage.course_id} "
            f"by attempt {attempt.id} ({attempt.percentage}%)"
        )
        return record, True
