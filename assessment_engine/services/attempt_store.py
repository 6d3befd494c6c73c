"""
Persistence for attempts and answers.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment_engine.models.attempt import Answer, Attempt, AttemptStatus
from assessment_engine.models.linkage import Linkage
from assessment_engine.models.test import Test, TestQuestion

logger = logging.getLogger(__name__)


class AttemptStore:
    """
    Store for attempts and their answers.

    The "one in-progress attempt per (student, linkage)" rule is enforced by
    the partial unique index on ``test_attempts``; ``create_in_progress``
    turns a lost insert race into a resume of the winning attempt.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- lookups ----------

    def get_linkage(self, linkage_id: str) -> Optional[Linkage]:
        return self.db.query(Linkage).filter(Linkage.id == linkage_id).first()

    def get_test(self, test_id: str) -> Optional[Test]:
        return self.db.query(Test).filter(Test.id == test_id).first()

    def get_questions(self, test_id: str) -> List[TestQuestion]:
        return (
            self.db.query(TestQuestion)
            .filter(TestQuestion.test_id == test_id)
            .order_by(TestQuestion.order.asc())
            .all()
        )

    def get_attempt(self, attempt_id: str) -> Optional[Attempt]:
        return self.db.query(Attempt).filter(Attempt.id == attempt_id).first()

    def find_in_progress(self, student_id: str, linkage_id: str) -> Optional[Attempt]:
        return (
            self.db.query(Attempt)
            .filter(
                Attempt.student_id == student_id,
                Attempt.linkage_id == linkage_id,
                Attempt.status == AttemptStatus.IN_PROGRESS.value,
            )
            .first()
        )

    def count_attempts(self, student_id: str, linkage_id: str) -> int:
        """All attempts, whatever their status, count toward the limit."""
        return (
            self.db.query(Attempt)
            .filter(Attempt.student_id == student_id, Attempt.linkage_id == linkage_id)
            .count()
        )

    def list_attempts(self, student_id: str, linkage_id: str) -> List[Attempt]:
        return (
            self.db.query(Attempt)
            .filter(Attempt.student_id == student_id, Attempt.linkage_id == linkage_id)
            .order_by(Attempt.attempt_number.desc())
            .all()
        )

    def latest_attempt(self, student_id: str, linkage_id: str) -> Optional[Attempt]:
        return (
            self.db.query(Attempt)
            .filter(Attempt.student_id == student_id, Attempt.linkage_id == linkage_id)
            .order_by(Attempt.attempt_number.desc())
            .first()
        )

    def attempts_for_test(self, test_id: str) -> List[Attempt]:
        return (
            self.db.query(Attempt)
            .filter(Attempt.test_id == test_id)
            .order_by(Attempt.start_time.desc())
            .all()
        )

    def answers_by_question(self, attempt_id: str) -> Dict[str, Answer]:
        answers = self.db.query(Answer).filter(Answer.attempt_id == attempt_id).all()
        return {a.question_id: a for a in answers}

    # ---------- writes ----------

    def create_in_progress(
        self,
        linkage: Linkage,
        student_id: str,
        attempt_number: int,
        now: datetime,
        question_order: Optional[List[str]] = None,
        option_order: Optional[Dict[str, List[str]]] = None,
    ) -> Tuple[Attempt, bool]:
        """
        Insert a new in-progress attempt.

        Returns:
            (attempt, created). ``created`` is False when a concurrent start
            won the race; the attempt returned is then the winner's.

        Raises:
            IntegrityError: If the insert failed and no in-progress attempt exists
        """
        attempt = Attempt(
            linkage_id=linkage.id,
            test_id=linkage.test_id,
            course_id=linkage.course_id,
            student_id=student_id,
            attempt_number=attempt_number,
            status=AttemptStatus.IN_PROGRESS.value,
            start_time=now,
            question_order=question_order,
            option_order=option_order,
        )
        self.db.add(attempt)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            existing = self.find_in_progress(student_id, linkage.id)
            if existing is None:
                raise
            logger.warning(
                f"Concurrent start detected for student {student_id} on linkage {linkage.id}; "
                f"returning attempt {existing.id}"
            )
            return existing, False
        return attempt, True

    def upsert_answer(
        self,
        attempt: Attempt,
        question_id: str,
        value: Any,
        now: datetime,
        time_spent_seconds: Optional[int] = None,
        existing: Optional[Dict[str, Answer]] = None,
    ) -> Answer:
        """
        Create or overwrite the answer keyed by (attempt, question).

        ``existing`` is a preloaded ``answers_by_question`` map; when omitted the
        row is looked up. Nothing is flushed here.
        """
        if existing is not None:
            answer = existing.get(question_id)
        else:
            answer = (
                self.db.query(Answer)
                .filter(Answer.attempt_id == attempt.id, Answer.question_id == question_id)
                .first()
            )

        if answer is None:
            answer = Answer(
                attempt_id=attempt.id,
                question_id=question_id,
                student_id=attempt.student_id,
                points_earned=0,
            )
            self.db.add(answer)
            if existing is not None:
                existing[question_id] = answer

        answer.answer = value
        answer.answered_at = now
        if time_spent_seconds is not None:
            answer.time_spent_seconds = time_spent_seconds
        return answer
