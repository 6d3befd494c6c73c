"""Models module - Import all models here for Alembic."""
from assessment_engine.db.base import Base
from assessment_engine.models.test import Test, TestQuestion, TestStatus, TimeMode, QuestionType
from assessment_engine.models.linkage import Linkage
from assessment_engine.models.attempt import Attempt, Answer, AttemptStatus
from assessment_engine.models.accreditation import CourseAccreditation

__all__ = ["Base", "Test", "TestQuestion", "TestStatus", "TimeMode", "QuestionType", "Linkage", "Attempt", "Answer", "AttemptStatus", "CourseAccreditation"]
