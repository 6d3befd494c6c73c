"""
Domain errors raised by the attempt engine.

Services raise these; ``main`` renders them as ``{"detail", "code"}`` JSON
with the status code carried by the class.
"""
from typing import Optional

from fastapi import status


class AssessmentError(Exception):
    """Base class for user-visible engine errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "assessment_error"
    default_detail: str = "Assessment request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class MissingStudentId(AssessmentError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "missing_student_id"
    default_detail = "studentId is required"


class NotAuthenticated(AssessmentError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"
    default_detail = "Could not validate credentials"


class NotAuthorized(AssessmentError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    default_detail = "Not enough permissions"


class LinkageNotFound(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "linkage_not_found"
    default_detail = "Evaluation not found"


class TestNotFound(AssessmentError):
    __test__ = False

    status_code = status.HTTP_404_NOT_FOUND
    code = "test_not_found"
    default_detail = "Evaluation not found"


class QuestionNotInTest(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "question_not_in_test"
    default_detail = "Question does not belong to this evaluation"


class NotYetOpen(AssessmentError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_yet_open"
    default_detail = "The evaluation is not available yet"


class WindowClosed(AssessmentError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "window_closed"
    default_detail = "The evaluation is no longer available"


class TestUnavailable(AssessmentError):
    __test__ = False

    status_code = status.HTTP_403_FORBIDDEN
    code = "test_unavailable"
    default_detail = "The evaluation is not currently active"


class AttemptLimitReached(AssessmentError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "attempt_limit_reached"

    def __init__(self, max_attempts: int):
        self.max_attempts = max_attempts
        super().__init__(f"You have reached the maximum of {max_attempts} attempt(s)")


class NoActiveAttempt(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "no_active_attempt"
    default_detail = "No in-progress attempt found"


class IllegalTransition(AssessmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "illegal_transition"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Attempt cannot move from {current} to {target}")


class AlreadyCompleted(IllegalTransition):
    code = "already_completed"


class MalformedAnswer(ValueError):
    """Submitted answer does not have the shape its question type expects."""


class GradingInconsistency(ValueError):
    """Submitted answer references a question outside the attempt's test."""
