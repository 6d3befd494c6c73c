"""
Pydantic schemas for starting, answering and submitting attempts.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator

from assessment_engine.schemas.common import CamelModel
from assessment_engine.utils.time import ensure_utc


# ============= Requests =============

class StartAttemptRequest(CamelModel):
    """Schema for starting (or resuming) an attempt."""

    student_id: Optional[str] = None


class SaveAnswerRequest(CamelModel):
    """
    Schema for saving one answer while the attempt is in progress.

    The ``answer`` shape depends on the question type:

    - multiple_choice / true_false: ``"option_a"`` / ``true``
    - multiple_answer: ``["option_a", "option_c"]``
    - reorder / sequencing: ``["step_2", "step_1", "step_3"]``
    - match / drag_drop: ``{"term_1": "def_b", "term_2": "def_a"}``
    - open_ended / poll: free text or an option id
    """

    student_id: Optional[str] = None
    question_id: str
    answer: Any = None
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)


class SubmittedAnswer(CamelModel):
    """Schema for one answer inside a submission."""

    question_id: str
    answer: Any = None
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)


class SubmitAttemptRequest(CamelModel):
    """Schema for finishing an attempt. ``answers`` may be a delta over saved ones."""

    student_id: Optional[str] = None
    attempt_id: Optional[str] = None
    answers: List[SubmittedAnswer] = Field(default_factory=list)


# ============= Responses =============

class AttemptSummary(CamelModel):
    id: str
    linkage_id: str
    test_id: str
    course_id: Optional[str] = None
    student_id: str
    attempt_number: int
    status: str
    score: Optional[int] = None
    max_score: Optional[int] = None
    percentage: Optional[float] = None
    passed: Optional[bool] = None
    accredited: bool = False
    start_time: datetime
    end_time: Optional[datetime] = None
    time_spent_seconds: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def as_utc(cls, value):
        return ensure_utc(value)

    def without_scores(self) -> "AttemptSummary":
        """Copy for tests that withhold results from students."""
        return self.model_copy(update={"score": None, "max_score": None, "percentage": None, "passed": None})


class TestSummary(CamelModel):
    """Test settings shown to the student. Carries no grading data."""

    __test__ = False

    id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    status: str
    time_mode: str
    time_limit_minutes: Optional[int] = None
    passing_score: float
    max_attempts: int
    shuffle_questions: bool
    shuffle_options: bool
    show_results_immediately: bool
    show_correct_answers: bool
    allow_review: bool


class QuestionPayload(CamelModel):
    """Question as delivered during an attempt. There is deliberately no answer field."""

    id: str
    test_id: str
    question_type: str
    question_text: str
    question_media_url: Optional[str] = None
    options: Any = None
    points: int
    time_limit_seconds: Optional[int] = None
    order: int
    is_required: bool


class SavedAnswer(CamelModel):
    id: str
    attempt_id: str
    question_id: str
    answer: Any = None
    time_spent_seconds: Optional[int] = None
    answered_at: datetime

    @field_validator("answered_at")
    @classmethod
    def as_utc(cls, value):
        return ensure_utc(value)


class StartAttemptResponse(CamelModel):
    attempt: AttemptSummary
    test: TestSummary
    questions: List[QuestionPayload]
    saved_answers: List[SavedAnswer]
    remaining_time_seconds: Optional[int] = None
    resumed: bool = False


class AttemptResults(CamelModel):
    """Score fields are null when the test withholds immediate results."""

    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered: int
    ungraded: int
    score: Optional[int] = None
    max_score: Optional[int] = None
    percentage: Optional[float] = None
    passed: Optional[bool] = None
    accredited: bool = False
    time_spent: int


class QuestionReview(CamelModel):
    question_id: str
    question_text: str
    question_type: str
    options: Any = None
    student_answer: Any = None
    correct_answer: Any = None
    is_correct: bool
    points_earned: int
    explanation: Optional[str] = None


class SubmitAttemptResponse(CamelModel):
    attempt: AttemptSummary
    results: AttemptResults
    answers_review: Optional[List[QuestionReview]] = None
    replayed: bool = False
