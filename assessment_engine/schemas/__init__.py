"""Schemas module - Import all schemas."""
from assessment_engine.schemas.attempt import (
    AttemptResults,
    AttemptSummary,
    QuestionPayload,
    QuestionReview,
    SaveAnswerRequest,
    SavedAnswer,
    StartAttemptRequest,
    StartAttemptResponse,
    SubmitAttemptRequest,
    SubmitAttemptResponse,
    SubmittedAnswer,
    TestSummary,
)
from assessment_engine.schemas.common import CamelModel, ErrorResponse
from assessment_engine.schemas.question import QuestionContent, parse_question_content
from assessment_engine.schemas.results import (
    AttemptHistoryResponse,
    TestResultsResponse,
    TestResultsStats,
)

__all__ = [
    "AttemptResults",
    "AttemptSummary",
    "QuestionPayload",
    "QuestionReview",
    "SaveAnswerRequest",
    "SavedAnswer",
    "StartAttemptRequest",
    "StartAttemptResponse",
    "SubmitAttemptRequest",
    "SubmitAttemptResponse",
    "SubmittedAnswer",
    "TestSummary",
    "CamelModel",
    "ErrorResponse",
    "QuestionContent",
    "parse_question_content",
    "AttemptHistoryResponse",
    "TestResultsResponse",
    "TestResultsStats",
]
