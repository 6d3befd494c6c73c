"""
Pydantic schemas for result reporting.
"""
from typing import List

from assessment_engine.schemas.attempt import AttemptSummary, TestSummary
from assessment_engine.schemas.common import CamelModel


class TestResultsStats(CamelModel):
    """Aggregate statistics over a test's attempts."""

    __test__ = False

    total_attempts: int
    completed_attempts: int
    average_score: float
    pass_rate: float
    accreditation_rate: float
    average_time_seconds: int
    highest_score: float
    lowest_score: float


class TestResultsResponse(CamelModel):
    __test__ = False

    test: TestSummary
    stats: TestResultsStats
    attempts: List[AttemptSummary]


class AttemptHistoryResponse(CamelModel):
    attempts: List[AttemptSummary]
    max_attempts: int
    attempts_remaining: int
