"""
Results statistics per test and attempt history per student.
"""
from typing import List

from sqlalchemy.orm import Session

from assessment_engine.core.exceptions import LinkageNotFound, MissingStudentId, TestNotFound
from assessment_engine.models.attempt import Attempt
from assessment_engine.schemas.attempt import AttemptSummary, TestSummary
from assessment_engine.schemas.results import AttemptHistoryResponse, TestResultsResponse, TestResultsStats
from assessment_engine.services.attempt_state import GRADED_STATUSES
from assessment_engine.services.attempt_store import AttemptStore
from assessment_engine.services.scoring import round_percentage


def compute_stats(attempts: List[Attempt]) -> TestResultsStats:
    """Stats over graded (completed or timed out) attempts."""
    graded_values = {s.value for s in GRADED_STATUSES}
    graded = [a for a in attempts if a.status in graded_values]
    scores = [a.percentage for a in graded if a.percentage is not None]
    times = [a.time_spent_seconds for a in graded if a.time_spent_seconds is not None]
    passed = sum(1 for a in graded if a.passed)
    accredited = sum(1 for a in graded if a.accredited)

    return TestResultsStats(
        total_attempts=len(attempts),
        completed_attempts=len(graded),
        average_score=round_percentage(sum(scores) / len(scores)) if scores else 0.0,
        pass_rate=round_percentage(passed / len(graded) * 100) if graded else 0.0,
        accreditation_rate=round_percentage(accredited / len(graded) * 100) if graded else 0.0,
        average_time_seconds=round(sum(times) / len(times)) if times else 0,
        highest_score=max(scores) if scores else 0.0,
        lowest_score=min(scores) if scores else 0.0,
    )


def results_for_test(db: Session, test_id: str) -> TestResultsResponse:
    store = AttemptStore(db)
    test = store.get_test(test_id)
    if test is None:
        raise TestNotFound()
    attempts = store.attempts_for_test(test_id)
    return TestResultsResponse(
        test=TestSummary.model_validate(test),
        stats=compute_stats(attempts),
        attempts=[AttemptSummary.model_validate(a) for a in attempts],
    )


def attempt_history(db: Session, student_id: str, linkage_id: str) -> AttemptHistoryResponse:
    if not student_id:
        raise MissingStudentId()
    store = AttemptStore(db)
    linkage = store.get_linkage(linkage_id)
    if linkage is None:
        raise LinkageNotFound()
    test = store.get_test(linkage.test_id)
    if test is None:
        raise TestNotFound()

    attempts = store.list_attempts(student_id, linkage_id)
    summaries = [AttemptSummary.model_validate(a) for a in attempts]
    if not test.show_results_immediately:
        summaries = [s.without_scores() for s in summaries]
    remaining = max(0, test.attempt_limit - len(attempts))
    return AttemptHistoryResponse(
        attempts=summaries,
        max_attempts=test.max_attempts,
        attempts_remaining=remaining,
    )
