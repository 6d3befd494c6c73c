"""
Score aggregation over a test's graded questions.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Sequence

from assessment_engine.services.grader import GradeResult, is_scored


@dataclass(frozen=True)
class ScoreSummary:
    score: int
    max_score: int
    percentage: float
    passed: bool
    total_questions: int
    correct: int
    incorrect: int
    unanswered: int
    ungraded: int


def round_percentage(value: float) -> float:
    """Round half-up to two decimals (50.005 -> 50.01)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def aggregate_scores(
    test: Any,
    questions: Sequence[Any],
    grades: Mapping[str, GradeResult],
    open_ended_counts: bool = False,
) -> ScoreSummary:
    """
    Combine per-question grades into the attempt's score.

    Args:
        test: Test row (``passing_score`` is read)
        questions: Every question of the test, answered or not
        grades: Grade per question id; a missing entry means unanswered
        open_ended_counts: Whether open-ended points belong to the max score

    Returns:
        ScoreSummary
    """
    score = 0
    max_score = 0
    correct = incorrect = unanswered = ungraded = 0

    for question in questions:
        points = int(question.points or 0)
        if is_scored(question.question_type, open_ended_counts):
            max_score += points

        grade = grades.get(question.id)
        if grade is None or not grade.answered:
            unanswered += 1
            continue
        if not grade.graded:
            ungraded += 1
            continue

        score += grade.points_earned
        if grade.is_correct:
            correct += 1
        else:
            incorrect += 1

    percentage = round_percentage(score / max_score * 100) if max_score > 0 else 0.0
    return ScoreSummary(
        score=score,
        max_score=max_score,
        percentage=percentage,
        passed=percentage >= float(test.passing_score),
        total_questions=len(questions),
        correct=correct,
        incorrect=incorrect,
        unanswered=unanswered,
        ungraded=ungraded,
    )
