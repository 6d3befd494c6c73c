"""
Per-question grading.

``grade_answer`` is pure: the question row and the submitted value in, a
``GradeResult`` out. Every type is all-or-nothing; there is no partial credit.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Mapping

from assessment_engine.core.exceptions import MalformedAnswer
from assessment_engine.models.test import QuestionType
from assessment_engine.schemas.question import (
    DragDropContent,
    MatchContent,
    MultipleAnswerContent,
    OrderingContent,
    QuestionContent,
    SingleValueContent,
    UngradedContent,
    parse_question_content,
)

UNGRADED_TYPES = frozenset({QuestionType.POLL.value, QuestionType.OPEN_ENDED.value})


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one question."""

    is_correct: bool
    points_earned: int
    graded: bool = True  # False for poll / open-ended
    answered: bool = True


def _normalize_boolean(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return value


def _require_list(value: Any) -> List[Any]:
    if not isinstance(value, list):
        raise MalformedAnswer(f"Expected a list, got {type(value).__name__}")
    if not all(isinstance(item, Hashable) for item in value):
        raise MalformedAnswer("List answers may only contain scalar values")
    return value


def _require_mapping(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedAnswer(f"Expected an object, got {type(value).__name__}")
    return value


def _check_single_value(content: SingleValueContent, submitted: Any) -> bool:
    if isinstance(submitted, (list, dict)):
        raise MalformedAnswer("Expected a single value")
    if content.question_type == QuestionType.TRUE_FALSE.value:
        return _normalize_boolean(submitted) == _normalize_boolean(content.correct_answer)
    return submitted == content.correct_answer


def _check_multiple_answer(content: MultipleAnswerContent, submitted: Any) -> bool:
    return set(_require_list(submitted)) == set(content.correct_answer)


def _check_ordering(expected: List[str], submitted: Any) -> bool:
    # Position by position
    return list(_require_list(submitted)) == list(expected)


def _check_match(expected: Dict[str, str], submitted: Any) -> bool:
    return dict(_require_mapping(submitted)) == expected


def _check_drag_drop(content: DragDropContent, submitted: Any) -> bool:
    expected = content.correct_answer
    if isinstance(expected, dict):
        return _check_match(expected, submitted)
    if isinstance(expected, list):
        return _check_ordering(expected, submitted)
    # No explicit answer: derive from the option structure
    options = content.options
    if isinstance(options, list):
        return _check_ordering(OrderingContent(question_type="reorder", options=options).expected_order(), submitted)
    if options is not None:
        return _check_match({pair.left: pair.right for pair in options.pairs}, submitted)
    return False


_CHECKERS: Dict[str, Callable[[Any, Any], bool]] = {
    QuestionType.MULTIPLE_CHOICE.value: _check_single_value,
    QuestionType.TRUE_FALSE.value: _check_single_value,
    QuestionType.MULTIPLE_ANSWER.value: _check_multiple_answer,
    QuestionType.REORDER.value: lambda c, s: _check_ordering(c.expected_order(), s),
    QuestionType.SEQUENCING.value: lambda c, s: _check_ordering(c.expected_order(), s),
    QuestionType.MATCH.value: lambda c, s: _check_match(c.expected_pairs(), s),
    QuestionType.DRAG_DROP.value: _check_drag_drop,
}


def is_scored(question_type: str, open_ended_counts: bool = False) -> bool:
    """Whether a question contributes to the max score."""
    if question_type == QuestionType.POLL.value:
        return False
    if question_type == QuestionType.OPEN_ENDED.value:
        return open_ended_counts
    return True


def grade_content(content: QuestionContent, points: int, submitted: Any, has_answer: bool = True) -> GradeResult:
    """
    Grade a submitted value against already-parsed question content.

    Raises:
        MalformedAnswer: If the submitted value does not fit the question type
    """
    if not has_answer:
        return GradeResult(is_correct=False, points_earned=0, answered=False)

    if isinstance(content, UngradedContent):
        # Polls collect data, open-ended answers wait for manual review
        return GradeResult(
            is_correct=content.question_type == QuestionType.POLL.value,
            points_earned=0,
            graded=False,
        )

    checker = _CHECKERS[content.question_type]
    is_correct = bool(checker(content, submitted))
    return GradeResult(is_correct=is_correct, points_earned=points if is_correct else 0)


def grade_answer(question: Any, submitted: Any, has_answer: bool = True) -> GradeResult:
    """
    Grade one question.

    Args:
        question: Question row (``question_type``, ``options``, ``correct_answer``, ``points``)
        submitted: Submitted answer value
        has_answer: False when the student never answered this question

    Returns:
        GradeResult

    Raises:
        MalformedAnswer: If the answer shape does not match the question type
        pydantic.ValidationError: If the stored question content is invalid
    """
    content = parse_question_content(question)
    return grade_content(content, int(question.points or 0), submitted, has_answer=has_answer)
