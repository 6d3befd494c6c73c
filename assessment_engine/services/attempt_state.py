"""
Attempt state machine.

in_progress -> completed | timed_out | abandoned. Terminal states never move.
All status writes go through ``transition``.
"""
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from assessment_engine.core.exceptions import AlreadyCompleted, IllegalTransition
from assessment_engine.models.attempt import AttemptStatus

ALLOWED_TRANSITIONS: Dict[AttemptStatus, FrozenSet[AttemptStatus]] = {
    AttemptStatus.IN_PROGRESS: frozenset(
        {AttemptStatus.COMPLETED, AttemptStatus.TIMED_OUT, AttemptStatus.ABANDONED}
    ),
    AttemptStatus.COMPLETED: frozenset(),
    AttemptStatus.TIMED_OUT: frozenset(),
    AttemptStatus.ABANDONED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)
GRADED_STATUSES = frozenset({AttemptStatus.COMPLETED, AttemptStatus.TIMED_OUT})


def can_transition(current: AttemptStatus, target: AttemptStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(
    attempt: Any,
    target: AttemptStatus,
    now: datetime,
    score: Optional[Any] = None,
    time_spent_seconds: Optional[int] = None,
) -> Any:
    """
    Move ``attempt`` to ``target`` and freeze its result fields.

    Args:
        attempt: Attempt row
        target: Terminal status to move to
        now: Transition time, recorded as ``end_time``
        score: ScoreSummary to freeze (completed / timed_out)
        time_spent_seconds: Recorded time on the attempt

    Raises:
        AlreadyCompleted: If the attempt is already terminal
        IllegalTransition: For any other disallowed move
    """
    current = AttemptStatus(attempt.status)
    if current in TERMINAL_STATUSES:
        raise AlreadyCompleted(current.value, target.value)
    if not can_transition(current, target):
        raise IllegalTransition(current.value, target.value)

    attempt.status = target.value
    attempt.end_time = now
    if time_spent_seconds is not None:
        attempt.time_spent_seconds = time_spent_seconds
    if score is not None:
        attempt.score = score.score
        attempt.max_score = score.max_score
        attempt.percentage = score.percentage
        attempt.passed = score.passed
    return attempt
