"""
Tests for the attempt state machine.
"""
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from assessment_engine.core.exceptions import AlreadyCompleted, IllegalTransition
from assessment_engine.models.attempt import AttemptStatus
from assessment_engine.services.attempt_state import TERMINAL_STATUSES, can_transition, transition
from assessment_engine.services.scoring import ScoreSummary

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def attempt(status="in_progress"):
    return SimpleNamespace(
        status=status,
        end_time=None,
        time_spent_seconds=None,
        score=None,
        max_score=None,
        percentage=None,
        passed=None,
    )


SUMMARY = ScoreSummary(
    score=5, max_score=10, percentage=50.0, passed=False,
    total_questions=2, correct=1, incorrect=1, unanswered=0, ungraded=0,
)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {AttemptStatus.COMPLETED, AttemptStatus.TIMED_OUT, AttemptStatus.ABANDONED}


@pytest.mark.parametrize("target", [AttemptStatus.COMPLETED, AttemptStatus.TIMED_OUT, AttemptStatus.ABANDONED])
def test_in_progress_can_close(target):
    assert can_transition(AttemptStatus.IN_PROGRESS, target)


def test_transition_freezes_score():
    row = transition(attempt(), AttemptStatus.COMPLETED, NOW, score=SUMMARY, time_spent_seconds=42)
    assert row.status == "completed"
    assert row.end_time == NOW
    assert row.time_spent_seconds == 42
    assert (row.score, row.max_score, row.percentage, row.passed) == (5, 10, 50.0, False)


def test_abandon_without_score():
    row = transition(attempt(), AttemptStatus.ABANDONED, NOW)
    assert row.status == "abandoned"
    assert row.score is None


@pytest.mark.parametrize("status", ["completed", "timed_out", "abandoned"])
def test_terminal_never_moves(status):
    with pytest.raises(AlreadyCompleted):
        transition(attempt(status), AttemptStatus.COMPLETED, NOW)


def test_in_progress_to_in_progress_is_illegal():
    with pytest.raises(IllegalTransition) as exc_info:
        transition(attempt(), AttemptStatus.IN_PROGRESS, NOW)
    assert exc_info.value.status_code == 409
