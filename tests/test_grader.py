"""
Tests for per-question grading.
"""
from types import SimpleNamespace

import pytest

from assessment_engine.core.exceptions import MalformedAnswer
from assessment_engine.services.grader import grade_answer, is_scored


def question(question_type, options=None, correct_answer=None, points=1):
    return SimpleNamespace(
        id="q1",
        question_type=question_type,
        options=options,
        correct_answer=correct_answer,
        points=points,
    )


CHOICES = [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}, {"id": "c", "text": "C"}]


class TestSingleValue:
    """Tests for multiple_choice and true_false questions."""

    def test_correct_choice_earns_points(self):
        result = grade_answer(question("multiple_choice", CHOICES, "b", points=5), "b")
        assert result.is_correct is True
        assert result.points_earned == 5

    def test_wrong_choice_earns_nothing(self):
        result = grade_answer(question("multiple_choice", CHOICES, "b", points=5), "a")
        assert result.is_correct is False
        assert result.points_earned == 0

    def test_list_answer_is_malformed(self):
        with pytest.raises(MalformedAnswer):
            grade_answer(question("multiple_choice", CHOICES, "b"), ["b"])

    @pytest.mark.parametrize("submitted", [True, "true", "True"])
    def test_true_false_accepts_boolean_strings(self, submitted):
        result = grade_answer(question("true_false", correct_answer=True), submitted)
        assert result.is_correct is True

    def test_true_false_wrong_value(self):
        result = grade_answer(question("true_false", correct_answer="false"), True)
        assert result.is_correct is False


class TestMultipleAnswer:
    """All-or-nothing set comparison."""

    def test_exact_set_is_correct_in_any_order(self):
        q = question("multiple_answer", CHOICES, ["a", "c"], points=2)
        result = grade_answer(q, ["c", "a"])
        assert result.is_correct is True
        assert result.points_earned == 2

    def test_subset_earns_nothing(self):
        q = question("multiple_answer", CHOICES, ["a", "c"], points=2)
        result = grade_answer(q, ["a"])
        assert result.is_correct is False
        assert result.points_earned == 0

    def test_superset_earns_nothing(self):
        q = question("multiple_answer", CHOICES, ["a", "c"], points=2)
        assert grade_answer(q, ["a", "b", "c"]).is_correct is False

    def test_scalar_is_malformed(self):
        with pytest.raises(MalformedAnswer):
            grade_answer(question("multiple_answer", CHOICES, ["a"]), "a")


class TestOrdering:
    """Tests for reorder and sequencing questions."""

    STEPS = [
        {"id": "s1", "text": "First", "correctPosition": 1},
        {"id": "s2", "text": "Second", "correctPosition": 2},
        {"id": "s3", "text": "Third", "correctPosition": 3},
    ]

    def test_explicit_order(self):
        q = question("sequencing", self.STEPS, ["s1", "s2", "s3"])
        assert grade_answer(q, ["s1", "s2", "s3"]).is_correct is True
        assert grade_answer(q, ["s2", "s1", "s3"]).is_correct is False

    def test_order_from_correct_positions(self):
        q = question("reorder", self.STEPS)
        assert grade_answer(q, ["s1", "s2", "s3"]).is_correct is True
        assert grade_answer(q, ["s3", "s2", "s1"]).is_correct is False

    def test_mapping_is_malformed(self):
        with pytest.raises(MalformedAnswer):
            grade_answer(question("reorder", self.STEPS), {"s1": 1})


class TestMatch:
    """Tests for match and drag_drop questions."""

    OPTIONS = {
        "left": [{"id": "l1", "text": "dog"}, {"id": "l2", "text": "cat"}],
        "right": [{"id": "r1", "text": "bark"}, {"id": "r2", "text": "meow"}],
        "pairs": [{"left": "l1", "right": "r1"}, {"left": "l2", "right": "r2"}],
    }

    def test_all_pairs_correct(self):
        q = question("match", self.OPTIONS, {"l1": "r1", "l2": "r2"}, points=3)
        result = grade_answer(q, {"l2": "r2", "l1": "r1"})
        assert result.is_correct is True
        assert result.points_earned == 3

    def test_one_wrong_pair_fails(self):
        q = question("match", self.OPTIONS, {"l1": "r1", "l2": "r2"})
        assert grade_answer(q, {"l1": "r2", "l2": "r2"}).is_correct is False

    def test_pairs_from_options(self):
        q = question("match", self.OPTIONS)
        assert grade_answer(q, {"l1": "r1", "l2": "r2"}).is_correct is True

    def test_list_is_malformed(self):
        with pytest.raises(MalformedAnswer):
            grade_answer(question("match", self.OPTIONS), ["r1", "r2"])

    def test_drag_drop_placement(self):
        q = question("drag_drop", self.OPTIONS, {"l1": "r1", "l2": "r2"})
        assert grade_answer(q, {"l1": "r1", "l2": "r2"}).is_correct is True

    def test_drag_drop_ordering(self):
        q = question("drag_drop", CHOICES, ["c", "a", "b"])
        assert grade_answer(q, ["c", "a", "b"]).is_correct is True
        assert grade_answer(q, ["a", "b", "c"]).is_correct is False


class TestUngraded:
    """Polls and open-ended questions never earn points."""

    def test_poll_counts_as_participation(self):
        result = grade_answer(question("poll", CHOICES, points=4), "b")
        assert result.is_correct is True
        assert result.points_earned == 0
        assert result.graded is False

    def test_open_ended_waits_for_review(self):
        result = grade_answer(question("open_ended", points=4), "Some essay text")
        assert result.is_correct is False
        assert result.points_earned == 0
        assert result.graded is False

    def test_unanswered(self):
        result = grade_answer(question("multiple_choice", CHOICES, "a"), None, has_answer=False)
        assert result.answered is False
        assert result.points_earned == 0

    def test_scored_types(self):
        assert is_scored("multiple_choice") is True
        assert is_scored("poll") is False
        assert is_scored("open_ended") is False
        assert is_scored("open_ended", open_ended_counts=True) is True
