"""
Tests for POST /attempts/{linkage_id}/start.
"""
import json
from datetime import timedelta

from assessment_engine.models import Attempt

from conftest import START, single_choice

API = "/api/v1/attempts"


def start(client, linkage_id, student_id="student-1"):
    return client.post(f"{API}/{linkage_id}/start", json={"studentId": student_id})


class TestStartAttempt:
    """Tests for starting a new attempt."""

    def test_start_success(self, client, make_test, make_linkage):
        """Starting returns the attempt, test settings and questions."""
        linkage = make_linkage(make_test())
        response = start(client, linkage.id)

        assert response.status_code == 200
        data = response.json()

        attempt = data["attempt"]
        assert attempt["status"] == "in_progress"
        assert attempt["attemptNumber"] == 1
        assert attempt["studentId"] == "student-1"
        assert attempt["linkageId"] == linkage.id
        assert attempt["courseId"] == "course-1"
        assert attempt["endTime"] is None

        assert data["test"]["title"] == "Unit 1 Evaluation"
        assert len(data["questions"]) == 2
        assert data["savedAnswers"] == []
        assert data["resumed"] is False
        assert data["remainingTimeSeconds"] is None

    def test_questions_hide_answers(self, client, make_test, make_linkage):
        """No correct answer, explanation or position hint reaches the student."""
        reorder = single_choice(2)
        reorder.question_type = "reorder"
        reorder.options = [
            {"id": "s1", "text": "one", "correctPosition": 1},
            {"id": "s2", "text": "two", "correctPosition": 2},
        ]
        reorder.correct_answer = ["s1", "s2"]
        questions = [single_choice(1), reorder]
        linkage = make_linkage(make_test(questions=questions))

        data = start(client, linkage.id).json()
        raw = json.dumps(data["questions"])

        for question in data["questions"]:
            assert "correctAnswer" not in question
            assert "explanation" not in question
        assert "correctPosition" not in raw
        assert "isCorrect" not in raw

    def test_question_order_follows_authoring(self, client, make_test, make_linkage, question_ids):
        test = make_test(questions=[single_choice(i) for i in range(1, 6)])
        linkage = make_linkage(test)

        data = start(client, linkage.id).json()
        assert [q["id"] for q in data["questions"]] == question_ids(test)

    def test_timed_test_reports_remaining_time(self, client, make_test, make_linkage):
        linkage = make_linkage(make_test(time_mode="timed", time_limit_minutes=10))
        data = start(client, linkage.id).json()
        assert data["remainingTimeSeconds"] == 600

    def test_missing_student_id(self, client, make_test, make_linkage):
        linkage = make_linkage(make_test())
        response = client.post(f"{API}/{linkage.id}/start", json={})

        assert response.status_code == 400
        assert response.json()["code"] == "missing_student_id"

    def test_unknown_linkage(self, client, db_session):
        response = start(client, "does-not-exist")
        assert response.status_code == 404
        assert response.json()["code"] == "linkage_not_found"

    def test_not_yet_open(self, client, make_test, make_linkage, db_session):
        """Scenario: availableFrom is tomorrow, start today."""
        linkage = make_linkage(make_test(), available_from=START + timedelta(days=1))
        response = start(client, linkage.id)

        assert response.status_code == 403
        assert response.json()["code"] == "not_yet_open"
        assert db_session.query(Attempt).count() == 0

    def test_window_closed(self, client, make_test, make_linkage):
        linkage = make_linkage(make_test(), available_until=START - timedelta(minutes=1))
        response = start(client, linkage.id)
        assert response.status_code == 403
        assert response.json()["code"] == "window_closed"

    def test_unpublished_test(self, client, make_test, make_linkage):
        linkage = make_linkage(make_test(status="draft"))
        response = start(client, linkage.id)
        assert response.status_code == 403
        assert response.json()["code"] == "test_unavailable"


class TestAttemptLimit:
    """Tests for maxAttempts."""

    def test_limit_reached(self, client, make_test, make_linkage, db_session):
        """Scenario: maxAttempts=1, completed once, start again."""
        linkage = make_linkage(make_test(max_attempts=1))
        assert start(client, linkage.id).status_code == 200
        client.post(f"{API}/{linkage.id}/submit", json={"studentId": "student-1", "answers": []})

        response = start(client, linkage.id)
        assert response.status_code == 403
        assert response.json()["code"] == "attempt_limit_reached"
        assert db_session.query(Attempt).count() == 1

    def test_in_progress_attempt_resumes_at_limit(self, client, make_test, make_linkage):
        """The limit only blocks new attempts, never a resume."""
        linkage = make_linkage(make_test(max_attempts=1))
        first = start(client, linkage.id).json()
        second = start(client, linkage.id)

        assert second.status_code == 200
        assert second.json()["attempt"]["id"] == first["attempt"]["id"]

    def test_zero_limit_allows_one_attempt(self, client, make_test, make_linkage):
        linkage = make_linkage(make_test(max_attempts=0))
        assert start(client, linkage.id).status_code == 200
        client.post(f"{API}/{linkage.id}/submit", json={"studentId": "student-1"})

        response = start(client, linkage.id)
        assert response.status_code == 403
        assert response.json()["code"] == "attempt_limit_reached"


class TestResume:
    """Tests for resuming an in-progress attempt."""

    def test_resume_is_stable(self, client, make_test, make_linkage, clock):
        """Scenario: same question order, option order and saved answers after reconnecting."""
        questions = [single_choice(i) for i in range(1, 8)]
        linkage = make_linkage(make_test(questions=questions, shuffle_questions=True, shuffle_options=True))

        first = start(client, linkage.id).json()
        qid = first["questions"][0]["id"]
        saved = client.put(
            f"{API}/{linkage.id}/answers",
            json={"studentId": "student-1", "questionId": qid, "answer": "b"},
        )
        assert saved.status_code == 200

        clock.advance(minutes=5)
        second = start(client, linkage.id).json()

        assert second["resumed"] is True
        assert second["attempt"]["id"] == first["attempt"]["id"]
        assert [q["id"] for q in second["questions"]] == [q["id"] for q in first["questions"]]
        assert [q["options"] for q in second["questions"]] == [q["options"] for q in first["questions"]]
        assert [(a["questionId"], a["answer"]) for a in second["savedAnswers"]] == [(qid, "b")]

    def test_resume_reports_time_left(self, client, make_test, make_linkage, clock):
        linkage = make_linkage(make_test(time_mode="timed", time_limit_minutes=10))
        start(client, linkage.id)
        clock.advance(minutes=4)

        data = start(client, linkage.id).json()
        assert data["remainingTimeSeconds"] == 360
