"""
Tests for attempt persistence: the one-in-progress rule and answer upserts.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from assessment_engine.models import Answer, Attempt
from assessment_engine.services.attempt_store import AttemptStore
from assessment_engine.services.lifecycle import AttemptLifecycleManager

from conftest import START


class TestCreateInProgress:
    def test_second_in_progress_returns_winner(self, db_session, make_test, make_linkage):
        """A losing insert resumes the attempt that is already in progress."""
        linkage = make_linkage(make_test())
        store = AttemptStore(db_session)

        first, created = store.create_in_progress(linkage, "student-1", 1, START)
        db_session.commit()
        assert created is True

        second, created = store.create_in_progress(linkage, "student-1", 2, START)
        assert created is False
        assert second.id == first.id
        assert db_session.query(Attempt).count() == 1

    def test_other_students_are_independent(self, db_session, make_test, make_linkage):
        linkage = make_linkage(make_test())
        store = AttemptStore(db_session)

        store.create_in_progress(linkage, "student-1", 1, START)
        _, created = store.create_in_progress(linkage, "student-2", 1, START)
        db_session.commit()

        assert created is True
        assert db_session.query(Attempt).count() == 2

    def test_closed_attempt_allows_a_new_one(self, db_session, make_test, make_linkage):
        linkage = make_linkage(make_test())
        store = AttemptStore(db_session)

        first, _ = store.create_in_progress(linkage, "student-1", 1, START)
        first.status = "completed"
        db_session.commit()

        second, created = store.create_in_progress(linkage, "student-1", 2, START)
        assert created is True
        assert second.id != first.id

    def test_conflict_without_winner_reraises(self, db_session, make_test, make_linkage):
        """Duplicate attempt numbers on closed attempts are a real integrity error."""
        linkage = make_linkage(make_test())
        store = AttemptStore(db_session)

        first, _ = store.create_in_progress(linkage, "student-1", 1, START)
        first.status = "abandoned"
        db_session.commit()

        with pytest.raises(IntegrityError):
            store.create_in_progress(linkage, "student-1", 1, START)

    def test_concurrent_start_resumes(self, db_session, make_test, make_linkage, clock, monkeypatch):
        """Two starts that both miss the in-progress lookup end on one attempt."""
        linkage = make_linkage(make_test())
        manager = AttemptLifecycleManager(db_session, clock=clock)
        first = manager.start("student-1", linkage.id)

        # The second request checked before the first one committed
        real_find = AttemptStore.find_in_progress
        calls = {"n": 0}

        def stale_find(self, student_id, linkage_id):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return real_find(self, student_id, linkage_id)

        monkeypatch.setattr(AttemptStore, "find_in_progress", stale_find)
        second = manager.start("student-1", linkage.id)

        assert second.attempt.id == first.attempt.id
        assert second.resumed is True
        assert db_session.query(Attempt).count() == 1


class TestUpsertAnswer:
    def test_upsert_overwrites_same_key(self, db_session, make_test, make_linkage, question_ids):
        test = make_test()
        linkage = make_linkage(test)
        store = AttemptStore(db_session)
        attempt, _ = store.create_in_progress(linkage, "student-1", 1, START)
        qid = question_ids(test)[0]

        store.upsert_answer(attempt, qid, "a", START)
        db_session.commit()
        store.upsert_answer(attempt, qid, "b", START, time_spent_seconds=12)
        db_session.commit()

        rows = db_session.query(Answer).filter(Answer.attempt_id == attempt.id).all()
        assert len(rows) == 1
        assert rows[0].answer == "b"
        assert rows[0].time_spent_seconds == 12
        assert rows[0].student_id == "student-1"

    def test_duplicate_row_violates_unique_key(self, db_session, make_test, make_linkage, question_ids):
        test = make_test()
        linkage = make_linkage(test)
        store = AttemptStore(db_session)
        attempt, _ = store.create_in_progress(linkage, "student-1", 1, START)
        qid = question_ids(test)[0]
        store.upsert_answer(attempt, qid, "a", START)
        db_session.commit()

        db_session.add(Answer(attempt_id=attempt.id, question_id=qid, student_id="student-1",
                              answer="c", points_earned=0, answered_at=START))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
