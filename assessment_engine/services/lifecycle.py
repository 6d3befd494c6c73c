"""
Attempt lifecycle: start / resume, answer saving, submission and expiry.
"""
import logging
import random
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment_engine.core.config import Settings, settings as default_settings
from assessment_engine.core.exceptions import (
    AttemptLimitReached,
    GradingInconsistency,
    LinkageNotFound,
    MalformedAnswer,
    MissingStudentId,
    NoActiveAttempt,
    QuestionNotInTest,
    TestNotFound,
    WindowClosed,
)
from assessment_engine.models.attempt import Answer, Attempt, AttemptStatus
from assessment_engine.models.test import QuestionType, Test
from assessment_engine.schemas.attempt import (
    AttemptResults,
    AttemptSummary,
    QuestionPayload,
    QuestionReview,
    SavedAnswer,
    StartAttemptResponse,
    SubmitAttemptResponse,
    SubmittedAnswer,
    TestSummary,
)
from assessment_engine.schemas.question import parse_question_content
from assessment_engine.services.accreditation import AccreditationService
from assessment_engine.services.attempt_state import GRADED_STATUSES, transition
from assessment_engine.services.attempt_store import AttemptStore
from assessment_engine.services.availability import require_open
from assessment_engine.services.grader import UNGRADED_TYPES, GradeResult, grade_content
from assessment_engine.services.question_bank import QuestionBank, public_options
from assessment_engine.services.scoring import ScoreSummary, aggregate_scores
from assessment_engine.utils.time import elapsed_seconds, ensure_utc, utc_now

logger = logging.getLogger(__name__)

# Option lists of these types are always scrambled so the solved order is never shown
ORDERING_TYPES = (QuestionType.REORDER.value, QuestionType.SEQUENCING.value)


class AttemptLifecycleManager:
    """
    Orchestrates the externally visible attempt transitions.

    The database session, settings, clock and shuffle RNG are injected so a
    request (or a test) controls all of them.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = utc_now,
        rng_factory: Callable[[], random.Random] = random.Random,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.rng_factory = rng_factory
        self.store = AttemptStore(db)
        self.accreditation = AccreditationService(db)

    # ============= Start / resume =============

    def start(self, student_id: Optional[str], linkage_id: str) -> StartAttemptResponse:
        """
        Start a new attempt or resume the student's in-progress one.

        Raises:
            MissingStudentId, LinkageNotFound, TestNotFound, NotYetOpen,
            WindowClosed, TestUnavailable, AttemptLimitReached
        """
        if not student_id:
            raise MissingStudentId()

        now = self.clock()
        linkage = self.store.get_linkage(linkage_id)
        if linkage is None:
            raise LinkageNotFound()
        test = self.store.get_test(linkage.test_id)
        if test is None:
            raise TestNotFound()
        require_open(linkage, now, test)

        bank = QuestionBank(self.store.get_questions(test.id))
        attempt = self.store.find_in_progress(student_id, linkage_id)
        resumed = attempt is not None

        if attempt is None:
            prior_count = self.store.count_attempts(student_id, linkage_id)
            if prior_count >= test.attempt_limit:
                raise AttemptLimitReached(test.attempt_limit)

            question_order, option_order = self._shuffle(test, bank)
            attempt, created = self.store.create_in_progress(
                linkage,
                student_id,
                attempt_number=prior_count + 1,
                now=now,
                question_order=question_order,
                option_order=option_order,
            )
            resumed = not created
            self.db.commit()
            self.db.refresh(attempt)
            if created:
                logger.info(
                    f"Started attempt {attempt.id} (#{attempt.attempt_number}) "
                    f"for student {student_id} on linkage {linkage_id}"
                )
        else:
            logger.info(f"Resuming attempt {attempt.id} for student {student_id}")

        saved = self.store.answers_by_question(attempt.id) if resumed else {}
        return StartAttemptResponse(
            attempt=AttemptSummary.model_validate(attempt),
            test=TestSummary.model_validate(test),
            questions=self._question_payload(attempt, bank),
            saved_answers=[SavedAnswer.model_validate(a) for a in saved.values()],
            remaining_time_seconds=self.remaining_time(test, attempt, now),
            resumed=resumed,
        )

    def _shuffle(self, test: Test, bank: QuestionBank) -> Tuple[List[str], Dict[str, List[str]]]:
        rng = self.rng_factory()
        if test.shuffle_questions:
            question_order = bank.shuffled_order(rng)
        else:
            question_order = [q.id for q in bank]
        only_types = None if test.shuffle_options else ORDERING_TYPES
        option_order = bank.shuffled_options(rng, only_types=only_types)
        return question_order, option_order

    def _question_payload(self, attempt: Attempt, bank: QuestionBank) -> List[QuestionPayload]:
        option_order = attempt.option_order or {}
        return [
            QuestionPayload(
                id=q.id,
                test_id=q.test_id,
                question_type=q.question_type,
                question_text=q.question_text,
                question_media_url=q.question_media_url,
                options=public_options(q, option_order.get(q.id)),
                points=q.points,
                time_limit_seconds=q.time_limit_seconds,
                order=q.order,
                is_required=q.is_required,
            )
            for q in bank.arrange(attempt.question_order)
        ]

    def time_limit_seconds(self, test: Test) -> Optional[int]:
        if not test.is_timed:
            return None
        return (test.time_limit_minutes or self.settings.DEFAULT_TIME_LIMIT_MINUTES) * 60

    def remaining_time(self, test: Test, attempt: Attempt, now: datetime) -> Optional[int]:
        limit = self.time_limit_seconds(test)
        if limit is None:
            return None
        return max(0, limit - elapsed_seconds(attempt.start_time, now))

    # ============= Saving answers =============

    def save_answer(
        self,
        student_id: Optional[str],
        linkage_id: str,
        question_id: str,
        value: Any,
        time_spent_seconds: Optional[int] = None,
    ) -> SavedAnswer:
        """
        Upsert one answer on the in-progress attempt.

        Raises:
            MissingStudentId, NoActiveAttempt, QuestionNotInTest, WindowClosed
        """
        if not student_id:
            raise MissingStudentId()

        for retry in range(2):
            now = self.clock()
            attempt = self.store.find_in_progress(student_id, linkage_id)
            if attempt is None:
                raise NoActiveAttempt()
            if question_id not in {q.id for q in self.store.get_questions(attempt.test_id)}:
                raise QuestionNotInTest()

            limit = self.time_limit_seconds(attempt.test)
            if limit is not None and elapsed_seconds(attempt.start_time, now) > limit + self.settings.SUBMIT_GRACE_SECONDS:
                raise WindowClosed("The time limit for this attempt has expired")

            answer = self.store.upsert_answer(attempt, question_id, value, now, time_spent_seconds)
            try:
                self.db.commit()
            except IntegrityError:
                # Concurrent save of the same question; the retry updates its row
                self.db.rollback()
                if retry:
                    raise
                continue
            self.db.refresh(answer)
            return SavedAnswer.model_validate(answer)
        raise NoActiveAttempt()

    # ============= Submission =============

    def submit(
        self,
        student_id: Optional[str],
        linkage_id: str,
        answers: Sequence[SubmittedAnswer] = (),
        attempt_id: Optional[str] = None,
    ) -> SubmitAttemptResponse:
        """
        Grade and close the in-progress attempt.

        A retried submit for an attempt that already finished returns the
        stored result with ``replayed=True`` instead of grading again.

        Raises:
            MissingStudentId, NoActiveAttempt
        """
        if not student_id:
            raise MissingStudentId()

        for retry in range(2):
            try:
                return self._submit_once(student_id, linkage_id, answers, attempt_id)
            except IntegrityError:
                # A concurrent answer save or accreditation won a unique key
                self.db.rollback()
                if retry:
                    raise
                logger.warning(f"Retrying submit for student {student_id} on linkage {linkage_id}")
        raise NoActiveAttempt()

    def _submit_once(
        self,
        student_id: str,
        linkage_id: str,
        answers: Sequence[SubmittedAnswer],
        attempt_id: Optional[str],
    ) -> SubmitAttemptResponse:
        now = self.clock()
        attempt = self.store.find_in_progress(student_id, linkage_id)
        if attempt is None or (attempt_id and attempt.id != attempt_id):
            previous = self._find_replayable(student_id, linkage_id, attempt_id, now)
            if previous is None:
                raise NoActiveAttempt()
            logger.info(f"Replaying stored result of attempt {previous.id} for student {student_id}")
            return self._replay(previous)

        test = attempt.test
        bank = QuestionBank(self.store.get_questions(test.id))
        submitted = self._index_submission(attempt, bank, answers)
        existing = self.store.answers_by_question(attempt.id)
        grades = self._grade_attempt(attempt, bank, existing, submitted, now)
        summary = self._aggregate(test, bank, grades)

        elapsed = elapsed_seconds(attempt.start_time, now)
        target = AttemptStatus.COMPLETED
        time_spent = elapsed
        limit = self.time_limit_seconds(test)
        if limit is not None:
            if elapsed > limit + self.settings.SUBMIT_GRACE_SECONDS:
                target = AttemptStatus.TIMED_OUT
            if self.settings.CLAMP_TIME_OVERRUN and elapsed > limit:
                time_spent = limit

        self._finalize(attempt, target, summary, time_spent, now)
        self.db.commit()
        self.db.refresh(attempt)
        logger.info(
            f"Attempt {attempt.id} {attempt.status}: {summary.score}/{summary.max_score} "
            f"({summary.percentage}%) passed={summary.passed}"
        )
        return self._result_payload(attempt, test, bank, existing, summary, replayed=False)

    def _index_submission(
        self, attempt: Attempt, bank: QuestionBank, answers: Sequence[SubmittedAnswer]
    ) -> Dict[str, SubmittedAnswer]:
        indexed: Dict[str, SubmittedAnswer] = {}
        for item in answers:
            if item.question_id not in bank:
                error = GradingInconsistency(
                    f"Question {item.question_id} is not part of test {attempt.test_id}"
                )
                logger.warning(f"Ignoring answer on attempt {attempt.id}: {error}")
                continue
            if item.answer is None:
                continue
            indexed[item.question_id] = item  # Last one wins
        return indexed

    def _grade_attempt(
        self,
        attempt: Attempt,
        bank: QuestionBank,
        existing: Dict[str, Answer],
        submitted: Dict[str, SubmittedAnswer],
        now: datetime,
    ) -> Dict[str, GradeResult]:
        """
        Grade every question of the test and write the outcome onto answer rows.

        A final answer overrides the saved one. Answers that do not fit their
        question are skipped (falling back to the saved answer), so one bad
        value never blocks the submission.
        """
        grades: Dict[str, GradeResult] = {}
        for question in bank:
            try:
                content = parse_question_content(question)
            except ValidationError as exc:
                logger.warning(f"Question {question.id} has invalid content and is left ungraded: {exc}")
                continue

            candidates = []
            if question.id in submitted:
                candidates.append(("submitted", submitted[question.id].answer))
            if question.id in existing and existing[question.id].answer is not None:
                candidates.append(("saved", existing[question.id].answer))

            for source, value in candidates:
                try:
                    grade = grade_content(content, int(question.points or 0), value)
                except MalformedAnswer as exc:
                    logger.warning(
                        f"Skipping {source} answer to question {question.id} on attempt {attempt.id}: {exc}"
                    )
                    continue
                if source == "submitted":
                    row = self.store.upsert_answer(
                        attempt,
                        question.id,
                        value,
                        now,
                        submitted[question.id].time_spent_seconds,
                        existing=existing,
                    )
                else:
                    row = existing[question.id]
                row.is_correct = grade.is_correct
                row.points_earned = grade.points_earned
                grades[question.id] = grade
                break
            else:
                if question.id in existing:
                    # Kept for audit, counted as unanswered
                    existing[question.id].is_correct = None
                    existing[question.id].points_earned = 0
        return grades

    def _aggregate(self, test: Test, bank: QuestionBank, grades: Dict[str, GradeResult]) -> ScoreSummary:
        return aggregate_scores(
            test,
            bank.questions,
            grades,
            open_ended_counts=self.settings.OPEN_ENDED_COUNTS_TOWARD_MAX_SCORE,
        )

    def _finalize(
        self,
        attempt: Attempt,
        target: AttemptStatus,
        summary: ScoreSummary,
        time_spent: int,
        now: datetime,
    ) -> None:
        transition(attempt, target, now, score=summary, time_spent_seconds=time_spent)
        _, created = self.accreditation.grant(attempt, attempt.linkage, now)
        attempt.accredited = created

    # ============= Replay / regrade =============

    def _find_replayable(
        self, student_id: str, linkage_id: str, attempt_id: Optional[str], now: datetime
    ) -> Optional[Attempt]:
        if attempt_id:
            candidate = self.store.get_attempt(attempt_id)
            if candidate is None or candidate.student_id != student_id or candidate.linkage_id != linkage_id:
                return None
        else:
            candidate = self.store.latest_attempt(student_id, linkage_id)
            if candidate is None or candidate.end_time is None:
                return None
            window = timedelta(seconds=self.settings.SUBMIT_REPLAY_WINDOW_SECONDS)
            if ensure_utc(now) - ensure_utc(candidate.end_time) > window:
                return None
        if AttemptStatus(candidate.status) not in GRADED_STATUSES:
            return None
        return candidate

    def _replay(self, attempt: Attempt) -> SubmitAttemptResponse:
        test = attempt.test
        bank = QuestionBank(self.store.get_questions(test.id))
        existing = self.store.answers_by_question(attempt.id)
        counts = self._aggregate(test, bank, stored_grades(bank, existing))
        # Scores come from the attempt as frozen at submission, not from the test as edited since
        summary = replace(
            counts,
            score=attempt.score or 0,
            max_score=attempt.max_score or 0,
            percentage=attempt.percentage or 0.0,
            passed=bool(attempt.passed),
        )
        return self._result_payload(attempt, test, bank, existing, summary, replayed=True)

    def regrade(self, attempt: Attempt) -> ScoreSummary:
        """Recompute an attempt's score from its stored answers without writing anything."""
        bank = QuestionBank(self.store.get_questions(attempt.test_id))
        existing = self.store.answers_by_question(attempt.id)
        grades: Dict[str, GradeResult] = {}
        for question in bank:
            row = existing.get(question.id)
            if row is None or row.answer is None:
                continue
            try:
                grades[question.id] = grade_content(
                    parse_question_content(question), int(question.points or 0), row.answer
                )
            except (MalformedAnswer, ValidationError):
                continue
        return self._aggregate(attempt.test, bank, grades)

    # ============= Expiry (sweeper) =============

    def expire(self, attempt: Attempt, target: AttemptStatus, now: datetime) -> None:
        """
        Close a stale attempt without a submission. Timed-out attempts are
        graded from their saved answers; abandoned ones are not graded.
        Does not commit.
        """
        test = attempt.test
        elapsed = elapsed_seconds(attempt.start_time, now)
        if target == AttemptStatus.TIMED_OUT:
            bank = QuestionBank(self.store.get_questions(test.id))
            existing = self.store.answers_by_question(attempt.id)
            grades = self._grade_attempt(attempt, bank, existing, {}, now)
            summary = self._aggregate(test, bank, grades)
            limit = self.time_limit_seconds(test)
            time_spent = elapsed
            if limit is not None and self.settings.CLAMP_TIME_OVERRUN:
                time_spent = min(elapsed, limit)
            self._finalize(attempt, target, summary, time_spent, now)
        else:
            transition(attempt, target, now, time_spent_seconds=elapsed)

    # ============= Response building =============

    def _result_payload(
        self,
        attempt: Attempt,
        test: Test,
        bank: QuestionBank,
        answers: Dict[str, Answer],
        summary: ScoreSummary,
        replayed: bool,
    ) -> SubmitAttemptResponse:
        show = test.show_results_immediately
        summary_model = AttemptSummary.model_validate(attempt)
        if not show:
            summary_model = summary_model.without_scores()

        results = AttemptResults(
            total_questions=summary.total_questions,
            correct_answers=summary.correct,
            incorrect_answers=summary.incorrect,
            unanswered=summary.unanswered,
            ungraded=summary.ungraded,
            score=summary.score if show else None,
            max_score=summary.max_score if show else None,
            percentage=summary.percentage if show else None,
            passed=summary.passed if show else None,
            accredited=bool(attempt.accredited),
            time_spent=attempt.time_spent_seconds or 0,
        )

        if show and test.show_correct_answers:
            review = [self._review_item(q, answers.get(q.id)) for q in bank.arrange(attempt.question_order)]
            return SubmitAttemptResponse(
                attempt=summary_model, results=results, answers_review=review, replayed=replayed
            )
        return SubmitAttemptResponse(attempt=summary_model, results=results, replayed=replayed)

    def _review_item(self, question: Any, answer: Optional[Answer]) -> QuestionReview:
        return QuestionReview(
            question_id=question.id,
            question_text=question.question_text,
            question_type=question.question_type,
            options=question.options,
            student_answer=answer.answer if answer is not None else None,
            correct_answer=question.correct_answer,
            is_correct=bool(answer is not None and answer.is_correct),
            points_earned=answer.points_earned if answer is not None else 0,
            explanation=question.explanation,
        )


def stored_grades(bank: QuestionBank, answers: Dict[str, Answer]) -> Dict[str, GradeResult]:
    """Grades as frozen on answer rows; rows never graded count as unanswered."""
    grades: Dict[str, GradeResult] = {}
    for question in bank:
        row = answers.get(question.id)
        if row is None:
            continue
        if question.question_type in UNGRADED_TYPES:
            grades[question.id] = GradeResult(is_correct=bool(row.is_correct), points_earned=0, graded=False)
        elif row.is_correct is not None:
            grades[question.id] = GradeResult(is_correct=row.is_correct, points_earned=row.points_earned or 0)
    return grades
