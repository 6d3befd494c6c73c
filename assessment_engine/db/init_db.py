"""
Database initialization and seeding.
"""
import logging

from sqlalchemy.orm import Session

from assessment_engine.models.linkage import Linkage
from assessment_engine.models.test import QuestionType, Test, TestQuestion, TestStatus, TimeMode

logger = logging.getLogger(__name__)

DEMO_TEST_TITLE = "Demo: Python Fundamentals"
DEMO_COURSE_ID = "demo-course"


def init_db(db: Session) -> None:
    """
    Initialize database with a published demo test linked to a demo course.

    Args:
        db: Database session
    """
    test = db.query(Test).filter(Test.title == DEMO_TEST_TITLE).first()
    if test:
        logger.info("Demo test already present, skipping seed")
        return

    test = Test(
        title=DEMO_TEST_TITLE,
        description="Short evaluation covering every question type",
        status=TestStatus.PUBLISHED.value,
        time_mode=TimeMode.TIMED.value,
        time_limit_minutes=10,
        passing_score=60,
        max_attempts=3,
        shuffle_questions=True,
        shuffle_options=True,
        show_results_immediately=True,
        show_correct_answers=True,
    )
    test.questions = [
        TestQuestion(
            order=1,
            question_type=QuestionType.MULTIPLE_CHOICE.value,
            question_text="Which keyword defines a function?",
            options=[
                {"id": "a", "text": "def"},
                {"id": "b", "text": "func"},
                {"id": "c", "text": "lambda"},
            ],
            correct_answer="a",
            points=2,
        ),
        TestQuestion(
            order=2,
            question_type=QuestionType.MULTIPLE_ANSWER.value,
            question_text="Which of these are immutable?",
            options=[
                {"id": "a", "text": "tuple"},
                {"id": "b", "text": "list"},
                {"id": "c", "text": "frozenset"},
            ],
            correct_answer=["a", "c"],
            points=2,
        ),
        TestQuestion(
            order=3,
            question_type=QuestionType.TRUE_FALSE.value,
            question_text="Strings are mutable in Python.",
            correct_answer=False,
        ),
        TestQuestion(
            order=4,
            question_type=QuestionType.REORDER.value,
            question_text="Order the steps to run a script.",
            options=[
                {"id": "write", "text": "Write the file", "correctPosition": 1},
                {"id": "save", "text": "Save it", "correctPosition": 2},
                {"id": "run", "text": "Run python script.py", "correctPosition": 3},
            ],
            correct_answer=["write", "save", "run"],
        ),
        TestQuestion(
            order=5,
            question_type=QuestionType.MATCH.value,
            question_text="Match each type to a literal.",
            options={
                "left": [{"id": "int", "text": "int"}, {"id": "str", "text": "str"}],
                "right": [{"id": "one", "text": "1"}, {"id": "quote", "text": "'a'"}],
            },
            correct_answer={"int": "one", "str": "quote"},
        ),
        TestQuestion(
            order=6,
            question_type=QuestionType.OPEN_ENDED.value,
            question_text="Describe what a generator is.",
        ),
    ]
    db.add(test)
    db.flush()

    db.add(Linkage(test_id=test.id, course_id=DEMO_COURSE_ID, is_required=True))
    db.commit()
    logger.info(f"Seeded demo test {test.id} on course {DEMO_COURSE_ID}")
