"""
API endpoints for taking an evaluation: start / resume, save answers, submit, history.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from assessment_engine.core.dependencies import (
    Claims,
    ensure_student,
    get_attempt_manager,
    get_db,
    get_token_claims,
)
from assessment_engine.schemas.attempt import (
    SaveAnswerRequest,
    SavedAnswer,
    StartAttemptRequest,
    StartAttemptResponse,
    SubmitAttemptRequest,
    SubmitAttemptResponse,
)
from assessment_engine.schemas.common import ErrorResponse
from assessment_engine.schemas.results import AttemptHistoryResponse
from assessment_engine.services.lifecycle import AttemptLifecycleManager
from assessment_engine.services.reporting import attempt_history

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post("/{linkage_id}/start", response_model=StartAttemptResponse, responses=ERROR_RESPONSES)
def start_attempt(
    linkage_id: str,
    payload: StartAttemptRequest,
    manager: AttemptLifecycleManager = Depends(get_attempt_manager),
    claims: Optional[Claims] = Depends(get_token_claims),
) -> Any:
    """
    Start an attempt on a linked evaluation, or resume the one in progress.
    Questions come back in the attempt's stored order, without correct answers.
    """
    ensure_student(claims, payload.student_id)
    return manager.start(payload.student_id, linkage_id)


@router.put("/{linkage_id}/answers", response_model=SavedAnswer, responses=ERROR_RESPONSES)
def save_answer(
    linkage_id: str,
    payload: SaveAnswerRequest,
    manager: AttemptLifecycleManager = Depends(get_attempt_manager),
    claims: Optional[Claims] = Depends(get_token_claims),
) -> Any:
    """Save (or overwrite) one answer on the in-progress attempt."""
    ensure_student(claims, payload.student_id)
    return manager.save_answer(
        payload.student_id,
        linkage_id,
        payload.question_id,
        payload.answer,
        payload.time_spent_seconds,
    )


@router.post(
    "/{linkage_id}/submit",
    response_model=SubmitAttemptResponse,
    response_model_exclude_unset=True,
    responses=ERROR_RESPONSES,
)
def submit_attempt(
    linkage_id: str,
    payload: SubmitAttemptRequest,
    manager: AttemptLifecycleManager = Depends(get_attempt_manager),
    claims: Optional[Claims] = Depends(get_token_claims),
) -> Any:
    """
    Grade and close the in-progress attempt.

    ``answersReview`` is only present when the evaluation shows results
    immediately and reveals correct answers.
    """
    ensure_student(claims, payload.student_id)
    return manager.submit(
        payload.student_id,
        linkage_id,
        answers=payload.answers,
        attempt_id=payload.attempt_id,
    )


@router.get("/{linkage_id}/history", response_model=AttemptHistoryResponse, responses=ERROR_RESPONSES)
def get_attempt_history(
    linkage_id: str,
    student_id: Optional[str] = Query(default=None, alias="studentId"),
    db: Session = Depends(get_db),
    claims: Optional[Claims] = Depends(get_token_claims),
) -> Any:
    """A student's attempts on one linkage, newest first."""
    ensure_student(claims, student_id)
    return attempt_history(db, student_id, linkage_id)
