"""
API endpoints for evaluation results (teachers and admins).
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assessment_engine.core.dependencies import Claims, get_db, require_staff
from assessment_engine.schemas.common import ErrorResponse
from assessment_engine.schemas.results import TestResultsResponse
from assessment_engine.services.reporting import results_for_test

router = APIRouter()


@router.get(
    "/{test_id}/results",
    response_model=TestResultsResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_test_results(
    test_id: str,
    db: Session = Depends(get_db),
    claims: Optional[Claims] = Depends(require_staff),
) -> Any:
    """Every attempt on a test with pass / accreditation statistics."""
    return results_for_test(db, test_id)
