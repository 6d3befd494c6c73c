"""
Dependency injection for FastAPI endpoints.
"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from assessment_engine.core.config import Settings, settings
from assessment_engine.core.exceptions import NotAuthenticated, NotAuthorized
from assessment_engine.core.security import decode_token, is_staff
from assessment_engine.db.base import get_db
from assessment_engine.services.lifecycle import AttemptLifecycleManager
from assessment_engine.utils.time import utc_now

bearer_scheme = HTTPBearer(auto_error=False)

Claims = Dict[str, Any]


def get_settings() -> Settings:
    return settings


def get_clock() -> Callable[[], datetime]:
    """Clock used for every time decision in a request."""
    return utc_now


def get_attempt_manager(
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AttemptLifecycleManager:
    return AttemptLifecycleManager(db, settings=app_settings, clock=clock)


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    app_settings: Settings = Depends(get_settings),
) -> Optional[Claims]:
    """
    Decode the bearer token.

    Returns:
        Token claims, or None when authentication is disabled

    Raises:
        NotAuthenticated: If auth is required and the token is missing or invalid
    """
    if not app_settings.REQUIRE_AUTH:
        return None
    if credentials is None:
        raise NotAuthenticated()

    claims = decode_token(credentials.credentials)
    if claims is None or claims.get("sub") is None:
        raise NotAuthenticated()
    return claims


def ensure_student(claims: Optional[Claims], student_id: Optional[str]) -> None:
    """
    Check the token belongs to the student the request acts for.

    A missing studentId is left to the service, which answers 400.
    """
    if claims is None or not student_id:
        return
    if str(claims.get("sub")) != student_id:
        raise NotAuthorized("Token does not belong to this student")


def require_staff(claims: Optional[Claims] = Depends(get_token_claims)) -> Optional[Claims]:
    if claims is not None and not is_staff(claims):
        raise NotAuthorized("Only teachers and admins can read results")
    return claims
