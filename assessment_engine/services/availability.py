"""
Availability rules for a linked test.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from assessment_engine.core.exceptions import NotYetOpen, TestUnavailable, WindowClosed
from assessment_engine.models.test import TestStatus
from assessment_engine.utils.time import ensure_utc


class ClosedReason(str, enum.Enum):
    NOT_YET_OPEN = "not_yet_open"
    CLOSED = "closed"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Availability:
    open: bool
    reason: Optional[ClosedReason] = None


def check_availability(linkage: Any, now: datetime, test: Any = None) -> Availability:
    """
    Evaluate the linkage window (and, if given, the test's active status) at ``now``.

    Boundaries are inclusive: a linkage is open at exactly ``available_from``
    and at exactly ``available_until``.
    """
    now = ensure_utc(now)
    available_from = ensure_utc(linkage.available_from)
    available_until = ensure_utc(linkage.available_until)

    if available_from is not None and now < available_from:
        return Availability(open=False, reason=ClosedReason.NOT_YET_OPEN)
    if available_until is not None and now > available_until:
        return Availability(open=False, reason=ClosedReason.CLOSED)
    if test is not None and (not test.is_active or test.status != TestStatus.PUBLISHED.value):
        return Availability(open=False, reason=ClosedReason.INACTIVE)
    return Availability(open=True)


_ERRORS = {
    ClosedReason.NOT_YET_OPEN: NotYetOpen,
    ClosedReason.CLOSED: WindowClosed,
    ClosedReason.INACTIVE: TestUnavailable,
}


def require_open(linkage: Any, now: datetime, test: Any = None) -> None:
    """Raise the matching domain error when the linkage is not open."""
    availability = check_availability(linkage, now, test)
    if not availability.open:
        raise _ERRORS[availability.reason]()  # type: ignore[index]
