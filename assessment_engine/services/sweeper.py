"""
Background expiry of stale in-progress attempts.

Without it an attempt abandoned in a closed browser tab stays "active"
forever and blocks both resume and the attempt count.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from assessment_engine.core.config import Settings, settings as default_settings
from assessment_engine.db.base import SessionLocal
from assessment_engine.models.attempt import Attempt, AttemptStatus
from assessment_engine.models.linkage import Linkage
from assessment_engine.models.test import Test, TimeMode
from assessment_engine.services.lifecycle import AttemptLifecycleManager
from assessment_engine.utils.time import elapsed_seconds, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class AttemptSweeper:
    """Moves stale in-progress attempts to ``timed_out`` or ``abandoned`` in one transaction."""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.manager = AttemptLifecycleManager(db, settings=settings, clock=clock)

    def classify(self, attempt: Attempt, now: datetime) -> Optional[AttemptStatus]:
        """Terminal status a stale attempt should move to, or None if it is still live."""
        limit = self.manager.time_limit_seconds(attempt.test)
        if limit is not None and elapsed_seconds(attempt.start_time, now) > limit + self.settings.SUBMIT_GRACE_SECONDS:
            return AttemptStatus.TIMED_OUT

        # Window closed under a live attempt: graded like a time-out
        available_until = ensure_utc(attempt.linkage.available_until)
        if available_until is not None and ensure_utc(now) > available_until:
            return AttemptStatus.TIMED_OUT

        if self.settings.ABANDON_IDLE_HOURS > 0:
            idle_cutoff = ensure_utc(now) - timedelta(hours=self.settings.ABANDON_IDLE_HOURS)
            if ensure_utc(attempt.start_time) < idle_cutoff:
                return AttemptStatus.ABANDONED
        return None

    def find_stale(self, now: datetime) -> List[Tuple[Attempt, AttemptStatus]]:
        # Narrow in SQL, decide per attempt in Python
        conditions = [Test.time_mode == TimeMode.TIMED.value, Linkage.available_until < now]
        if self.settings.ABANDON_IDLE_HOURS > 0:
            conditions.append(Attempt.start_time < now - timedelta(hours=self.settings.ABANDON_IDLE_HOURS))

        candidates = (
            self.db.query(Attempt)
            .join(Linkage, Attempt.linkage_id == Linkage.id)
            .join(Test, Attempt.test_id == Test.id)
            .filter(Attempt.status == AttemptStatus.IN_PROGRESS.value, or_(*conditions))
            .all()
        )
        stale = []
        for attempt in candidates:
            target = self.classify(attempt, now)
            if target is not None:
                stale.append((attempt, target))
        return stale

    def sweep(self) -> Dict[str, int]:
        """
        Expire every stale attempt and commit once.

        Returns:
            Count of attempts moved per target status
        """
        now = self.clock()
        counts = {AttemptStatus.TIMED_OUT.value: 0, AttemptStatus.ABANDONED.value: 0}
        try:
            for attempt, target in self.find_stale(now):
                self.manager.expire(attempt, target, now)
                counts[target.value] += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Attempt sweep failed; no attempts were changed")
            raise

        if any(counts.values()):
            logger.info(
                f"Attempt sweep: {counts[AttemptStatus.TIMED_OUT.value]} timed out, "
                f"{counts[AttemptStatus.ABANDONED.value]} abandoned"
            )
        return counts


def run_sweep() -> Dict[str, int]:
    """Run one sweep on a fresh session."""
    db = SessionLocal()
    try:
        return AttemptSweeper(db).sweep()
    finally:
        db.close()
