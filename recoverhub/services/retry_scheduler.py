"""Retry scheduler: lays down retry attempts for failed-payment cases.

Automatic attempts follow a fixed schedule anchored on the case's
``recovery_started_at``. Manual attempts are inserted for immediate execution
and are capped per case over a trailing 24 hours.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.failed_payment import FailedPayment
from recoverhub.models.retry_attempt import RetryAttempt, RetryTrigger
from recoverhub.models.shared import ensure_utc, utc_now
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository
from recoverhub.services.case_state import CaseEvent, is_terminal, transition
from recoverhub.services.errors import CaseNotRetryableError, ManualRetryLimitError

logger = logging.getLogger(__name__)

RETRY_SCHEDULE_DAYS = (3, 7, 14)
MAX_AUTOMATIC_ATTEMPTS = len(RETRY_SCHEDULE_DAYS)
MAX_MANUAL_RETRIES_PER_DAY = 3
MANUAL_RETRY_WINDOW = timedelta(hours=24)


def calculate_retry_at(started_at: datetime, step: int) -> datetime | None:
    """Return when automatic step ``step`` (1-based) is due, or None past the schedule."""
    if step < 1 or step > MAX_AUTOMATIC_ATTEMPTS:
        return None
    start = ensure_utc(started_at)
    assert start is not None
    return start + timedelta(days=RETRY_SCHEDULE_DAYS[step - 1])


def build_retry_schedule(started_at: datetime) -> list[datetime]:
    """Return every automatic retry time for a case started at ``started_at``."""
    return [
        calculate_retry_at(started_at, step)  # type: ignore[misc]
        for step in range(1, MAX_AUTOMATIC_ATTEMPTS + 1)
    ]


class RetryScheduler:
    """Creates RetryAttempt rows. Flushes only; the caller commits."""

    def __init__(self, db: Session):
        self.db = db
        self.attempt_repo = RetryAttemptRepository(db)

    def schedule_first(self, case: FailedPayment) -> RetryAttempt:
        """Lay down automatic attempt #1 at start + 3 days."""
        attempt = self._schedule_step(case, 1)
        assert attempt is not None
        return attempt

    def schedule_next(self, case: FailedPayment, just_failed_step: int) -> RetryAttempt | None:
        """Lay down the automatic step after ``just_failed_step``.

        Returns None when the schedule is exhausted.
        """
        return self._schedule_step(case, just_failed_step + 1)

    def _schedule_step(self, case: FailedPayment, step: int) -> RetryAttempt | None:
        scheduled_at = calculate_retry_at(case.recovery_started_at, step)  # type: ignore[arg-type]
        if scheduled_at is None:
            return None

        case_id: UUID = case.id  # type: ignore[assignment]
        existing = self.attempt_repo.get_by_step(case_id, step)
        if existing is not None:
            return existing

        attempt = self.attempt_repo.create(
            case_id=case_id,
            attempt_number=self.attempt_repo.max_attempt_number(case_id) + 1,
            scheduled_at=scheduled_at,
            trigger=RetryTrigger.AUTOMATIC,
            schedule_step=step,
        )
        logger.info(
            "Scheduled retry #%d (step %d) for case %s at %s",
            attempt.attempt_number,
            step,
            case_id,
            scheduled_at.isoformat(),
        )
        return attempt

    def schedule_manual(self, case: FailedPayment, now: datetime | None = None) -> RetryAttempt:
        """Insert an attempt due immediately, reactivating a paused case.

        Raises:
            CaseNotRetryableError: If the case is recovered or canceled.
            ManualRetryLimitError: If the case already has the maximum number
                of manual attempts in the trailing 24 hours.
        """
        now = now or utc_now()
        case_id: UUID = case.id  # type: ignore[assignment]

        if is_terminal(str(case.status)):
            raise CaseNotRetryableError(f"Payment is already {case.status}")

        recent = self.attempt_repo.count_manual_since(case_id, now - MANUAL_RETRY_WINDOW)
        if recent >= MAX_MANUAL_RETRIES_PER_DAY:
            raise ManualRetryLimitError(
                f"Maximum {MAX_MANUAL_RETRIES_PER_DAY} manual retries per 24 hours reached. "
                "Please wait before retrying again."
            )

        transition(case, CaseEvent.MANUAL_RETRY)
        attempt = self.attempt_repo.create(
            case_id=case_id,
            attempt_number=self.attempt_repo.max_attempt_number(case_id) + 1,
            scheduled_at=now,
            trigger=RetryTrigger.MANUAL,
        )
        logger.info("Scheduled manual retry #%d for case %s", attempt.attempt_number, case_id)
        return attempt

    def find_due(self, batch_size: int = 50, now: datetime | None = None) -> list[RetryAttempt]:
        """Pending attempts on active cases whose time has come."""
        return self.attempt_repo.find_due(now or utc_now(), batch_size)
