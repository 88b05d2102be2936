"""Operator actions on failed-payment cases (manual retry, cancel)."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.failed_payment import FailedPayment
from recoverhub.models.retry_attempt import RetryAttempt
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository
from recoverhub.services.case_state import CaseEvent, can_transition, transition
from recoverhub.services.errors import CaseNotFoundError, CaseNotOwnedError, CaseNotRetryableError
from recoverhub.services.retry_scheduler import RetryScheduler

logger = logging.getLogger(__name__)


class FailedPaymentService:
    def __init__(self, db: Session):
        self.db = db
        self.case_repo = FailedPaymentRepository(db)
        self.attempt_repo = RetryAttemptRepository(db)
        self.scheduler = RetryScheduler(db)

    def get_owned_case(self, case_id: UUID, merchant_id: UUID) -> FailedPayment:
        """Load a case, distinguishing unknown (404) from not owned (403)."""
        case = self.case_repo.get_by_id(case_id)
        if case is None:
            raise CaseNotFoundError("Payment not found")
        if case.merchant_id != merchant_id:
            raise CaseNotOwnedError("Forbidden")
        return case

    def request_manual_retry(
        self,
        case_id: UUID,
        merchant_id: UUID,
        now: datetime | None = None,
    ) -> RetryAttempt:
        """Schedule an immediate retry for an operator.

        Raises the ``RecoveryError`` matching the reason it was refused; on
        refusal nothing is written.
        """
        case = self.get_owned_case(case_id, merchant_id)
        attempt = self.scheduler.schedule_manual(case, now)
        self.db.commit()
        self.db.refresh(attempt)
        logger.info(
            "Manual retry #%d queued for case %s by merchant %s",
            attempt.attempt_number,
            case_id,
            merchant_id,
        )
        return attempt

    def cancel(self, case_id: UUID, merchant_id: UUID) -> FailedPayment:
        """Stop recovery for a case and skip its pending attempts."""
        case = self.get_owned_case(case_id, merchant_id)
        if not can_transition(str(case.status), CaseEvent.CANCEL):
            raise CaseNotRetryableError(f"Payment is already {case.status}")

        transition(case, CaseEvent.CANCEL)
        skipped = self.attempt_repo.skip_pending(case.id)  # type: ignore[arg-type]
        self.db.commit()
        self.db.refresh(case)
        logger.info("Case %s canceled (%d pending attempts skipped)", case_id, skipped)
        return case
