"""Retry executor: runs one due retry attempt against the payment gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.models.retry_attempt import RetryAttempt, RetryAttemptStatus, RetryTrigger
from recoverhub.models.shared import ensure_utc, utc_now
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.gateway_connection_repository import GatewayConnectionRepository
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository
from recoverhub.services.case_state import CaseEvent, can_transition, transition
from recoverhub.services.credential_vault import CredentialVault
from recoverhub.services.errors import (
    AttemptNotFoundError,
    AttemptNotPendingError,
    CaseNotActiveError,
    CaseNotFoundError,
    MissingConnectionError,
    MissingInvoiceError,
)
from recoverhub.services.payment_gateway import PaymentGateway
from recoverhub.services.retry_scheduler import RetryScheduler

logger = logging.getLogger(__name__)


@dataclass
class RetryResult:
    success: bool
    case_id: UUID
    attempt_id: UUID
    attempt_number: int
    error_code: str | None = None
    error_message: str | None = None
    next_retry_at: datetime | None = None


class RetryExecutor:
    """Executes a retry attempt and applies its outcome to the case.

    Precondition failures raise ``RetryPreconditionError`` subclasses and
    ``GatewayTransportError`` propagates untouched; neither changes the
    attempt or case status.
    """

    def __init__(
        self,
        db: Session,
        vault: CredentialVault,
        gateway: PaymentGateway,
        scheduler: RetryScheduler | None = None,
    ):
        self.db = db
        self.vault = vault
        self.gateway = gateway
        self.scheduler = scheduler or RetryScheduler(db)
        self.case_repo = FailedPaymentRepository(db)
        self.attempt_repo = RetryAttemptRepository(db)
        self.connection_repo = GatewayConnectionRepository(db)

    def _load(self, case_id: UUID, attempt_id: UUID) -> tuple[FailedPayment, RetryAttempt]:
        case = self.case_repo.get_by_id(case_id)
        if case is None:
            raise CaseNotFoundError(f"Failed payment {case_id} not found")
        if case.status != FailedPaymentStatus.ACTIVE.value:
            raise CaseNotActiveError(f"Failed payment {case_id} is {case.status}, not active")
        if not case.external_invoice_id:
            raise MissingInvoiceError(f"Failed payment {case_id} has no invoice id")

        attempt = self.attempt_repo.get_by_id(attempt_id)
        if attempt is None or attempt.failed_payment_id != case.id:
            raise AttemptNotFoundError(f"Retry attempt {attempt_id} not found for case {case_id}")
        if attempt.status != RetryAttemptStatus.PENDING.value:
            raise AttemptNotPendingError(f"Retry attempt {attempt_id} is already {attempt.status}")
        return case, attempt

    def execute(
        self,
        case_id: UUID,
        attempt_id: UUID,
        now: datetime | None = None,
    ) -> RetryResult:
        case, attempt = self._load(case_id, attempt_id)

        connection = self.connection_repo.get_by_id(case.gateway_connection_id)  # type: ignore[arg-type]
        if connection is None:
            raise MissingConnectionError(f"Gateway connection for case {case_id} not found")

        attempt.attempted_at = now or utc_now()  # type: ignore[assignment]
        self.db.commit()

        access_token = self.vault.decrypt(GatewayConnectionRepository.credential(connection))

        logger.info(
            "Retrying invoice %s for case %s (attempt #%d)",
            case.external_invoice_id,
            case_id,
            attempt.attempt_number,
        )
        result = self.gateway.pay_invoice(str(case.external_invoice_id), access_token)

        # The case may have been resolved elsewhere while the gateway call ran.
        self.db.refresh(case)

        if result.succeeded:
            return self._record_success(case, attempt, now)
        return self._record_decline(
            case,
            attempt,
            error_code=result.error.reason if result.error else "unknown_error",
            error_message=result.error.message if result.error else None,
        )

    def _record_success(
        self,
        case: FailedPayment,
        attempt: RetryAttempt,
        now: datetime | None,
    ) -> RetryResult:
        attempt.status = RetryAttemptStatus.SUCCESS.value  # type: ignore[assignment]
        if can_transition(str(case.status), CaseEvent.PAYMENT_SUCCEEDED):
            transition(case, CaseEvent.PAYMENT_SUCCEEDED)
            case.recovered_at = now or utc_now()  # type: ignore[assignment]
        else:
            logger.warning(
                "Attempt #%d for case %s succeeded but the case is already %s",
                attempt.attempt_number,
                case.id,
                case.status,
            )
        skipped = self.attempt_repo.skip_pending(case.id, exclude_id=attempt.id)  # type: ignore[arg-type]
        self.db.commit()

        logger.info(
            "Attempt #%d for case %s succeeded (%d pending attempts skipped)",
            attempt.attempt_number,
            case.id,
            skipped,
        )
        return RetryResult(
            success=True,
            case_id=case.id,  # type: ignore[arg-type]
            attempt_id=attempt.id,  # type: ignore[arg-type]
            attempt_number=attempt.attempt_number,  # type: ignore[arg-type]
        )

    def _record_decline(
        self,
        case: FailedPayment,
        attempt: RetryAttempt,
        error_code: str,
        error_message: str | None,
    ) -> RetryResult:
        attempt.status = RetryAttemptStatus.FAILED.value  # type: ignore[assignment]
        attempt.error_code = error_code  # type: ignore[assignment]
        attempt.error_message = error_message  # type: ignore[assignment]
        # Sessions run with autoflush off; the pending lookup below must not see this attempt.
        self.db.flush()

        next_retry_at = None
        if case.status == FailedPaymentStatus.ACTIVE.value:
            if attempt.trigger == RetryTrigger.AUTOMATIC.value and attempt.schedule_step is not None:
                self.scheduler.schedule_next(case, int(attempt.schedule_step))

            pending = self.attempt_repo.get_pending(case.id)  # type: ignore[arg-type]
            if pending:
                next_retry_at = ensure_utc(pending[0].scheduled_at)  # type: ignore[arg-type]
            else:
                transition(case, CaseEvent.RETRIES_EXHAUSTED)
        self.db.commit()

        if next_retry_at is None:
            logger.info(
                "Attempt #%d for case %s declined (%s); no retries left, case is %s",
                attempt.attempt_number,
                case.id,
                error_code,
                case.status,
            )
        else:
            logger.info(
                "Attempt #%d for case %s declined (%s); next retry at %s",
                attempt.attempt_number,
                case.id,
                error_code,
                next_retry_at.isoformat(),
            )
        return RetryResult(
            success=False,
            case_id=case.id,  # type: ignore[arg-type]
            attempt_id=attempt.id,  # type: ignore[arg-type]
            attempt_number=attempt.attempt_number,  # type: ignore[arg-type]
            error_code=error_code,
            error_message=error_message,
            next_retry_at=next_retry_at,
        )
