"""RetryAttempt repository for data access."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.models.retry_attempt import RetryAttempt, RetryAttemptStatus, RetryTrigger


class RetryAttemptRepository:
    """Repository for RetryAttempt model. Mutations flush; callers commit."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, attempt_id: UUID) -> RetryAttempt | None:
        return self.db.query(RetryAttempt).filter(RetryAttempt.id == attempt_id).first()

    def get_for_case(self, case_id: UUID) -> list[RetryAttempt]:
        return (
            self.db.query(RetryAttempt)
            .filter(RetryAttempt.failed_payment_id == case_id)
            .order_by(RetryAttempt.attempt_number)
            .all()
        )

    def get_by_step(self, case_id: UUID, step: int) -> RetryAttempt | None:
        """Get the automatic attempt laid down for a schedule step."""
        return (
            self.db.query(RetryAttempt)
            .filter(
                RetryAttempt.failed_payment_id == case_id,
                RetryAttempt.schedule_step == step,
            )
            .first()
        )

    def max_attempt_number(self, case_id: UUID) -> int:
        return (
            self.db.query(func.max(RetryAttempt.attempt_number))
            .filter(RetryAttempt.failed_payment_id == case_id)
            .scalar()
            or 0
        )

    def get_pending(self, case_id: UUID) -> list[RetryAttempt]:
        return (
            self.db.query(RetryAttempt)
            .filter(
                RetryAttempt.failed_payment_id == case_id,
                RetryAttempt.status == RetryAttemptStatus.PENDING.value,
            )
            .order_by(RetryAttempt.scheduled_at)
            .all()
        )

    def count_manual_since(self, case_id: UUID, since: datetime) -> int:
        return (
            self.db.query(func.count(RetryAttempt.id))
            .filter(
                RetryAttempt.failed_payment_id == case_id,
                RetryAttempt.trigger == RetryTrigger.MANUAL.value,
                RetryAttempt.scheduled_at >= since,
            )
            .scalar()
            or 0
        )

    def create(
        self,
        *,
        case_id: UUID,
        attempt_number: int,
        scheduled_at: datetime,
        trigger: RetryTrigger = RetryTrigger.AUTOMATIC,
        schedule_step: int | None = None,
    ) -> RetryAttempt:
        attempt = RetryAttempt(
            failed_payment_id=case_id,
            attempt_number=attempt_number,
            scheduled_at=scheduled_at,
            trigger=trigger.value,
            schedule_step=schedule_step,
            status=RetryAttemptStatus.PENDING.value,
        )
        self.db.add(attempt)
        self.db.flush()
        return attempt

    def skip_pending(self, case_id: UUID, exclude_id: UUID | None = None) -> int:
        """Mark every pending attempt of a case as skipped. Returns the count."""
        query = self.db.query(RetryAttempt).filter(
            RetryAttempt.failed_payment_id == case_id,
            RetryAttempt.status == RetryAttemptStatus.PENDING.value,
        )
        if exclude_id is not None:
            query = query.filter(RetryAttempt.id != exclude_id)
        count = query.update(
            {RetryAttempt.status: RetryAttemptStatus.SKIPPED.value},
            synchronize_session="fetch",
        )
        self.db.flush()
        return count

    def find_due(self, now: datetime, limit: int) -> list[RetryAttempt]:
        """Pending attempts due at ``now`` on active cases, one per case, oldest first.

        The batch is capped in SQL: the subquery picks at most ``limit`` cases by
        their earliest due attempt, and only those cases' attempts are loaded.
        """
        earliest = (
            self.db.query(
                RetryAttempt.failed_payment_id.label("case_id"),
                func.min(RetryAttempt.scheduled_at).label("scheduled_at"),
            )
            .join(FailedPayment, FailedPayment.id == RetryAttempt.failed_payment_id)
            .filter(
                RetryAttempt.status == RetryAttemptStatus.PENDING.value,
                RetryAttempt.scheduled_at <= now,
                FailedPayment.status == FailedPaymentStatus.ACTIVE.value,
            )
            .group_by(RetryAttempt.failed_payment_id)
            .order_by(func.min(RetryAttempt.scheduled_at), RetryAttempt.failed_payment_id)
            .limit(limit)
            .subquery()
        )
        rows = (
            self.db.query(RetryAttempt)
            .join(
                earliest,
                and_(
                    RetryAttempt.failed_payment_id == earliest.c.case_id,
                    RetryAttempt.scheduled_at == earliest.c.scheduled_at,
                ),
            )
            .filter(RetryAttempt.status == RetryAttemptStatus.PENDING.value)
            .order_by(RetryAttempt.scheduled_at, RetryAttempt.attempt_number)
            .all()
        )
        # Attempts sharing a case's earliest timestamp collapse to the lowest number.
        due: list[RetryAttempt] = []
        seen: set[UUID] = set()
        for attempt in rows:
            if attempt.failed_payment_id in seen:
                continue
            seen.add(attempt.failed_payment_id)  # type: ignore[arg-type]
            due.append(attempt)
        return due
