"""FailedPayment repository for data access.

Mutating methods flush but do not commit; the calling service owns the
transaction so that a case and its first retry attempt land together.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from recoverhub.core.sorting import apply_order_by
from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus


SORTABLE_FIELDS = frozenset(
    {"created_at", "recovery_started_at", "recovered_at", "amount_cents", "status"}
)


class FailedPaymentRepository:
    """Repository for FailedPayment model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, case_id: UUID, merchant_id: UUID | None = None) -> FailedPayment | None:
        query = self.db.query(FailedPayment).filter(FailedPayment.id == case_id)
        if merchant_id is not None:
            query = query.filter(FailedPayment.merchant_id == merchant_id)
        return query.first()

    def get_by_invoice(self, connection_id: UUID, invoice_id: str) -> FailedPayment | None:
        """Get the case for a (connection, invoice) pair, the dedup key."""
        return (
            self.db.query(FailedPayment)
            .filter(
                FailedPayment.gateway_connection_id == connection_id,
                FailedPayment.external_invoice_id == invoice_id,
            )
            .first()
        )

    def get_all(
        self,
        merchant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        status: FailedPaymentStatus | None = None,
        order_by: str | None = None,
    ) -> list[FailedPayment]:
        query = self.db.query(FailedPayment).filter(FailedPayment.merchant_id == merchant_id)
        if status is not None:
            query = query.filter(FailedPayment.status == status.value)
        query = apply_order_by(query, FailedPayment, order_by, SORTABLE_FIELDS)
        return query.offset(skip).limit(limit).all()

    def count(self, merchant_id: UUID, status: FailedPaymentStatus | None = None) -> int:
        query = self.db.query(func.count(FailedPayment.id)).filter(
            FailedPayment.merchant_id == merchant_id
        )
        if status is not None:
            query = query.filter(FailedPayment.status == status.value)
        return query.scalar() or 0

    def get_active_with_contact(self) -> list[FailedPayment]:
        """Active cases that have a customer email, oldest first."""
        return (
            self.db.query(FailedPayment)
            .filter(
                FailedPayment.status == FailedPaymentStatus.ACTIVE.value,
                FailedPayment.customer_email.isnot(None),
                FailedPayment.customer_email != "",
            )
            .order_by(FailedPayment.created_at)
            .all()
        )

    def create(self, **fields: Any) -> FailedPayment:
        case = FailedPayment(**fields)
        self.db.add(case)
        self.db.flush()
        return case
