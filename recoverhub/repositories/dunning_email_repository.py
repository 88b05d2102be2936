"""DunningEmail repository for data access."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from recoverhub.models.dunning_email import DunningEmail, DunningEmailStatus
from recoverhub.models.failed_payment import FailedPayment


class DunningEmailRepository:
    """Repository for DunningEmail model. Mutations flush; callers commit."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, email_id: UUID) -> DunningEmail | None:
        return self.db.query(DunningEmail).filter(DunningEmail.id == email_id).first()

    def get_for_case_and_template(self, case_id: UUID, template_id: UUID) -> DunningEmail | None:
        return (
            self.db.query(DunningEmail)
            .filter(
                DunningEmail.failed_payment_id == case_id,
                DunningEmail.template_id == template_id,
            )
            .first()
        )

    def get_by_message_id(self, message_id: str) -> DunningEmail | None:
        return (
            self.db.query(DunningEmail)
            .filter(DunningEmail.provider_message_id == message_id)
            .first()
        )

    def get_for_case(self, case_id: UUID) -> list[DunningEmail]:
        return (
            self.db.query(DunningEmail)
            .filter(DunningEmail.failed_payment_id == case_id)
            .order_by(DunningEmail.created_at)
            .all()
        )

    def attempted_template_ids(self, case_id: UUID) -> set[UUID]:
        """Template ids with a record of any status for the case."""
        rows = (
            self.db.query(DunningEmail.template_id)
            .filter(
                DunningEmail.failed_payment_id == case_id,
                DunningEmail.template_id.isnot(None),
            )
            .all()
        )
        return {row[0] for row in rows}

    def create_pending(
        self,
        *,
        case_id: UUID,
        template_id: UUID,
        email_to: str,
        email_subject: str,
    ) -> DunningEmail:
        record = DunningEmail(
            failed_payment_id=case_id,
            template_id=template_id,
            email_to=email_to,
            email_subject=email_subject,
            status=DunningEmailStatus.PENDING.value,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def count_delivered(self, merchant_id: UUID) -> int:
        """Count emails that reached the provider (sent or later delivery states)."""
        return (
            self.db.query(func.count(DunningEmail.id))
            .join(FailedPayment, FailedPayment.id == DunningEmail.failed_payment_id)
            .filter(
                FailedPayment.merchant_id == merchant_id,
                DunningEmail.status.in_(
                    [
                        DunningEmailStatus.SENT.value,
                        DunningEmailStatus.OPENED.value,
                        DunningEmailStatus.CLICKED.value,
                        DunningEmailStatus.BOUNCED.value,
                    ]
                ),
            )
            .scalar()
            or 0
        )
