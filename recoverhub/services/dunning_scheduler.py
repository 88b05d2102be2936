"""Dunning scheduler: decides which email step is due for each active case.

Each template's due time is ``case.created_at + template.delay_days``,
independent of when earlier steps were actually sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.dunning_template import DunningTemplate
from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.models.shared import ensure_utc, utc_now
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.repositories.dunning_template_repository import DunningTemplateRepository
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository

logger = logging.getLogger(__name__)


def dunning_job_id(case_id: UUID, sequence_order: int) -> str:
    return f"dunning:{case_id}:seq{sequence_order}"


def template_due_at(case: FailedPayment, template: DunningTemplate) -> datetime:
    created_at = ensure_utc(case.created_at)  # type: ignore[arg-type]
    assert created_at is not None
    return created_at + timedelta(days=int(template.delay_days))  # type: ignore[arg-type]


@dataclass
class DueDunningEmail:
    case: FailedPayment
    template: DunningTemplate

    @property
    def job_id(self) -> str:
        return dunning_job_id(self.case.id, int(self.template.sequence_order))  # type: ignore[arg-type]


@dataclass
class NextDunningStep:
    """The follow-up step to enqueue after a successful send."""

    case_id: UUID
    template_id: UUID
    sequence_order: int
    send_at: datetime

    @property
    def job_id(self) -> str:
        return dunning_job_id(self.case_id, self.sequence_order)


class DunningScheduler:
    def __init__(self, db: Session):
        self.db = db
        self.case_repo = FailedPaymentRepository(db)
        self.template_repo = DunningTemplateRepository(db)
        self.email_repo = DunningEmailRepository(db)

    def find_due(self, batch_size: int = 50, now: datetime | None = None) -> list[DueDunningEmail]:
        """Return at most one due (case, template) pair per active case.

        Picks the first active template, in sequence order, that has no
        email record for the case and whose due time has passed. Overdue
        steps therefore go out one per scan.
        """
        now = now or utc_now()
        templates_by_merchant: dict[UUID, list[DunningTemplate]] = {}
        due: list[DueDunningEmail] = []

        for case in self.case_repo.get_active_with_contact():
            merchant_id: UUID = case.merchant_id  # type: ignore[assignment]
            if merchant_id not in templates_by_merchant:
                templates_by_merchant[merchant_id] = self.template_repo.get_all(
                    merchant_id, active_only=True
                )
            templates = templates_by_merchant[merchant_id]
            if not templates:
                continue

            attempted = self.email_repo.attempted_template_ids(case.id)  # type: ignore[arg-type]
            next_template = next(
                (
                    t
                    for t in templates
                    if t.id not in attempted and template_due_at(case, t) <= now
                ),
                None,
            )
            if next_template is None:
                continue

            due.append(DueDunningEmail(case=case, template=next_template))
            if len(due) >= batch_size:
                break

        if due:
            logger.info("Found %d due dunning emails", len(due))
        return due

    def schedule_next(
        self,
        case: FailedPayment,
        just_sent_sequence_order: int,
    ) -> NextDunningStep | None:
        """Return the step after ``just_sent_sequence_order``, or None if the sequence ends."""
        if case.status != FailedPaymentStatus.ACTIVE.value:
            return None

        template = self.template_repo.get_next_active(
            case.merchant_id,  # type: ignore[arg-type]
            just_sent_sequence_order,
        )
        if template is None:
            logger.info("Dunning sequence complete for case %s", case.id)
            return None

        return NextDunningStep(
            case_id=case.id,  # type: ignore[arg-type]
            template_id=template.id,  # type: ignore[arg-type]
            sequence_order=int(template.sequence_order),  # type: ignore[arg-type]
            send_at=template_due_at(case, template),
        )
