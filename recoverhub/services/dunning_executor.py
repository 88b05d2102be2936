"""Dunning executor: renders and sends one dunning email for a case."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recoverhub.models.dunning_email import DunningEmail, DunningEmailStatus
from recoverhub.models.failed_payment import FailedPaymentStatus
from recoverhub.models.shared import utc_now
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.repositories.dunning_template_repository import DunningTemplateRepository
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.services.dunning_scheduler import DunningScheduler, NextDunningStep
from recoverhub.services.email_client import EmailClient
from recoverhub.services.errors import CaseNotFoundError, EmailRejectedError, TemplateNotFoundError
from recoverhub.services.template_rendering import build_template_variables, render_template

logger = logging.getLogger(__name__)


@dataclass
class DunningResult:
    success: bool
    skipped: bool = False
    email_id: UUID | None = None
    message_id: str | None = None
    error: str | None = None
    next_step: NextDunningStep | None = None


class DunningExecutor:
    """Sends a dunning email and records it.

    A record is written as pending before the provider call so every send
    leaves a trace, and its (case, template) uniqueness is what keeps the
    scan from sending a step twice.
    """

    def __init__(
        self,
        db: Session,
        email_client: EmailClient,
        app_url: str,
        scheduler: DunningScheduler | None = None,
    ):
        self.db = db
        self.email_client = email_client
        self.app_url = app_url
        self.scheduler = scheduler or DunningScheduler(db)
        self.case_repo = FailedPaymentRepository(db)
        self.template_repo = DunningTemplateRepository(db)
        self.email_repo = DunningEmailRepository(db)

    def send(
        self,
        case_id: UUID,
        template_id: UUID,
        now: datetime | None = None,
    ) -> DunningResult:
        case = self.case_repo.get_by_id(case_id)
        if case is None:
            raise CaseNotFoundError(f"Failed payment {case_id} not found")

        if case.status != FailedPaymentStatus.ACTIVE.value:
            logger.info("Case %s is %s; dunning stopped", case_id, case.status)
            return DunningResult(success=True, skipped=True)

        if not case.customer_email:
            logger.info("Case %s has no customer email; dunning skipped", case_id)
            return DunningResult(success=True, skipped=True)

        template = self.template_repo.get_by_id(template_id, case.merchant_id)  # type: ignore[arg-type]
        if template is None:
            raise TemplateNotFoundError(f"Dunning template {template_id} not found")
        if not template.is_active:
            logger.info("Dunning template %s is inactive; step skipped for case %s", template_id, case_id)
            return DunningResult(success=True, skipped=True)

        sequence_order = int(template.sequence_order)  # type: ignore[arg-type]
        variables = build_template_variables(
            customer_name=case.customer_name,  # type: ignore[arg-type]
            customer_email=case.customer_email,  # type: ignore[arg-type]
            amount_cents=case.amount_cents,  # type: ignore[arg-type]
            currency=case.currency,  # type: ignore[arg-type]
            app_url=self.app_url,
        )
        subject = render_template(str(template.subject), variables)
        html = render_template(str(template.body_html), variables)
        text = render_template(str(template.body_text), variables)

        record = self.email_repo.get_for_case_and_template(case_id, template_id)
        if record is not None and record.status != DunningEmailStatus.PENDING.value:
            logger.info(
                "Dunning step %d already %s for case %s",
                sequence_order,
                record.status,
                case_id,
            )
            return DunningResult(success=True, skipped=True, email_id=record.id)  # type: ignore[arg-type]
        if record is None:
            try:
                record = self.email_repo.create_pending(
                    case_id=case_id,
                    template_id=template_id,
                    email_to=str(case.customer_email),
                    email_subject=subject,
                )
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.info(
                    "Dunning step %d for case %s claimed by another worker", sequence_order, case_id
                )
                return DunningResult(success=True, skipped=True)

        try:
            message_id = self.email_client.send(
                to=str(case.customer_email),
                subject=subject,
                html=html,
                text=text,
                tags={
                    "type": "dunning",
                    "template_id": str(template_id),
                    "failed_payment_id": str(case_id),
                },
            )
        except EmailRejectedError as exc:
            return self._record_failure(record, str(exc))

        record.status = DunningEmailStatus.SENT.value  # type: ignore[assignment]
        record.provider_message_id = message_id  # type: ignore[assignment]
        record.sent_at = now or utc_now()  # type: ignore[assignment]
        self.db.commit()
        logger.info(
            "Sent dunning step %d (%s) for case %s to %s",
            sequence_order,
            template.name,
            case_id,
            case.customer_email,
        )

        next_step = self.scheduler.schedule_next(case, sequence_order)
        return DunningResult(
            success=True,
            email_id=record.id,  # type: ignore[arg-type]
            message_id=message_id,
            next_step=next_step,
        )

    def _record_failure(self, record: DunningEmail, error: str) -> DunningResult:
        record.status = DunningEmailStatus.FAILED.value  # type: ignore[assignment]
        record.error_message = error  # type: ignore[assignment]
        self.db.commit()
        logger.warning("Dunning email %s failed: %s", record.id, error)
        return DunningResult(success=False, email_id=record.id, error=error)  # type: ignore[arg-type]
