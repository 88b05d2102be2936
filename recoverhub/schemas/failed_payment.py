"""FailedPayment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from recoverhub.models.failed_payment import FailedPaymentStatus


class RetryAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    attempt_number: int
    trigger: str
    schedule_step: int | None = None
    scheduled_at: datetime
    attempted_at: datetime | None = None
    status: str
    error_code: str | None = None
    error_message: str | None = None


class DunningEmailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    template_id: UUID | None = None
    email_to: str
    email_subject: str
    status: str
    provider_message_id: str | None = None
    sent_at: datetime | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None


class FailedPaymentResponse(BaseModel):
    """Schema for a failed payment case."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID
    gateway_connection_id: UUID
    external_invoice_id: str | None = None
    external_customer_id: str
    external_subscription_id: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    amount_cents: int
    currency: str
    failure_reason: str | None = None
    failure_code: str | None = None
    status: FailedPaymentStatus
    recovery_started_at: datetime
    recovered_at: datetime | None = None
    created_at: datetime


class FailedPaymentDetailResponse(FailedPaymentResponse):
    """A case with its retry attempts and dunning emails."""

    retry_attempts: list[RetryAttemptResponse] = []
    dunning_emails: list[DunningEmailResponse] = []


class ManualRetryResponse(BaseModel):
    """Response for an accepted manual retry."""

    attempt_id: UUID
    attempt_number: int
    job_id: str | None = None
    next_check_hint: str
