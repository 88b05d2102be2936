"""DunningEmail model: log of dunning emails sent or attempted for a case."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid


class DunningEmailStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    BOUNCED = "bounced"
    OPENED = "opened"
    CLICKED = "clicked"


class DunningEmail(Base):
    """One row per (case, template); existence means the step was attempted."""

    __tablename__ = "dunning_emails"
    __table_args__ = (
        UniqueConstraint(
            "failed_payment_id", "template_id", name="uq_dunning_emails_payment_template"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    failed_payment_id = Column(
        UUIDType,
        ForeignKey("failed_payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    template_id = Column(
        UUIDType,
        ForeignKey("dunning_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    email_to = Column(String(255), nullable=False)
    email_subject = Column(String(500), nullable=False)
    provider_message_id = Column(String(255), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=DunningEmailStatus.PENDING.value)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    opened_at = Column(DateTime(timezone=True), nullable=True)
    clicked_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
