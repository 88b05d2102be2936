"""RetryAttempt model for scheduled and executed invoice retries."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid


class RetryAttemptStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class RetryTrigger(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class RetryAttempt(Base):
    """One scheduled or attempted retry for a failed payment.

    ``attempt_number`` runs 1..k per case across automatic and manual
    attempts. ``schedule_step`` is the position in the fixed automatic
    schedule and is null for manual attempts.
    """

    __tablename__ = "retry_attempts"
    __table_args__ = (
        UniqueConstraint(
            "failed_payment_id", "attempt_number", name="uq_retry_attempts_payment_number"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    failed_payment_id = Column(
        UUIDType,
        ForeignKey("failed_payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    attempt_number = Column(Integer, nullable=False)
    trigger = Column(String(20), nullable=False, default=RetryTrigger.AUTOMATIC.value)
    schedule_step = Column(Integer, nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    attempted_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default=RetryAttemptStatus.PENDING.value, index=True)
    error_code = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
