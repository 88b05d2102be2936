"""FailedPayment model: one recovery case per failed provider invoice."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid, utc_now


class FailedPaymentStatus(str, Enum):
    ACTIVE = "active"
    RECOVERED = "recovered"
    CANCELED = "canceled"
    PAUSED = "paused"


class FailedPayment(Base):
    """A failed invoice under recovery tracking.

    ``recovery_started_at`` anchors every retry offset and is never changed
    after the row is created.
    """

    __tablename__ = "failed_payments"
    __table_args__ = (
        UniqueConstraint(
            "gateway_connection_id",
            "external_invoice_id",
            name="uq_failed_payments_connection_invoice",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_id = Column(
        UUIDType,
        ForeignKey("merchants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    gateway_connection_id = Column(
        UUIDType,
        ForeignKey("gateway_connections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_invoice_id = Column(String(255), nullable=True)
    external_charge_id = Column(String(255), nullable=True)
    external_customer_id = Column(String(255), nullable=False)
    external_subscription_id = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_name = Column(String(255), nullable=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    failure_reason = Column(Text, nullable=True)
    failure_code = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=FailedPaymentStatus.ACTIVE.value, index=True)
    recovery_started_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    recovered_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
