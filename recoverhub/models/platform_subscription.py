"""PlatformSubscription model: the merchant's own plan on the platform."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid


class PlatformTier(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"


class PlatformSubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    TRIALING = "trialing"


class PlatformSubscription(Base):
    __tablename__ = "platform_subscriptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_id = Column(
        UUIDType,
        ForeignKey("merchants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    tier = Column(String(20), nullable=False, default=PlatformTier.FREE.value)
    status = Column(String(20), nullable=False, default=PlatformSubscriptionStatus.ACTIVE.value)
    external_customer_id = Column(String(255), nullable=True, unique=True)
    external_subscription_id = Column(String(255), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
