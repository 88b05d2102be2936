from recoverhub.models.dunning_email import DunningEmail, DunningEmailStatus
from recoverhub.models.dunning_template import DunningTemplate
from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.models.gateway_connection import GatewayConnection
from recoverhub.models.merchant import Merchant
from recoverhub.models.platform_subscription import (
    PlatformSubscription,
    PlatformSubscriptionStatus,
    PlatformTier,
)
from recoverhub.models.retry_attempt import RetryAttempt, RetryAttemptStatus, RetryTrigger

__all__ = [
    "DunningEmail",
    "DunningEmailStatus",
    "DunningTemplate",
    "FailedPayment",
    "FailedPaymentStatus",
    "GatewayConnection",
    "Merchant",
    "PlatformSubscription",
    "PlatformSubscriptionStatus",
    "PlatformTier",
    "RetryAttempt",
    "RetryAttemptStatus",
    "RetryTrigger",
]
