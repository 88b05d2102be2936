from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.repositories.dunning_template_repository import DunningTemplateRepository
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.gateway_connection_repository import GatewayConnectionRepository
from recoverhub.repositories.merchant_repository import MerchantRepository
from recoverhub.repositories.platform_subscription_repository import (
    PlatformSubscriptionRepository,
)
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository

__all__ = [
    "DunningEmailRepository",
    "DunningTemplateRepository",
    "FailedPaymentRepository",
    "GatewayConnectionRepository",
    "MerchantRepository",
    "PlatformSubscriptionRepository",
    "RetryAttemptRepository",
]
