from recoverhub.schemas.delivery_event import DeliveryEvent, DeliveryEventData
from recoverhub.schemas.dunning_template import (
    DunningTemplateCreate,
    DunningTemplateResponse,
    DunningTemplateUpdate,
)
from recoverhub.schemas.failed_payment import (
    DunningEmailResponse,
    FailedPaymentDetailResponse,
    FailedPaymentResponse,
    ManualRetryResponse,
    RetryAttemptResponse,
)
from recoverhub.schemas.stats import RecoveryStatsResponse

__all__ = [
    "DeliveryEvent",
    "DeliveryEventData",
    "DunningEmailResponse",
    "DunningTemplateCreate",
    "DunningTemplateResponse",
    "DunningTemplateUpdate",
    "FailedPaymentDetailResponse",
    "FailedPaymentResponse",
    "ManualRetryResponse",
    "RecoveryStatsResponse",
    "RetryAttemptResponse",
]
