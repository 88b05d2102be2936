"""Typed payment-provider webhook events.

Known event types decode into one variant of a discriminated union keyed on
``type``; every other type decodes into ``UnhandledEvent``.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class LastPaymentError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str | None = None
    code: str | None = None
    decline_code: str | None = None


class ProviderInvoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    customer: str
    subscription: str | None = None
    charge: str | None = None
    amount_due: int
    currency: str
    customer_email: str | None = None
    customer_name: str | None = None
    last_payment_error: LastPaymentError | None = None


class Price(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class SubscriptionItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    price: Price


class SubscriptionItemList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[SubscriptionItem] = Field(default_factory=list)


class ProviderSubscription(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    customer: str
    status: str
    current_period_end: int | None = None
    items: SubscriptionItemList = Field(default_factory=SubscriptionItemList)


class InvoiceEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: ProviderInvoice


class SubscriptionEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: ProviderSubscription


class _EventBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    account: str | None = None
    created: int | None = None


class InvoicePaymentFailedEvent(_EventBase):
    type: Literal["invoice.payment_failed"]
    data: InvoiceEventData


class InvoicePaymentSucceededEvent(_EventBase):
    type: Literal["invoice.payment_succeeded"]
    data: InvoiceEventData


class SubscriptionEvent(_EventBase):
    type: Literal[
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    ]
    data: SubscriptionEventData


class UnhandledEvent(_EventBase):
    type: str


KnownEvent = Annotated[
    InvoicePaymentFailedEvent | InvoicePaymentSucceededEvent | SubscriptionEvent,
    Field(discriminator="type"),
]

ProviderEvent = (
    InvoicePaymentFailedEvent | InvoicePaymentSucceededEvent | SubscriptionEvent | UnhandledEvent
)

KNOWN_EVENT_TYPES = frozenset(
    {
        "invoice.payment_failed",
        "invoice.payment_succeeded",
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    }
)

_known_event_adapter: TypeAdapter[Any] = TypeAdapter(KnownEvent)


def parse_provider_event(payload: Any) -> ProviderEvent:
    """Decode a JSON object into a typed event.

    Raises:
        pydantic.ValidationError: If the payload does not match the contract
            of its event type.
    """
    event_type = payload.get("type") if isinstance(payload, dict) else None
    if event_type in KNOWN_EVENT_TYPES:
        return _known_event_adapter.validate_python(payload)  # type: ignore[no-any-return]
    return UnhandledEvent.model_validate(payload)
