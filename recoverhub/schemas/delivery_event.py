"""Email delivery callback payloads."""

from pydantic import BaseModel, ConfigDict


class DeliveryEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email_id: str


class DeliveryEvent(BaseModel):
    """Callback from the email provider, e.g. ``{"type": "email.opened", ...}``."""

    model_config = ConfigDict(extra="ignore")

    type: str
    created_at: str | None = None
    data: DeliveryEventData
