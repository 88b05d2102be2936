"""DunningTemplate schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DunningTemplateCreate(BaseModel):
    """Schema for creating a dunning template."""

    name: str = Field(..., min_length=1, max_length=255)
    subject: str = Field(..., min_length=1, max_length=500)
    body_html: str = Field(..., min_length=1)
    body_text: str = Field(..., min_length=1)
    delay_days: int = Field(default=1, ge=0)
    sequence_order: int = Field(..., ge=1)
    is_active: bool = True


class DunningTemplateUpdate(BaseModel):
    """Schema for updating a dunning template."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    subject: str | None = Field(default=None, min_length=1, max_length=500)
    body_html: str | None = Field(default=None, min_length=1)
    body_text: str | None = Field(default=None, min_length=1)
    delay_days: int | None = Field(default=None, ge=0)
    sequence_order: int | None = Field(default=None, ge=1)
    is_active: bool | None = None


class DunningTemplateResponse(BaseModel):
    """Schema for dunning template response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID
    name: str
    subject: str
    body_html: str
    body_text: str
    delay_days: int
    sequence_order: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
