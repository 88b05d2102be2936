"""DunningTemplate model: one configurable step of a merchant's email sequence."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid


class DunningTemplate(Base):
    __tablename__ = "dunning_templates"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_id = Column(
        UUIDType,
        ForeignKey("merchants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=False)
    body_html = Column(Text, nullable=False)
    body_text = Column(Text, nullable=False)
    delay_days = Column(Integer, nullable=False, default=1)
    sequence_order = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
