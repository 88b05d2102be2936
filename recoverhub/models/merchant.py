from sqlalchemy import Column, DateTime, String, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid


class Merchant(Base):
    __tablename__ = "merchants"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
