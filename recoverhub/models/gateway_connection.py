"""GatewayConnection model: a merchant's connected payment-provider account."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, func

from recoverhub.core.database import Base
from recoverhub.models.shared import UUIDType, generate_uuid


class GatewayConnection(Base):
    """Encrypted access credential plus account metadata for one connected account.

    The access token is stored as three base64 fields produced by the
    credential vault (ciphertext, IV, auth tag).
    """

    __tablename__ = "gateway_connections"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_id = Column(
        UUIDType,
        ForeignKey("merchants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id = Column(String(255), nullable=False, unique=True)
    access_token_encrypted = Column(Text, nullable=False)
    token_iv = Column(String(64), nullable=False)
    token_auth_tag = Column(String(64), nullable=False)
    is_live_mode = Column(Boolean, nullable=False, default=False)
    account_name = Column(String(255), nullable=True)
    connected_at = Column(DateTime(timezone=True), server_default=func.now())
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
