"""GatewayConnection repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.gateway_connection import GatewayConnection
from recoverhub.services.credential_vault import EncryptedCredential


class GatewayConnectionRepository:
    """Repository for GatewayConnection model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, connection_id: UUID) -> GatewayConnection | None:
        return self.db.query(GatewayConnection).filter(GatewayConnection.id == connection_id).first()

    def get_by_account_id(self, account_id: str) -> GatewayConnection | None:
        """Get a connection by the provider's account id (``acct_...``)."""
        return (
            self.db.query(GatewayConnection)
            .filter(GatewayConnection.account_id == account_id)
            .first()
        )

    def get_all(self, merchant_id: UUID) -> list[GatewayConnection]:
        return (
            self.db.query(GatewayConnection)
            .filter(GatewayConnection.merchant_id == merchant_id)
            .order_by(GatewayConnection.connected_at)
            .all()
        )

    def upsert(
        self,
        *,
        merchant_id: UUID,
        account_id: str,
        credential: EncryptedCredential,
        is_live_mode: bool = False,
        account_name: str | None = None,
    ) -> GatewayConnection:
        """Store a connection, replacing the credential if the account is already known."""
        connection = self.get_by_account_id(account_id)
        if connection is None:
            connection = GatewayConnection(merchant_id=merchant_id, account_id=account_id)
            self.db.add(connection)

        connection.access_token_encrypted = credential.encrypted  # type: ignore[assignment]
        connection.token_iv = credential.iv  # type: ignore[assignment]
        connection.token_auth_tag = credential.auth_tag  # type: ignore[assignment]
        connection.is_live_mode = is_live_mode  # type: ignore[assignment]
        connection.account_name = account_name  # type: ignore[assignment]
        self.db.flush()
        return connection

    @staticmethod
    def credential(connection: GatewayConnection) -> EncryptedCredential:
        return EncryptedCredential(
            encrypted=str(connection.access_token_encrypted),
            iv=str(connection.token_iv),
            auth_tag=str(connection.token_auth_tag),
        )
