"""Merchant onboarding: account, platform subscription, templates and gateway connections."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.gateway_connection import GatewayConnection
from recoverhub.models.merchant import Merchant
from recoverhub.repositories.gateway_connection_repository import GatewayConnectionRepository
from recoverhub.repositories.merchant_repository import MerchantRepository
from recoverhub.repositories.platform_subscription_repository import (
    PlatformSubscriptionRepository,
)
from recoverhub.services.credential_vault import CredentialVault
from recoverhub.services.default_templates import seed_default_templates

logger = logging.getLogger(__name__)


class MerchantService:
    def __init__(self, db: Session):
        self.db = db
        self.merchant_repo = MerchantRepository(db)
        self.connection_repo = GatewayConnectionRepository(db)
        self.subscription_repo = PlatformSubscriptionRepository(db)

    def onboard(
        self,
        email: str,
        name: str | None = None,
        platform_customer_id: str | None = None,
    ) -> Merchant:
        """Create a merchant on the free tier with the default dunning sequence.

        Raises:
            ValueError: If a merchant with this email already exists.
        """
        if self.merchant_repo.get_by_email(email) is not None:
            raise ValueError(f"Merchant {email} already exists")

        merchant = self.merchant_repo.create(email, name)
        merchant_id: UUID = merchant.id  # type: ignore[assignment]
        self.subscription_repo.create(merchant_id, platform_customer_id)
        seed_default_templates(self.db, merchant_id)
        self.db.commit()
        self.db.refresh(merchant)

        logger.info("Onboarded merchant %s (%s)", merchant_id, merchant.email)
        return merchant

    def connect_account(
        self,
        merchant_id: UUID,
        account_id: str,
        access_token: str,
        vault: CredentialVault,
        *,
        is_live_mode: bool = False,
        account_name: str | None = None,
    ) -> GatewayConnection:
        """Store a connected account's access token encrypted."""
        connection = self.connection_repo.upsert(
            merchant_id=merchant_id,
            account_id=account_id,
            credential=vault.encrypt(access_token),
            is_live_mode=is_live_mode,
            account_name=account_name,
        )
        self.db.commit()
        self.db.refresh(connection)
        logger.info("Connected account %s for merchant %s", account_id, merchant_id)
        return connection
