from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.platform_subscription import PlatformSubscription


class PlatformSubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_merchant(self, merchant_id: UUID) -> PlatformSubscription | None:
        return (
            self.db.query(PlatformSubscription)
            .filter(PlatformSubscription.merchant_id == merchant_id)
            .first()
        )

    def get_by_customer_id(self, customer_id: str) -> PlatformSubscription | None:
        return (
            self.db.query(PlatformSubscription)
            .filter(PlatformSubscription.external_customer_id == customer_id)
            .first()
        )

    def create(self, merchant_id: UUID, customer_id: str | None = None) -> PlatformSubscription:
        subscription = PlatformSubscription(merchant_id=merchant_id, external_customer_id=customer_id)
        self.db.add(subscription)
        self.db.flush()
        return subscription
