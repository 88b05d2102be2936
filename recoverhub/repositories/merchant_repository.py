from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.merchant import Merchant


class MerchantRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, merchant_id: UUID) -> Merchant | None:
        return self.db.query(Merchant).filter(Merchant.id == merchant_id).first()

    def get_by_email(self, email: str) -> Merchant | None:
        return self.db.query(Merchant).filter(Merchant.email == email.lower()).first()

    def create(self, email: str, name: str | None = None) -> Merchant:
        merchant = Merchant(email=email.lower(), name=name)
        self.db.add(merchant)
        self.db.flush()
        return merchant
