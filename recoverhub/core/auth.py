from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from recoverhub.core.database import get_db
from recoverhub.repositories.merchant_repository import MerchantRepository


def get_current_merchant(
    request: Request,
    db: Session = Depends(get_db),
) -> UUID:
    """Resolve the calling merchant from the X-Merchant-Id header.

    The header is set by the dashboard session layer in front of this API.
    """
    header = request.headers.get("X-Merchant-Id")
    if not header:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        merchant_id = UUID(header)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-Merchant-Id header") from None

    if MerchantRepository(db).get_by_id(merchant_id) is None:
        raise HTTPException(status_code=404, detail="Merchant not found")

    return merchant_id
