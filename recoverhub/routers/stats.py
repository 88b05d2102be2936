from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from recoverhub.core.auth import get_current_merchant
from recoverhub.core.database import get_db
from recoverhub.schemas.stats import RecoveryStatsResponse
from recoverhub.services.recovery_stats import RecoveryStatsService

router = APIRouter()


@router.get(
    "/",
    response_model=RecoveryStatsResponse,
    summary="Get recovery statistics",
    responses={401: {"description": "Unauthorized"}},
)
async def get_recovery_stats(
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> RecoveryStatsResponse:
    """Recovery totals and rates across all of the merchant's cases."""
    return RecoveryStatsService(db).get_stats(merchant_id)
