"""FailedPayment API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from recoverhub.core.auth import get_current_merchant
from recoverhub.core.database import get_db
from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository
from recoverhub.schemas.failed_payment import (
    DunningEmailResponse,
    FailedPaymentDetailResponse,
    FailedPaymentResponse,
    ManualRetryResponse,
    RetryAttemptResponse,
)
from recoverhub.services.errors import RecoveryError
from recoverhub.services.failed_payment_service import FailedPaymentService
from recoverhub.tasks import enqueue_retry_attempt

logger = logging.getLogger(__name__)

router = APIRouter()

NEXT_CHECK_HINT = "Retry queued, check back in a few seconds"


@router.get(
    "/",
    response_model=list[FailedPaymentResponse],
    summary="List failed payments",
    responses={401: {"description": "Unauthorized"}},
)
async def list_failed_payments(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: FailedPaymentStatus | None = None,
    order_by: str | None = None,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> list[FailedPayment]:
    """List the merchant's failed payment cases with an optional status filter."""
    repo = FailedPaymentRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(merchant_id, status=status))
    return repo.get_all(merchant_id, skip=skip, limit=limit, status=status, order_by=order_by)


@router.get(
    "/{case_id}",
    response_model=FailedPaymentDetailResponse,
    summary="Get failed payment",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Payment belongs to another merchant"},
        404: {"description": "Payment not found"},
    },
)
async def get_failed_payment(
    case_id: UUID,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> FailedPaymentDetailResponse:
    """Get a failed payment case with its retry attempts and dunning emails."""
    try:
        case = FailedPaymentService(db).get_owned_case(case_id, merchant_id)
    except RecoveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from None

    detail = FailedPaymentDetailResponse.model_validate(case)
    detail.retry_attempts = [
        RetryAttemptResponse.model_validate(a) for a in RetryAttemptRepository(db).get_for_case(case_id)
    ]
    detail.dunning_emails = [
        DunningEmailResponse.model_validate(e) for e in DunningEmailRepository(db).get_for_case(case_id)
    ]
    return detail


@router.post(
    "/{case_id}/retry",
    response_model=ManualRetryResponse,
    summary="Retry failed payment now",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Payment belongs to another merchant"},
        404: {"description": "Payment not found"},
        409: {"description": "Payment is recovered or canceled"},
        429: {"description": "Manual retry limit reached"},
    },
)
async def retry_failed_payment(
    case_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> ManualRetryResponse:
    """Schedule an immediate manual retry and queue it for execution.

    Capped at three manual retries per case in any rolling 24 hours.
    """
    try:
        attempt = FailedPaymentService(db).request_manual_retry(case_id, merchant_id)
    except RecoveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from None

    job = await enqueue_retry_attempt(request.app.state.redis, case_id, attempt.id)  # type: ignore[arg-type]
    return ManualRetryResponse(
        attempt_id=attempt.id,  # type: ignore[arg-type]
        attempt_number=attempt.attempt_number,  # type: ignore[arg-type]
        job_id=job.job_id if job is not None else None,
        next_check_hint=NEXT_CHECK_HINT,
    )


@router.post(
    "/{case_id}/cancel",
    response_model=FailedPaymentResponse,
    summary="Cancel recovery",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Payment belongs to another merchant"},
        404: {"description": "Payment not found"},
        409: {"description": "Payment is recovered or canceled"},
    },
)
async def cancel_failed_payment(
    case_id: UUID,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> FailedPayment:
    """Stop recovery for a case; pending retry attempts are skipped."""
    try:
        return FailedPaymentService(db).cancel(case_id, merchant_id)
    except RecoveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from None
