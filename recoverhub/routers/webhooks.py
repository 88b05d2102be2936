"""Inbound webhooks from the payment provider and the email provider."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from recoverhub.core.config import settings
from recoverhub.core.database import get_db
from recoverhub.schemas.delivery_event import DeliveryEvent
from recoverhub.services.delivery_events import apply_delivery_event
from recoverhub.services.errors import SignatureVerificationError
from recoverhub.services.event_verifier import verify_delivery_signature, verify_event
from recoverhub.services.webhook_ingestor import WebhookIngestor

logger = logging.getLogger(__name__)

router = APIRouter()


def _names_connected_account(payload: bytes) -> bool:
    """Whether the (still unverified) body claims a connected account.

    Only used to pick which signing secret to check against.
    """
    try:
        body = json.loads(payload)
    except ValueError:
        return False
    return isinstance(body, dict) and bool(body.get("account"))


@router.post(
    "/stripe",
    summary="Receive payment provider webhook",
    responses={
        400: {"description": "Missing or invalid signature"},
        500: {"description": "Webhook secret not configured"},
    },
)
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    stripe_account: str | None = Header(None, alias="Stripe-Account"),
) -> dict[str, Any]:
    """Handle a provider event.

    Events carrying a connected account id come from a merchant's own account
    and drive recovery cases; the rest are platform billing events.
    """
    payload = await request.body()

    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing signature")

    connected = bool(stripe_account) or _names_connected_account(payload)
    secret = settings.STRIPE_CONNECT_WEBHOOK_SECRET if connected else settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error(
            "Webhook secret for %s events is not configured",
            "connected-account" if connected else "platform",
        )
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    try:
        event = verify_event(
            payload,
            stripe_signature,
            secret,
            tolerance=settings.WEBHOOK_TOLERANCE_SECONDS,
        )
    except SignatureVerificationError as exc:
        logger.warning("Webhook verification failed: %s", exc)
        raise HTTPException(status_code=400, detail="Invalid signature") from None

    account_id = stripe_account or event.account
    ingestor = WebhookIngestor(db)
    try:
        if account_id:
            outcome = ingestor.handle_connected_event(account_id, event)
        else:
            outcome = ingestor.handle_platform_event(event)
    except Exception:
        db.rollback()
        logger.exception("Error handling webhook event %s (%s)", event.id, event.type)
        return {"received": True, "warning": "Handler error, check server logs"}

    logger.info("Webhook event %s (%s): %s", event.id, event.type, outcome)
    return {"received": True}


@router.post(
    "/resend",
    summary="Receive email delivery webhook",
    responses={
        400: {"description": "Invalid JSON payload"},
        401: {"description": "Invalid signature"},
    },
)
async def resend_webhook(
    request: Request,
    db: Session = Depends(get_db),
    svix_id: str | None = Header(None, alias="svix-id"),
    svix_timestamp: str | None = Header(None, alias="svix-timestamp"),
    svix_signature: str | None = Header(None, alias="svix-signature"),
) -> dict[str, bool]:
    """Track opens, clicks and bounces of dunning emails."""
    payload = await request.body()

    if settings.RESEND_WEBHOOK_SECRET:
        try:
            verify_delivery_signature(
                payload,
                svix_id,
                svix_timestamp,
                svix_signature,
                settings.RESEND_WEBHOOK_SECRET,
                tolerance=settings.WEBHOOK_TOLERANCE_SECONDS,
            )
        except SignatureVerificationError as exc:
            logger.warning("Delivery webhook verification failed: %s", exc)
            raise HTTPException(status_code=401, detail="Invalid signature") from None

    try:
        body = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from None

    try:
        event = DeliveryEvent.model_validate(body)
    except ValidationError:
        logger.debug("Ignoring delivery callback without an email id")
        return {"ok": True}

    apply_delivery_event(db, event)
    return {"ok": True}
