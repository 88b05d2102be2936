"""Webhook ingestor: turns verified provider events into recovery state.

Connected-account events (a merchant's own customers) open and close
failed-payment cases. Platform events (the merchant paying for this service)
only mirror the merchant's plan and status.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recoverhub.core.config import settings
from recoverhub.models.failed_payment import FailedPaymentStatus
from recoverhub.models.platform_subscription import PlatformSubscriptionStatus, PlatformTier
from recoverhub.models.shared import from_unix_timestamp, utc_now
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.gateway_connection_repository import GatewayConnectionRepository
from recoverhub.repositories.platform_subscription_repository import (
    PlatformSubscriptionRepository,
)
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository
from recoverhub.schemas.provider_event import (
    InvoicePaymentFailedEvent,
    InvoicePaymentSucceededEvent,
    ProviderEvent,
    ProviderInvoice,
    ProviderSubscription,
    SubscriptionEvent,
)
from recoverhub.services.case_state import CaseEvent, transition
from recoverhub.services.retry_scheduler import RetryScheduler

logger = logging.getLogger(__name__)

SUBSCRIPTION_STATUS_MAP = {
    "active": PlatformSubscriptionStatus.ACTIVE,
    "trialing": PlatformSubscriptionStatus.ACTIVE,
    "past_due": PlatformSubscriptionStatus.PAST_DUE,
    "unpaid": PlatformSubscriptionStatus.PAST_DUE,
    "canceled": PlatformSubscriptionStatus.CANCELED,
}


def failure_reason(invoice: ProviderInvoice) -> str:
    error = invoice.last_payment_error
    if error is None:
        return "payment_failed"
    return error.message or error.code or "payment_failed"


def failure_code(invoice: ProviderInvoice) -> str | None:
    error = invoice.last_payment_error
    if error is None:
        return None
    return error.decline_code or error.code


def tier_for_price(price_id: str | None) -> PlatformTier:
    if price_id and price_id in settings.pro_price_ids:
        return PlatformTier.PRO
    if price_id and price_id in settings.starter_price_ids:
        return PlatformTier.STARTER
    return PlatformTier.FREE


class WebhookIngestor:
    def __init__(self, db: Session, scheduler: RetryScheduler | None = None):
        self.db = db
        self.scheduler = scheduler or RetryScheduler(db)
        self.connection_repo = GatewayConnectionRepository(db)
        self.case_repo = FailedPaymentRepository(db)
        self.attempt_repo = RetryAttemptRepository(db)
        self.subscription_repo = PlatformSubscriptionRepository(db)

    # ── Connected-account events ─────────────────────────────────────────

    def handle_connected_event(
        self,
        account_id: str,
        event: ProviderEvent,
        now: datetime | None = None,
    ) -> str:
        """Apply an event from a merchant's connected account. Returns an outcome label."""
        if isinstance(event, InvoicePaymentFailedEvent):
            return self._payment_failed(account_id, event.data.object, now or utc_now())
        if isinstance(event, InvoicePaymentSucceededEvent):
            return self._payment_succeeded(account_id, event.data.object, now or utc_now())
        logger.debug("Unhandled connected event %s from %s", event.type, account_id)
        return "ignored"

    def _payment_failed(self, account_id: str, invoice: ProviderInvoice, now: datetime) -> str:
        connection = self.connection_repo.get_by_account_id(account_id)
        if connection is None:
            logger.warning("No gateway connection for account %s", account_id)
            return "ignored"

        if self.case_repo.get_by_invoice(connection.id, invoice.id) is not None:  # type: ignore[arg-type]
            logger.info("Already tracking invoice %s; skipping", invoice.id)
            return "duplicate"

        try:
            case = self.case_repo.create(
                merchant_id=connection.merchant_id,
                gateway_connection_id=connection.id,
                external_invoice_id=invoice.id,
                external_charge_id=invoice.charge,
                external_customer_id=invoice.customer,
                external_subscription_id=invoice.subscription,
                customer_email=invoice.customer_email,
                customer_name=invoice.customer_name,
                amount_cents=invoice.amount_due,
                currency=invoice.currency,
                failure_reason=failure_reason(invoice),
                failure_code=failure_code(invoice),
                status=FailedPaymentStatus.ACTIVE.value,
                recovery_started_at=now,
                created_at=now,
            )
            self.scheduler.schedule_first(case)
            self.db.commit()
        except IntegrityError:
            # A concurrent delivery of the same event created the case first.
            self.db.rollback()
            logger.info("Invoice %s was recorded concurrently; skipping", invoice.id)
            return "duplicate"

        logger.info("Created failed payment %s for invoice %s", case.id, invoice.id)
        return "created"

    def _payment_succeeded(self, account_id: str, invoice: ProviderInvoice, now: datetime) -> str:
        connection = self.connection_repo.get_by_account_id(account_id)
        if connection is None:
            return "ignored"

        case = self.case_repo.get_by_invoice(connection.id, invoice.id)  # type: ignore[arg-type]
        if case is None or case.status != FailedPaymentStatus.ACTIVE.value:
            return "ignored"

        transition(case, CaseEvent.PAYMENT_SUCCEEDED)
        case.recovered_at = now  # type: ignore[assignment]
        skipped = self.attempt_repo.skip_pending(case.id)  # type: ignore[arg-type]
        self.db.commit()

        logger.info(
            "Invoice %s paid; case %s recovered (%d pending retries skipped)",
            invoice.id,
            case.id,
            skipped,
        )
        return "recovered"

    # ── Platform events ──────────────────────────────────────────────────

    def handle_platform_event(self, event: ProviderEvent) -> str:
        """Mirror the merchant's own platform subscription."""
        if isinstance(event, SubscriptionEvent):
            if event.type == "customer.subscription.deleted":
                return self._subscription_deleted(event.data.object)
            return self._subscription_changed(event.data.object)
        if isinstance(event, InvoicePaymentFailedEvent):
            return self._set_platform_status(
                event.data.object.customer, PlatformSubscriptionStatus.PAST_DUE
            )
        if isinstance(event, InvoicePaymentSucceededEvent):
            return self._set_platform_status(
                event.data.object.customer, PlatformSubscriptionStatus.ACTIVE
            )
        logger.debug("Unhandled platform event %s", event.type)
        return "ignored"

    def _subscription_changed(self, subscription: ProviderSubscription) -> str:
        record = self.subscription_repo.get_by_customer_id(subscription.customer)
        if record is None:
            logger.warning("No platform subscription for customer %s", subscription.customer)
            return "ignored"

        items = subscription.items.data
        price_id = items[0].price.id if items else None
        record.tier = tier_for_price(price_id).value  # type: ignore[assignment]
        record.status = SUBSCRIPTION_STATUS_MAP.get(  # type: ignore[assignment]
            subscription.status, PlatformSubscriptionStatus.ACTIVE
        ).value
        record.external_subscription_id = subscription.id  # type: ignore[assignment]
        if subscription.current_period_end is not None:
            record.current_period_end = from_unix_timestamp(  # type: ignore[assignment]
                subscription.current_period_end
            )
        self.db.commit()
        logger.info(
            "Platform subscription for %s is now %s/%s",
            subscription.customer,
            record.tier,
            record.status,
        )
        return "updated"

    def _subscription_deleted(self, subscription: ProviderSubscription) -> str:
        record = self.subscription_repo.get_by_customer_id(subscription.customer)
        if record is None:
            return "ignored"

        record.tier = PlatformTier.FREE.value  # type: ignore[assignment]
        record.status = PlatformSubscriptionStatus.CANCELED.value  # type: ignore[assignment]
        record.external_subscription_id = None  # type: ignore[assignment]
        self.db.commit()
        logger.info("Platform subscription for %s canceled", subscription.customer)
        return "canceled"

    def _set_platform_status(self, customer_id: str, status: PlatformSubscriptionStatus) -> str:
        record = self.subscription_repo.get_by_customer_id(customer_id)
        if record is None:
            return "ignored"
        record.status = status.value  # type: ignore[assignment]
        self.db.commit()
        return "updated"
