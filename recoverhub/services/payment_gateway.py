"""Payment gateway client for retrying invoice charges on connected accounts."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import stripe

from recoverhub.services.errors import GatewayTransportError

logger = logging.getLogger(__name__)


@dataclass
class GatewayError:
    """Structured error body returned with a declined charge."""

    type: str
    code: str | None = None
    decline_code: str | None = None
    message: str | None = None

    @property
    def reason(self) -> str:
        return self.decline_code or self.code or self.message or "unknown_error"


@dataclass
class ChargeResult:
    """Outcome of a charge that reached the provider.

    A decline is a normal result, not an exception; only transport failures
    raise.
    """

    succeeded: bool
    invoice_status: str | None = None
    error: GatewayError | None = None


class PaymentGateway(ABC):
    """Abstract base class for gateways that can charge an open invoice."""

    @abstractmethod
    def pay_invoice(self, invoice_id: str, access_token: str) -> ChargeResult:
        """Charge the invoice's default payment method."""
        pass  # pragma: no cover


def _error_from_exception(exc: stripe.StripeError) -> GatewayError:
    body = exc.json_body if isinstance(exc.json_body, dict) else None
    error: Any = body.get("error") if body else None
    if not isinstance(error, dict):
        return GatewayError(
            type="api_error",
            message=f"HTTP {exc.http_status} {exc.user_message or ''}".strip(),
        )
    return GatewayError(
        type=error.get("type") or "api_error",
        code=error.get("code"),
        decline_code=error.get("decline_code"),
        message=error.get("message"),
    )


class StripeGateway(PaymentGateway):
    """Pays invoices through ``POST /v1/invoices/{id}/pay`` as the connected account."""

    def pay_invoice(self, invoice_id: str, access_token: str) -> ChargeResult:
        try:
            invoice = stripe.Invoice.pay(invoice_id, api_key=access_token)
        except (stripe.APIConnectionError, stripe.RateLimitError) as exc:
            raise GatewayTransportError(f"Stripe unavailable: {exc.user_message}") from exc
        except stripe.StripeError as exc:
            if exc.http_status is None or exc.http_status >= 500:
                raise GatewayTransportError(
                    f"Stripe error HTTP {exc.http_status}: {exc.user_message}"
                ) from exc
            error = _error_from_exception(exc)
            logger.info("Invoice %s declined: %s", invoice_id, error.reason)
            return ChargeResult(succeeded=False, error=error)

        return ChargeResult(succeeded=True, invoice_status=getattr(invoice, "status", None))
