"""Authenticity checks for inbound webhooks.

Nothing here touches the database or the network: the functions take the raw
request body and headers and either return a trusted, decoded event or raise
a ``SignatureVerificationError``.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time

import stripe
from pydantic import ValidationError

from recoverhub.schemas.provider_event import ProviderEvent, parse_provider_event
from recoverhub.services.errors import (
    MalformedEventError,
    MalformedSignatureError,
    MissingSignatureError,
    SignatureMismatchError,
    TimestampOutsideToleranceError,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300
SIGNATURE_SCHEME = "v1"


def parse_signature_header(header: str) -> tuple[int, list[str]]:
    """Split ``t=<unix>,v1=<hex>[,v1=<hex>...]`` into timestamp and candidates.

    Unknown schemes (for example ``v0``) are ignored. Header values are ASCII;
    anything else is rejected before it can reach a digest comparison.
    """
    if not header.isascii():
        raise MalformedSignatureError("Signature header contains non-ASCII characters")

    timestamp: int | None = None
    signatures: list[str] = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise MalformedSignatureError("Signature timestamp is not an integer") from None
        elif key == SIGNATURE_SCHEME and value:
            signatures.append(value)

    if timestamp is None:
        raise MalformedSignatureError("Signature header has no timestamp")
    if not signatures:
        raise MalformedSignatureError(f"Signature header has no {SIGNATURE_SCHEME} signature")
    return timestamp, signatures


def _check_tolerance(timestamp: int, tolerance: int, now: float | None) -> None:
    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        raise TimestampOutsideToleranceError("Signature timestamp is outside the tolerance window")


def verify_signature(
    raw_body: bytes,
    signature_header: str | None,
    secret: str,
    *,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> None:
    """Raise unless one of the header's signatures matches the body.

    The digest comparison is delegated to ``stripe.WebhookSignature``. The
    timestamp window is checked here in both directions against ``now``, so
    stripe's own past-only tolerance is switched off.
    """
    if not signature_header:
        raise MissingSignatureError("Missing signature header")

    timestamp, _ = parse_signature_header(signature_header)
    _check_tolerance(timestamp, tolerance, now)

    try:
        stripe.WebhookSignature.verify_header(raw_body, signature_header, secret, tolerance=None)
    except UnicodeDecodeError:
        raise SignatureMismatchError("Event body is not valid UTF-8") from None
    except stripe.SignatureVerificationError as exc:
        logger.debug("Stripe rejected webhook signature: %s", exc)
        raise SignatureMismatchError("No signature matches the expected signature") from None


def verify_event(
    raw_body: bytes,
    signature_header: str | None,
    secret: str,
    *,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> ProviderEvent:
    """Authenticate ``raw_body`` and decode it into a typed provider event."""
    verify_signature(raw_body, signature_header, secret, tolerance=tolerance, now=now)

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise MalformedEventError("Event body is not valid JSON") from None

    try:
        return parse_provider_event(payload)
    except ValidationError as exc:
        raise MalformedEventError(f"Event payload is malformed: {exc.error_count()} error(s)") from exc


def _decode_delivery_secret(secret: str) -> bytes:
    encoded = secret.removeprefix("whsec_")
    try:
        return base64.b64decode(encoded, validate=True)
    except binascii.Error:
        raise MalformedSignatureError("Delivery webhook secret is not valid base64") from None


def verify_delivery_signature(
    raw_body: bytes,
    message_id: str | None,
    timestamp: str | None,
    signature_header: str | None,
    secret: str,
    *,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> None:
    """Verify an email delivery callback signed with the Svix scheme.

    The signed content is ``"{id}.{timestamp}.{body}"``; the header holds
    space-separated ``v1,<base64>`` entries.
    """
    if not message_id or not timestamp or not signature_header:
        raise MissingSignatureError("Missing delivery signature headers")

    try:
        ts = int(timestamp)
    except ValueError:
        raise MalformedSignatureError("Delivery timestamp is not an integer") from None
    _check_tolerance(ts, tolerance, now)

    key = _decode_delivery_secret(secret)
    signed_content = f"{message_id}.{ts}.".encode() + raw_body
    expected = base64.b64encode(hmac.new(key, signed_content, hashlib.sha256).digest()).decode()

    for entry in signature_header.split():
        version, _, signature = entry.partition(",")
        if version != SIGNATURE_SCHEME or not signature.isascii():
            continue
        if hmac.compare_digest(expected.encode(), signature.encode()):
            return
    raise SignatureMismatchError("No delivery signature matches the expected signature")
