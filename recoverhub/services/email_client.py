"""Email client for sending dunning emails via Resend."""

from __future__ import annotations

import logging
from typing import Any

import resend
from resend.exceptions import ResendError

from recoverhub.services.errors import EmailRejectedError, EmailTransportError

logger = logging.getLogger(__name__)


def _status_code(exc: ResendError) -> int | None:
    try:
        return int(exc.code)
    except (TypeError, ValueError):
        return None


class EmailClient:
    """Thin wrapper around ``resend.Emails.send``.

    Normalizes provider failures into ``EmailRejectedError`` (the request was
    refused and resending it will not help) and ``EmailTransportError``
    (network failure, rate limit or provider-side 5xx).
    """

    def __init__(self, api_key: str, from_email: str):
        self.api_key = api_key
        self.from_email = from_email

    def send(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        text: str,
        tags: dict[str, str] | None = None,
    ) -> str:
        """Send one email and return the provider message id."""
        if not self.api_key:
            raise EmailRejectedError("RESEND_API_KEY is not configured")

        resend.api_key = self.api_key
        params: dict[str, Any] = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
        }
        if tags:
            params["tags"] = [{"name": name, "value": value} for name, value in tags.items()]

        try:
            response = resend.Emails.send(params)  # type: ignore[arg-type]
        except ResendError as exc:
            status = _status_code(exc)
            if status is None or status >= 500 or status == 429:
                raise EmailTransportError(f"Resend unavailable: {exc}") from exc
            raise EmailRejectedError(f"Resend rejected the email: {exc}") from exc
        except OSError as exc:
            raise EmailTransportError(f"Resend unreachable: {exc}") from exc

        message_id = response.get("id") if isinstance(response, dict) else None
        if not message_id:
            raise EmailTransportError("Resend response did not include a message id")
        logger.info("Sent email to %s (message %s)", to, message_id)
        return str(message_id)
