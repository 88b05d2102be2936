"""Applies email delivery callbacks (opened, clicked, bounced) to dunning emails."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from recoverhub.models.dunning_email import DunningEmailStatus
from recoverhub.models.shared import utc_now
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.schemas.delivery_event import DeliveryEvent

logger = logging.getLogger(__name__)

EVENT_STATUS = {
    "email.opened": DunningEmailStatus.OPENED,
    "email.clicked": DunningEmailStatus.CLICKED,
    "email.bounced": DunningEmailStatus.BOUNCED,
    "email.complained": DunningEmailStatus.BOUNCED,
}

# A record only moves up this ranking.
STATUS_RANK = {
    DunningEmailStatus.PENDING: 0,
    DunningEmailStatus.FAILED: 0,
    DunningEmailStatus.SENT: 1,
    DunningEmailStatus.OPENED: 2,
    DunningEmailStatus.CLICKED: 3,
    DunningEmailStatus.BOUNCED: 4,
}


def apply_delivery_event(
    db: Session,
    event: DeliveryEvent,
    now: datetime | None = None,
) -> bool:
    """Update the matching dunning email. Returns False when nothing matched."""
    new_status = EVENT_STATUS.get(event.type)
    if new_status is None:
        logger.debug("Ignoring delivery event type %s", event.type)
        return False

    record = DunningEmailRepository(db).get_by_message_id(event.data.email_id)
    if record is None:
        logger.debug("No dunning email for message %s", event.data.email_id)
        return False

    now = now or utc_now()
    if new_status == DunningEmailStatus.OPENED and record.opened_at is None:
        record.opened_at = now  # type: ignore[assignment]
    elif new_status == DunningEmailStatus.CLICKED and record.clicked_at is None:
        record.clicked_at = now  # type: ignore[assignment]

    current = DunningEmailStatus(record.status)
    if STATUS_RANK[new_status] > STATUS_RANK[current]:
        record.status = new_status.value  # type: ignore[assignment]

    db.commit()
    logger.info("Dunning email %s: %s -> %s", record.id, event.type, record.status)
    return True
