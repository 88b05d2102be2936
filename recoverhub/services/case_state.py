"""Status transitions for failed-payment cases.

Every status change on a case goes through ``transition`` so the table below
is the single list of legal moves.
"""

from enum import Enum

from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.services.errors import InvalidTransitionError


class CaseEvent(str, Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    RETRIES_EXHAUSTED = "retries_exhausted"
    MANUAL_RETRY = "manual_retry"
    CANCEL = "cancel"


TRANSITIONS: dict[tuple[FailedPaymentStatus, CaseEvent], FailedPaymentStatus] = {
    (FailedPaymentStatus.ACTIVE, CaseEvent.PAYMENT_SUCCEEDED): FailedPaymentStatus.RECOVERED,
    (FailedPaymentStatus.ACTIVE, CaseEvent.RETRIES_EXHAUSTED): FailedPaymentStatus.PAUSED,
    (FailedPaymentStatus.ACTIVE, CaseEvent.MANUAL_RETRY): FailedPaymentStatus.ACTIVE,
    (FailedPaymentStatus.PAUSED, CaseEvent.MANUAL_RETRY): FailedPaymentStatus.ACTIVE,
    (FailedPaymentStatus.ACTIVE, CaseEvent.CANCEL): FailedPaymentStatus.CANCELED,
    (FailedPaymentStatus.PAUSED, CaseEvent.CANCEL): FailedPaymentStatus.CANCELED,
}

TERMINAL_STATUSES = frozenset({FailedPaymentStatus.RECOVERED, FailedPaymentStatus.CANCELED})


def next_status(current: FailedPaymentStatus | str, event: CaseEvent) -> FailedPaymentStatus:
    """Return the status reached from ``current`` on ``event``.

    Raises:
        InvalidTransitionError: If the table has no entry for the pair.
    """
    status = FailedPaymentStatus(current)
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot apply '{event.value}' to a case in status '{status.value}'"
        ) from None


def can_transition(current: FailedPaymentStatus | str, event: CaseEvent) -> bool:
    return (FailedPaymentStatus(current), event) in TRANSITIONS


def transition(case: FailedPayment, event: CaseEvent) -> FailedPaymentStatus:
    """Move ``case`` to its next status in place (the caller commits)."""
    new_status = next_status(str(case.status), event)
    case.status = new_status.value  # type: ignore[assignment]
    return new_status


def is_terminal(status: FailedPaymentStatus | str) -> bool:
    return FailedPaymentStatus(status) in TERMINAL_STATUSES
