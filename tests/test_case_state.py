"""Tests for the failed-payment status transition table."""

import pytest

from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.services.case_state import (
    CaseEvent,
    can_transition,
    is_terminal,
    next_status,
    transition,
)
from recoverhub.services.errors import InvalidTransitionError


class TestNextStatus:
    @pytest.mark.parametrize(
        ("current", "event", "expected"),
        [
            ("active", CaseEvent.PAYMENT_SUCCEEDED, FailedPaymentStatus.RECOVERED),
            ("active", CaseEvent.RETRIES_EXHAUSTED, FailedPaymentStatus.PAUSED),
            ("active", CaseEvent.MANUAL_RETRY, FailedPaymentStatus.ACTIVE),
            ("paused", CaseEvent.MANUAL_RETRY, FailedPaymentStatus.ACTIVE),
            ("active", CaseEvent.CANCEL, FailedPaymentStatus.CANCELED),
            ("paused", CaseEvent.CANCEL, FailedPaymentStatus.CANCELED),
        ],
    )
    def test_legal_moves(self, current, event, expected):
        assert next_status(current, event) == expected

    @pytest.mark.parametrize(
        ("current", "event"),
        [
            ("recovered", CaseEvent.MANUAL_RETRY),
            ("canceled", CaseEvent.MANUAL_RETRY),
            ("recovered", CaseEvent.CANCEL),
            ("paused", CaseEvent.PAYMENT_SUCCEEDED),
            ("paused", CaseEvent.RETRIES_EXHAUSTED),
        ],
    )
    def test_illegal_moves(self, current, event):
        assert not can_transition(current, event)
        with pytest.raises(InvalidTransitionError):
            next_status(current, event)


def test_transition_updates_case_in_place():
    case = FailedPayment(status=FailedPaymentStatus.ACTIVE.value)
    assert transition(case, CaseEvent.RETRIES_EXHAUSTED) == FailedPaymentStatus.PAUSED
    assert case.status == "paused"


def test_terminal_statuses():
    assert is_terminal("recovered")
    assert is_terminal(FailedPaymentStatus.CANCELED)
    assert not is_terminal("active")
    assert not is_terminal("paused")
