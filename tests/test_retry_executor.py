"""Tests for executing retry attempts against the payment gateway."""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from recoverhub.models.failed_payment import FailedPaymentStatus
from recoverhub.models.retry_attempt import RetryAttemptStatus
from recoverhub.models.shared import ensure_utc
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.gateway_connection_repository import GatewayConnectionRepository
from recoverhub.repositories.retry_attempt_repository import RetryAttemptRepository
from recoverhub.services.credential_vault import CredentialVault, EncryptedCredential
from recoverhub.services.errors import (
    AttemptNotFoundError,
    AttemptNotPendingError,
    CaseNotActiveError,
    CaseNotFoundError,
    CredentialDecryptionError,
    GatewayTransportError,
    MissingInvoiceError,
)
from recoverhub.schemas.provider_event import parse_provider_event
from recoverhub.services.payment_gateway import ChargeResult, GatewayError, PaymentGateway
from recoverhub.services.retry_executor import RetryExecutor
from recoverhub.services.retry_scheduler import RetryScheduler
from recoverhub.services.webhook_ingestor import WebhookIngestor


def declined(code="card_declined", decline_code="insufficient_funds"):
    return ChargeResult(
        succeeded=False,
        error=GatewayError(
            type="card_error",
            code=code,
            decline_code=decline_code,
            message="Your card was declined.",
        ),
    )


@pytest.fixture
def gateway():
    gw = MagicMock(spec=PaymentGateway)
    gw.pay_invoice.return_value = ChargeResult(succeeded=True, invoice_status="paid")
    return gw


@pytest.fixture
def executor(db_session, vault, gateway):
    return RetryExecutor(db_session, vault, gateway)


def _first_attempt(db_session, case):
    attempt = RetryScheduler(db_session).schedule_first(case)
    db_session.commit()
    return attempt


class TestSuccess:
    def test_recovers_case(self, db_session, executor, gateway, make_case, now, access_token):
        case = make_case()
        attempt = _first_attempt(db_session, case)

        result = executor.execute(case.id, attempt.id, now=now + timedelta(days=3))

        assert result.success is True
        assert result.attempt_number == 1
        gateway.pay_invoice.assert_called_once_with(case.external_invoice_id, access_token)
        db_session.refresh(case)
        db_session.refresh(attempt)
        assert case.status == FailedPaymentStatus.RECOVERED.value
        assert ensure_utc(case.recovered_at) == now + timedelta(days=3)
        assert attempt.status == RetryAttemptStatus.SUCCESS.value
        assert attempt.attempted_at is not None

    def test_skips_other_pending_attempts(self, db_session, executor, make_case, now):
        case = make_case()
        scheduler = RetryScheduler(db_session)
        automatic = scheduler.schedule_first(case)
        manual = scheduler.schedule_manual(case, now)
        db_session.commit()

        executor.execute(case.id, manual.id, now=now)

        db_session.refresh(automatic)
        assert automatic.status == RetryAttemptStatus.SKIPPED.value


class TestDecline:
    def test_schedules_next_step(self, db_session, executor, gateway, make_case, now):
        gateway.pay_invoice.return_value = declined()
        case = make_case()
        attempt = _first_attempt(db_session, case)

        result = executor.execute(case.id, attempt.id)

        assert result.success is False
        assert result.error_code == "insufficient_funds"
        assert result.error_message == "Your card was declined."
        assert result.next_retry_at == now + timedelta(days=7)
        db_session.refresh(attempt)
        assert attempt.status == RetryAttemptStatus.FAILED.value
        assert attempt.error_code == "insufficient_funds"
        attempts = RetryAttemptRepository(db_session).get_for_case(case.id)
        assert [(a.attempt_number, a.schedule_step) for a in attempts] == [(1, 1), (2, 2)]

    def test_three_declines_pause_case(self, db_session, executor, gateway, make_case):
        gateway.pay_invoice.return_value = declined()
        case = make_case()
        attempt = _first_attempt(db_session, case)
        repo = RetryAttemptRepository(db_session)

        for step in (1, 2, 3):
            result = executor.execute(case.id, attempt.id)
            if step < 3:
                attempt = repo.get_by_step(case.id, step + 1)

        assert result.next_retry_at is None
        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.PAUSED.value
        assert len(repo.get_for_case(case.id)) == 3

    def test_manual_decline_leaves_automatic_schedule_alone(
        self, db_session, executor, gateway, make_case, now
    ):
        gateway.pay_invoice.return_value = declined()
        case = make_case()
        scheduler = RetryScheduler(db_session)
        scheduler.schedule_first(case)
        manual = scheduler.schedule_manual(case, now)
        db_session.commit()

        result = executor.execute(case.id, manual.id)

        assert result.next_retry_at == now + timedelta(days=3)
        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.ACTIVE.value
        assert len(RetryAttemptRepository(db_session).get_for_case(case.id)) == 2

    def test_manual_decline_on_paused_case_pauses_again(
        self, db_session, executor, gateway, make_case, now
    ):
        gateway.pay_invoice.return_value = declined()
        case = make_case(status=FailedPaymentStatus.PAUSED.value)
        manual = RetryScheduler(db_session).schedule_manual(case, now)
        db_session.commit()

        executor.execute(case.id, manual.id)

        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.PAUSED.value

    def test_manual_retry_after_three_declines_recovers(
        self, db_session, executor, gateway, make_case, now
    ):
        gateway.pay_invoice.return_value = declined()
        case = make_case()
        attempt = _first_attempt(db_session, case)
        repo = RetryAttemptRepository(db_session)
        for step in (1, 2, 3):
            executor.execute(case.id, attempt.id)
            if step < 3:
                attempt = repo.get_by_step(case.id, step + 1)
        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.PAUSED.value

        manual = RetryScheduler(db_session).schedule_manual(case, now + timedelta(days=15))
        db_session.commit()
        assert manual.attempt_number == 4
        assert case.status == FailedPaymentStatus.ACTIVE.value

        gateway.pay_invoice.return_value = ChargeResult(succeeded=True, invoice_status="paid")
        result = executor.execute(case.id, manual.id, now=now + timedelta(days=15))

        assert result.success is True
        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.RECOVERED.value
        assert [a.status for a in repo.get_for_case(case.id)] == [
            RetryAttemptStatus.FAILED.value,
            RetryAttemptStatus.FAILED.value,
            RetryAttemptStatus.FAILED.value,
            RetryAttemptStatus.SUCCESS.value,
        ]

    def test_decline_without_detail(self, db_session, executor, gateway, make_case):
        gateway.pay_invoice.return_value = ChargeResult(succeeded=False)
        case = make_case()
        attempt = _first_attempt(db_session, case)

        result = executor.execute(case.id, attempt.id)
        assert result.error_code == "unknown_error"


class TestRecoveryScenario:
    def test_decline_then_recovery_on_second_attempt(
        self, db_session, executor, gateway, connection, now
    ):
        event = parse_provider_event(
            {
                "id": "evt_scenario",
                "type": "invoice.payment_failed",
                "data": {
                    "object": {
                        "id": "in_scenario",
                        "customer": "cus_1",
                        "amount_due": 4900,
                        "currency": "usd",
                        "customer_email": "jane@example.com",
                        "last_payment_error": {
                            "message": "Your card was declined.",
                            "code": "card_declined",
                        },
                    }
                },
            }
        )
        WebhookIngestor(db_session).handle_connected_event(connection.account_id, event, now=now)
        case = FailedPaymentRepository(db_session).get_by_invoice(connection.id, "in_scenario")
        assert case.amount_cents == 4900
        repo = RetryAttemptRepository(db_session)
        first = repo.get_by_step(case.id, 1)
        assert ensure_utc(first.scheduled_at) == now + timedelta(days=3)

        gateway.pay_invoice.return_value = declined(decline_code="insufficient_funds")
        result = executor.execute(case.id, first.id, now=now + timedelta(days=3))

        assert result.error_code == "insufficient_funds"
        assert result.next_retry_at == now + timedelta(days=7)
        second = repo.get_by_step(case.id, 2)
        assert second.attempt_number == 2

        gateway.pay_invoice.return_value = ChargeResult(succeeded=True, invoice_status="paid")
        result = executor.execute(case.id, second.id, now=now + timedelta(days=7))

        assert result.success is True
        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.RECOVERED.value
        assert ensure_utc(case.recovered_at) == now + timedelta(days=7)
        assert repo.get_by_step(case.id, 3) is None
        assert [a.attempt_number for a in repo.get_for_case(case.id)] == [1, 2]


def resolved_elsewhere(database, case_id, status, outcome):
    """Gateway stand-in that moves the case to ``status`` from another session."""

    def pay_invoice(invoice_id, access_token):
        other = database.session()
        try:
            FailedPaymentRepository(other).get_by_id(case_id).status = status
            other.commit()
        finally:
            other.close()
        return outcome

    return pay_invoice


class TestConcurrentResolution:
    def test_success_on_already_recovered_case(
        self, db_session, database, executor, gateway, make_case, now
    ):
        case = make_case()
        attempt = _first_attempt(db_session, case)
        gateway.pay_invoice.side_effect = resolved_elsewhere(
            database,
            case.id,
            FailedPaymentStatus.RECOVERED.value,
            ChargeResult(succeeded=True, invoice_status="paid"),
        )

        result = executor.execute(case.id, attempt.id, now=now)

        assert result.success is True
        db_session.refresh(case)
        db_session.refresh(attempt)
        assert case.status == FailedPaymentStatus.RECOVERED.value
        assert case.recovered_at is None
        assert attempt.status == RetryAttemptStatus.SUCCESS.value

    def test_decline_on_canceled_case(
        self, db_session, database, executor, gateway, make_case, now
    ):
        case = make_case()
        attempt = _first_attempt(db_session, case)
        gateway.pay_invoice.side_effect = resolved_elsewhere(
            database, case.id, FailedPaymentStatus.CANCELED.value, declined()
        )

        result = executor.execute(case.id, attempt.id, now=now)

        assert result.success is False
        assert result.next_retry_at is None
        db_session.refresh(case)
        assert case.status == FailedPaymentStatus.CANCELED.value
        assert len(RetryAttemptRepository(db_session).get_for_case(case.id)) == 1


class TestPreconditions:
    def test_unknown_case(self, executor):
        with pytest.raises(CaseNotFoundError):
            executor.execute(uuid4(), uuid4())

    def test_case_not_active(self, db_session, executor, gateway, make_case):
        case = make_case()
        attempt = _first_attempt(db_session, case)
        case.status = FailedPaymentStatus.CANCELED.value
        db_session.commit()

        with pytest.raises(CaseNotActiveError):
            executor.execute(case.id, attempt.id)
        gateway.pay_invoice.assert_not_called()

    def test_missing_invoice_id(self, db_session, executor, make_case):
        case = make_case(external_invoice_id=None)
        attempt = _first_attempt(db_session, case)
        with pytest.raises(MissingInvoiceError):
            executor.execute(case.id, attempt.id)

    def test_attempt_of_another_case(self, db_session, executor, make_case):
        case = make_case()
        other = make_case()
        attempt = _first_attempt(db_session, other)
        with pytest.raises(AttemptNotFoundError):
            executor.execute(case.id, attempt.id)

    def test_attempt_already_run(self, db_session, executor, make_case):
        case = make_case()
        attempt = _first_attempt(db_session, case)
        attempt.status = RetryAttemptStatus.FAILED.value
        db_session.commit()

        with pytest.raises(AttemptNotPendingError):
            executor.execute(case.id, attempt.id)

    def test_undecryptable_credential(self, db_session, gateway, make_case, connection):
        case = make_case()
        attempt = _first_attempt(db_session, case)

        executor = RetryExecutor(db_session, CredentialVault("another-key"), gateway)
        with pytest.raises(CredentialDecryptionError):
            executor.execute(case.id, attempt.id)
        gateway.pay_invoice.assert_not_called()
        db_session.refresh(attempt)
        assert attempt.status == RetryAttemptStatus.PENDING.value


class TestTransportFailure:
    def test_leaves_state_untouched(self, db_session, executor, gateway, make_case):
        gateway.pay_invoice.side_effect = GatewayTransportError("timed out")
        case = make_case()
        attempt = _first_attempt(db_session, case)

        with pytest.raises(GatewayTransportError):
            executor.execute(case.id, attempt.id)

        db_session.refresh(attempt)
        db_session.refresh(case)
        assert attempt.status == RetryAttemptStatus.PENDING.value
        assert attempt.attempted_at is not None
        assert case.status == FailedPaymentStatus.ACTIVE.value


def test_credential_round_trips_through_connection(db_session, connection, vault, access_token):
    credential = GatewayConnectionRepository.credential(connection)
    assert isinstance(credential, EncryptedCredential)
    assert vault.decrypt(credential) == access_token
