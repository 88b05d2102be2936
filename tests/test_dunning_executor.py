"""Tests for sending dunning emails."""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from recoverhub.models.dunning_email import DunningEmailStatus
from recoverhub.models.failed_payment import FailedPaymentStatus
from recoverhub.models.shared import ensure_utc
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.services.dunning_executor import DunningExecutor
from recoverhub.services.email_client import EmailClient
from recoverhub.services.errors import (
    CaseNotFoundError,
    EmailRejectedError,
    EmailTransportError,
    TemplateNotFoundError,
)

APP_URL = "https://app.example.com"


@pytest.fixture
def email_client():
    client = MagicMock(spec=EmailClient)
    client.send.return_value = "msg_123"
    return client


@pytest.fixture
def executor(db_session, email_client):
    return DunningExecutor(db_session, email_client, APP_URL)


class TestSend:
    def test_renders_and_sends(self, db_session, executor, email_client, templates, make_case, now):
        case = make_case()
        template = templates[1]

        result = executor.send(case.id, template.id, now=now)

        assert result.success is True
        assert result.message_id == "msg_123"
        kwargs = email_client.send.call_args.kwargs
        assert kwargs["to"] == "customer@example.com"
        assert kwargs["subject"] == "Urgent: Your payment of $49.00 is still outstanding"
        assert "Hi Jane Customer," in kwargs["text"]
        assert f"{APP_URL}/billing/update" in kwargs["html"]
        assert "{{" not in kwargs["html"]
        assert kwargs["tags"] == {
            "type": "dunning",
            "template_id": str(template.id),
            "failed_payment_id": str(case.id),
        }

        record = DunningEmailRepository(db_session).get_by_id(result.email_id)
        assert record.status == DunningEmailStatus.SENT.value
        assert record.provider_message_id == "msg_123"
        assert record.email_subject == kwargs["subject"]
        assert ensure_utc(record.sent_at) == now

    def test_returns_next_step(self, executor, templates, make_case, now):
        case = make_case()
        result = executor.send(case.id, templates[0].id)

        assert result.next_step is not None
        assert result.next_step.template_id == templates[1].id
        assert result.next_step.send_at == now + timedelta(days=5)

    def test_last_step_has_no_next(self, executor, templates, make_case):
        case = make_case()
        assert executor.send(case.id, templates[2].id).next_step is None

    def test_already_sent_is_skipped(self, executor, email_client, templates, make_case):
        case = make_case()
        executor.send(case.id, templates[0].id)
        email_client.send.reset_mock()

        result = executor.send(case.id, templates[0].id)

        assert result.skipped is True
        email_client.send.assert_not_called()

    def test_pending_record_is_resumed(self, db_session, executor, email_client, templates, make_case):
        case = make_case()
        email_client.send.side_effect = EmailTransportError("timeout")
        with pytest.raises(EmailTransportError):
            executor.send(case.id, templates[0].id)

        records = DunningEmailRepository(db_session).get_for_case(case.id)
        assert [r.status for r in records] == [DunningEmailStatus.PENDING.value]

        email_client.send.side_effect = None
        result = executor.send(case.id, templates[0].id)

        assert result.success is True
        db_session.expire_all()
        records = DunningEmailRepository(db_session).get_for_case(case.id)
        assert [r.status for r in records] == [DunningEmailStatus.SENT.value]


class TestSkipsAndFailures:
    @pytest.mark.parametrize("status", ["recovered", "canceled", "paused"])
    def test_inactive_case_is_noop(self, executor, email_client, templates, make_case, status):
        case = make_case(status=status)
        result = executor.send(case.id, templates[0].id)

        assert result.skipped is True
        email_client.send.assert_not_called()

    def test_case_without_email_is_noop(self, executor, email_client, templates, make_case):
        case = make_case(customer_email=None)
        assert executor.send(case.id, templates[0].id).skipped is True
        email_client.send.assert_not_called()

    def test_inactive_template_is_noop(
        self, db_session, executor, email_client, templates, make_case
    ):
        templates[0].is_active = False
        db_session.commit()
        case = make_case()

        result = executor.send(case.id, templates[0].id)

        assert result.skipped is True
        assert result.email_id is None
        email_client.send.assert_not_called()
        emails = DunningEmailRepository(db_session)
        assert emails.get_for_case_and_template(case.id, templates[0].id) is None

    def test_unknown_case(self, executor, templates):
        with pytest.raises(CaseNotFoundError):
            executor.send(uuid4(), templates[0].id)

    def test_unknown_template(self, executor, make_case):
        case = make_case()
        with pytest.raises(TemplateNotFoundError):
            executor.send(case.id, uuid4())

    def test_rejected_email_marks_record_failed(
        self, db_session, executor, email_client, templates, make_case
    ):
        email_client.send.side_effect = EmailRejectedError("invalid recipient")
        case = make_case()

        result = executor.send(case.id, templates[0].id)

        assert result.success is False
        assert "invalid recipient" in result.error
        record = DunningEmailRepository(db_session).get_by_id(result.email_id)
        assert record.status == DunningEmailStatus.FAILED.value
        assert record.error_message == "invalid recipient"

    def test_failed_record_is_not_retried(self, executor, email_client, templates, make_case):
        email_client.send.side_effect = EmailRejectedError("invalid recipient")
        case = make_case()
        executor.send(case.id, templates[0].id)
        email_client.send.reset_mock()

        assert executor.send(case.id, templates[0].id).skipped is True
        email_client.send.assert_not_called()


def test_case_status_unchanged_by_sends(db_session, executor, templates, make_case):
    case = make_case()
    executor.send(case.id, templates[0].id)
    db_session.refresh(case)
    assert case.status == FailedPaymentStatus.ACTIVE.value
