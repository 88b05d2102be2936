"""Tests for picking due dunning steps."""

from datetime import timedelta

from recoverhub.models.dunning_email import DunningEmailStatus
from recoverhub.models.failed_payment import FailedPaymentStatus
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.services.dunning_scheduler import DunningScheduler, dunning_job_id, template_due_at


def _record(db_session, case, template, status=DunningEmailStatus.SENT):
    record = DunningEmailRepository(db_session).create_pending(
        case_id=case.id,
        template_id=template.id,
        email_to=case.customer_email,
        email_subject="subject",
    )
    record.status = status.value
    db_session.commit()
    return record


class TestFindDue:
    def test_nothing_due_before_first_delay(self, db_session, templates, make_case, now):
        make_case()
        assert DunningScheduler(db_session).find_due(now=now + timedelta(hours=23)) == []

    def test_first_step_due_after_delay(self, db_session, templates, make_case, now):
        case = make_case()
        due = DunningScheduler(db_session).find_due(now=now + timedelta(days=1))

        assert len(due) == 1
        assert due[0].case.id == case.id
        assert due[0].template.sequence_order == 1
        assert due[0].job_id == f"dunning:{case.id}:seq1"

    def test_one_step_per_case_per_scan(self, db_session, templates, make_case, now):
        make_case()
        due = DunningScheduler(db_session).find_due(now=now + timedelta(days=30))
        assert [d.template.sequence_order for d in due] == [1]

    def test_skips_attempted_steps(self, db_session, templates, make_case, now):
        case = make_case()
        _record(db_session, case, templates[0])
        _record(db_session, case, templates[1], status=DunningEmailStatus.FAILED)

        due = DunningScheduler(db_session).find_due(now=now + timedelta(days=13))
        assert [d.template.sequence_order for d in due] == [3]

    def test_never_sends_early(self, db_session, templates, make_case, now):
        case = make_case()
        _record(db_session, case, templates[0])

        assert DunningScheduler(db_session).find_due(now=now + timedelta(days=4)) == []

    def test_ignores_inactive_and_contactless_cases(self, db_session, templates, make_case, now):
        make_case(status=FailedPaymentStatus.PAUSED.value)
        make_case(customer_email=None)
        assert DunningScheduler(db_session).find_due(now=now + timedelta(days=2)) == []

    def test_ignores_inactive_templates(self, db_session, templates, make_case, now):
        templates[0].is_active = False
        db_session.commit()
        make_case()

        due = DunningScheduler(db_session).find_due(now=now + timedelta(days=6))
        assert [d.template.sequence_order for d in due] == [2]

    def test_batch_size(self, db_session, templates, make_case, now):
        for _ in range(3):
            make_case()
        assert len(DunningScheduler(db_session).find_due(batch_size=2, now=now + timedelta(days=2))) == 2

    def test_merchant_without_templates(self, db_session, make_case, now):
        make_case()
        assert DunningScheduler(db_session).find_due(now=now + timedelta(days=30)) == []


class TestScheduleNext:
    def test_next_step(self, db_session, templates, make_case, now):
        case = make_case()
        step = DunningScheduler(db_session).schedule_next(case, 1)

        assert step.template_id == templates[1].id
        assert step.sequence_order == 2
        assert step.send_at == now + timedelta(days=5)
        assert step.job_id == dunning_job_id(case.id, 2)

    def test_sequence_complete(self, db_session, templates, make_case):
        case = make_case()
        assert DunningScheduler(db_session).schedule_next(case, 3) is None

    def test_inactive_case(self, db_session, templates, make_case):
        case = make_case(status=FailedPaymentStatus.RECOVERED.value)
        assert DunningScheduler(db_session).schedule_next(case, 1) is None


def test_due_time_anchored_on_case_creation(templates, make_case, now):
    case = make_case()
    assert template_due_at(case, templates[2]) == now + timedelta(days=12)
