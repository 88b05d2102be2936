"""arq worker: recurring scans and the retry and dunning jobs they fan out.

Process-wide resources (database, vault, gateway and email clients) are built
once in ``startup`` and read from the job context. Executors are synchronous
and run in a thread with their own session, so ``max_jobs`` bounds the number
of provider calls in flight.
"""

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any
from uuid import UUID

from arq import Retry, cron

from recoverhub.core.config import settings
from recoverhub.core.database import Database
from recoverhub.core.logging_config import configure_logging
from recoverhub.services.credential_vault import CredentialVault
from recoverhub.services.dunning_executor import DunningExecutor, DunningResult
from recoverhub.services.dunning_scheduler import DunningScheduler
from recoverhub.services.email_client import EmailClient
from recoverhub.services.errors import (
    EmailTransportError,
    GatewayTransportError,
    RecoveryError,
    RetryPreconditionError,
)
from recoverhub.services.payment_gateway import PaymentGateway, StripeGateway
from recoverhub.services.retry_executor import RetryExecutor, RetryResult
from recoverhub.services.retry_scheduler import RetryScheduler
from recoverhub.tasks import enqueue_dunning_email, enqueue_retry_attempt, redis_settings

logger = logging.getLogger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    configure_logging(settings.LOG_LEVEL)
    ctx["database"] = Database(settings.APP_DATABASE_DSN)
    ctx["vault"] = CredentialVault(settings.ENCRYPTION_KEY)
    ctx["gateway"] = StripeGateway()
    ctx["email_client"] = EmailClient(settings.RESEND_API_KEY, settings.RESEND_FROM_EMAIL)
    logger.info("Worker started (concurrency %d)", settings.WORKER_CONCURRENCY)


async def shutdown(ctx: dict[str, Any]) -> None:
    database = ctx.get("database")
    if database is not None:
        database.dispose()


def backoff_seconds(job_try: int, base: int) -> int:
    """Exponential backoff for job redelivery: base, 2*base, 4*base..."""
    return int(base * 2 ** (max(job_try, 1) - 1))


def _retry_or_give_up(ctx: dict[str, Any], exc: Exception, base: int, what: str) -> Retry:
    job_try = ctx.get("job_try", 1)
    if job_try >= settings.JOB_MAX_TRIES:
        logger.error("%s failed after %d tries, giving up: %s", what, job_try, exc)
        raise exc
    defer = backoff_seconds(job_try, base)
    logger.warning("%s hit a transport error (try %d), retrying in %ds: %s", what, job_try, defer, exc)
    return Retry(defer=defer)


# ===== Retry attempts =====


def run_retry_attempt(
    database: Database,
    vault: CredentialVault,
    gateway: PaymentGateway,
    case_id: UUID,
    attempt_id: UUID,
) -> RetryResult:
    db = database.session()
    try:
        return RetryExecutor(db, vault, gateway).execute(case_id, attempt_id)
    finally:
        db.close()


async def retry_scan_task(ctx: dict[str, Any]) -> int:
    """Background task: enqueue every retry attempt that is due.

    Runs every 6 hours and once at worker startup.
    """
    db = ctx["database"].session()
    try:
        due = RetryScheduler(db).find_due(batch_size=settings.SCAN_BATCH_SIZE)
        work = [(attempt.failed_payment_id, attempt.id) for attempt in due]
    finally:
        db.close()

    count = 0
    for case_id, attempt_id in work:
        if await enqueue_retry_attempt(ctx["redis"], case_id, attempt_id) is not None:
            count += 1
    logger.info("Retry scan: %d due, %d enqueued", len(work), count)
    return count


async def execute_retry_task(ctx: dict[str, Any], case_id: str, attempt_id: str) -> dict[str, Any]:
    """Background task: charge one due retry attempt."""
    what = f"Retry attempt {attempt_id} for case {case_id}"
    try:
        result = await asyncio.to_thread(
            run_retry_attempt,
            ctx["database"],
            ctx["vault"],
            ctx["gateway"],
            UUID(case_id),
            UUID(attempt_id),
        )
    except RetryPreconditionError as exc:
        logger.error("%s cannot run: %s", what, exc)
        raise
    except GatewayTransportError as exc:
        raise _retry_or_give_up(ctx, exc, settings.RETRY_JOB_BACKOFF_SECONDS, what) from exc

    return asdict(result)


# ===== Dunning emails =====


def run_dunning_send(
    database: Database,
    email_client: EmailClient,
    case_id: UUID,
    template_id: UUID,
) -> DunningResult:
    db = database.session()
    try:
        return DunningExecutor(db, email_client, settings.APP_URL).send(case_id, template_id)
    finally:
        db.close()


async def dunning_scan_task(ctx: dict[str, Any]) -> int:
    """Background task: enqueue the next due dunning email per active case.

    Runs hourly.
    """
    db = ctx["database"].session()
    try:
        due = DunningScheduler(db).find_due(batch_size=settings.SCAN_BATCH_SIZE)
        work = [(item.case.id, item.template.id, int(item.template.sequence_order)) for item in due]
    finally:
        db.close()

    count = 0
    for case_id, template_id, sequence_order in work:
        job = await enqueue_dunning_email(ctx["redis"], case_id, template_id, sequence_order)
        if job is not None:
            count += 1
    logger.info("Dunning scan: %d due, %d enqueued", len(work), count)
    return count


async def send_dunning_email_task(
    ctx: dict[str, Any],
    case_id: str,
    template_id: str,
) -> dict[str, Any]:
    """Background task: send one dunning email and queue the following step."""
    what = f"Dunning email for case {case_id} (template {template_id})"
    try:
        result = await asyncio.to_thread(
            run_dunning_send,
            ctx["database"],
            ctx["email_client"],
            UUID(case_id),
            UUID(template_id),
        )
    except EmailTransportError as exc:
        raise _retry_or_give_up(ctx, exc, settings.DUNNING_JOB_BACKOFF_SECONDS, what) from exc
    except RecoveryError as exc:
        logger.error("%s cannot run: %s", what, exc)
        raise

    next_send_at: datetime | None = None
    if result.next_step is not None:
        step = result.next_step
        next_send_at = step.send_at
        await enqueue_dunning_email(
            ctx["redis"],
            step.case_id,
            step.template_id,
            step.sequence_order,
            defer_until=step.send_at,
        )

    return {
        "success": result.success,
        "skipped": result.skipped,
        "message_id": result.message_id,
        "error": result.error,
        "next_send_at": next_send_at.isoformat() if next_send_at else None,
    }


class WorkerSettings:
    functions = [
        execute_retry_task,
        send_dunning_email_task,
        retry_scan_task,
        dunning_scan_task,
    ]
    cron_jobs = [
        cron(
            retry_scan_task,
            hour={0, 6, 12, 18},
            minute={0},
            run_at_startup=True,
            unique=True,
        ),  # every 6 hours
        cron(dunning_scan_task, minute={0}, unique=True),  # hourly
    ]
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = settings.WORKER_CONCURRENCY
    max_tries = settings.JOB_MAX_TRIES
    redis_settings = redis_settings
