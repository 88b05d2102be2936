import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from recoverhub.core.config import settings
from recoverhub.services.dunning_scheduler import dunning_job_id

logger = logging.getLogger(__name__)

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Create the Redis pool for arq. Call once per process and pass it down."""
    return await create_pool(redis_settings)


def retry_job_id(case_id: UUID | str, attempt_id: UUID | str) -> str:
    return f"retry:{case_id}:{attempt_id}"


async def enqueue_task(
    redis: ArqRedis,
    task_name: str,
    *args: Any,
    **kwargs: Any,
) -> Job | None:
    """
    Enqueue a task to the arq worker.

    Args:
        redis: Pool created by get_redis_pool
        task_name: Name of the task function
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task, including arq's
            ``_job_id`` and ``_defer_until``

    Returns:
        Job object from arq, or None if a job with the same id already exists
    """
    job = await redis.enqueue_job(task_name, *args, **kwargs)
    if job is None:
        logger.debug("Job %s already queued", kwargs.get("_job_id"))
    return job


async def enqueue_retry_attempt(
    redis: ArqRedis,
    case_id: UUID | str,
    attempt_id: UUID | str,
) -> Job | None:
    """Enqueue one retry attempt for immediate execution."""
    return await enqueue_task(
        redis,
        "execute_retry_task",
        str(case_id),
        str(attempt_id),
        _job_id=retry_job_id(case_id, attempt_id),
    )


async def enqueue_dunning_email(
    redis: ArqRedis,
    case_id: UUID | str,
    template_id: UUID | str,
    sequence_order: int,
    defer_until: datetime | None = None,
) -> Job | None:
    """Enqueue a dunning send, deferred until its due time when given."""
    return await enqueue_task(
        redis,
        "send_dunning_email_task",
        str(case_id),
        str(template_id),
        _job_id=dunning_job_id(UUID(str(case_id)), sequence_order),
        _defer_until=defer_until,
    )
