"""Tests for enqueueing background jobs."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from recoverhub.tasks import (
    enqueue_dunning_email,
    enqueue_retry_attempt,
    enqueue_task,
    get_redis_pool,
    redis_settings,
    retry_job_id,
)


@pytest.mark.asyncio
async def test_get_redis_pool():
    pool = MagicMock()
    with patch("recoverhub.tasks.create_pool", new_callable=AsyncMock, return_value=pool) as create:
        assert await get_redis_pool() is pool
    create.assert_awaited_once_with(redis_settings)


@pytest.mark.asyncio
async def test_enqueue_task_passes_arguments(redis):
    job = await enqueue_task(redis, "some_task", "a", 1, _job_id="abc")

    assert job.job_id == "abc"
    redis.enqueue_job.assert_awaited_once_with("some_task", "a", 1, _job_id="abc")


@pytest.mark.asyncio
async def test_enqueue_task_duplicate_returns_none(redis):
    redis.enqueue_job.side_effect = None
    redis.enqueue_job.return_value = None

    assert await enqueue_task(redis, "some_task", _job_id="abc") is None


@pytest.mark.asyncio
async def test_enqueue_retry_attempt(redis):
    case_id, attempt_id = uuid4(), uuid4()

    job = await enqueue_retry_attempt(redis, case_id, attempt_id)

    assert job.job_id == retry_job_id(case_id, attempt_id) == f"retry:{case_id}:{attempt_id}"
    redis.enqueue_job.assert_awaited_once_with(
        "execute_retry_task", str(case_id), str(attempt_id), _job_id=job.job_id
    )


@pytest.mark.asyncio
async def test_enqueue_dunning_email_deferred(redis):
    case_id, template_id = uuid4(), uuid4()
    send_at = datetime(2026, 3, 6, 12, 0, tzinfo=UTC)

    job = await enqueue_dunning_email(redis, case_id, template_id, 2, defer_until=send_at)

    assert job.job_id == f"dunning:{case_id}:seq2"
    redis.enqueue_job.assert_awaited_once_with(
        "send_dunning_email_task",
        str(case_id),
        str(template_id),
        _job_id=f"dunning:{case_id}:seq2",
        _defer_until=send_at,
    )
