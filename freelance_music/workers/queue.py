# freelance_music/workers/queue.py
"""Redis connection and rq queues for background billing."""

from datetime import date
from typing import Any, Callable, Optional

from redis import Redis
from rq import Queue

from freelance_music.core.config import settings

_DEFAULT_QUEUE_NAME = "default"

# keep confirmation results around for a day so failed charges can be inspected
_BILLING_RESULT_TTL = 24 * 60 * 60
_BILLING_JOB_TIMEOUT = 60

_redis_conn: Redis | None = None


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        _redis_conn = Redis.from_url(settings.REDIS_URL)
    return _redis_conn


def get_queue(name: str = _DEFAULT_QUEUE_NAME) -> Queue:
    return Queue(name, connection=get_redis_connection())


def enqueue_job(
    func: Callable[..., Any],
    *args: Any,
    queue_name: str = _DEFAULT_QUEUE_NAME,
    **kwargs: Any,
) -> str:
    job = get_queue(queue_name).enqueue(func, *args, **kwargs)
    return job.id


def recurring_confirmation_job_id(recurring_id: int, lesson_date: date) -> str:
    return f"recurring-confirm-{recurring_id}-{lesson_date.isoformat()}"


def enqueue_recurring_confirmation(recurring_id: int, lesson_date: date) -> Optional[str]:
    """
    Queue billing for one occurrence. Returns None when a job for that
    occurrence is already known to the queue.
    """
    from freelance_music.workers.tasks import confirm_recurring_lesson_task

    job_id = recurring_confirmation_job_id(recurring_id, lesson_date)
    if get_queue(settings.BILLING_QUEUE_NAME).fetch_job(job_id) is not None:
        return None

    return enqueue_job(
        confirm_recurring_lesson_task,
        recurring_id,
        queue_name=settings.BILLING_QUEUE_NAME,
        job_id=job_id,
        job_timeout=_BILLING_JOB_TIMEOUT,
        result_ttl=_BILLING_RESULT_TTL,
        description=f"confirm recurring lesson {recurring_id}",
    )
