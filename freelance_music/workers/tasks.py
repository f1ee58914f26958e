"""
Billing tasks for the rq worker.

The services never schedule anything themselves. A cron entry runs
``dispatch_due_recurring_confirmations`` once a day; it enqueues one
``confirm_recurring_lesson_task`` per recurring lesson whose date has come.
"""

import logging
from datetime import date
from typing import Optional

from freelance_music.core.exceptions import DomainException
from freelance_music.db.session import SessionLocal
from freelance_music.services.recurring_service import (
    confirm_recurring_lesson,
    list_due_recurring_lessons,
)

logger = logging.getLogger(__name__)


def confirm_recurring_lesson_task(recurring_id: int, as_of: Optional[str] = None) -> dict:
    """
    Bill one occurrence of a recurring lesson that is due by ``as_of``
    (ISO date, defaults to today).

    Returns a summary dict; domain failures (no verified payment method,
    paused series, ...) are reported in the result rather than retried.
    """
    db = SessionLocal()
    try:
        logger.info(f"Confirming recurring lesson {recurring_id}")
        confirmation = confirm_recurring_lesson(
            db,
            recurring_id=recurring_id,
            as_of=date.fromisoformat(as_of) if as_of else date.today(),
        )
        logger.info(
            f"Recurring lesson {recurring_id} charged {confirmation.amount_charged} "
            f"({confirmation.transaction_id}); next lesson {confirmation.next_lesson_date}"
        )
        return {
            "status": "success",
            "recurring_id": recurring_id,
            "transaction_id": confirmation.transaction_id,
            "amount_charged": str(confirmation.amount_charged),
            "next_lesson_date": confirmation.next_lesson_date.isoformat(),
        }

    except DomainException as e:
        logger.warning(f"Could not confirm recurring lesson {recurring_id}: {e.message}")
        return {
            "status": "error",
            "recurring_id": recurring_id,
            "code": e.code,
            "error": e.message,
        }

    finally:
        db.close()


def dispatch_due_recurring_confirmations(as_of: Optional[date] = None) -> list[str]:
    """
    Enqueue a confirmation job for every recurring lesson due by ``as_of``.

    Jobs are keyed by series and lesson date, so running the dispatch twice
    for the same day does not queue a second charge.
    """
    from freelance_music.workers.queue import enqueue_recurring_confirmation

    db = SessionLocal()
    try:
        due = [
            (r.id, r.next_lesson_date) for r in list_due_recurring_lessons(db, as_of=as_of)
        ]
    finally:
        db.close()

    job_ids = []
    for recurring_id, lesson_date in due:
        job_id = enqueue_recurring_confirmation(recurring_id, lesson_date)
        if job_id is None:
            logger.info(f"Confirmation for recurring lesson {recurring_id} on {lesson_date} already queued")
            continue
        job_ids.append(job_id)
    logger.info(f"Enqueued {len(job_ids)} of {len(due)} due recurring confirmations")
    return job_ids
