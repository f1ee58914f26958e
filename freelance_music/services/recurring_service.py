# freelance_music/services/recurring_service.py
"""
Recurring lessons.

A teacher publishes a weekly slot (student_id NULL). A student claims it,
which fixes the cadence, the price and the first lesson date. Each
confirmation bills one occurrence and moves next_lesson_date forward.

Status: active <-> paused, and either -> cancelled (terminal).
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from freelance_music.core.exceptions import (
    InvalidStatusTransition,
    NotBooked,
    NoVerifiedPaymentMethod,
    OccurrenceAlreadyBilled,
    RecurringLessonNotActive,
    RecurringLessonNotDue,
    RecurringLessonNotFound,
    SlotAlreadyBooked,
    SlotNotFound,
    ValidationException,
)
from freelance_music.models.recurring_lesson import RecurringLesson
from freelance_music.models.student import Student
from freelance_music.schemas.recurring import (
    RecurringBookRequest,
    RecurringConfirmation,
    RecurringSlotCreate,
)
from freelance_music.services.payment_service import (
    generate_transaction_id,
    get_primary_payment_method,
    process_payment,
)
from freelance_music.services.pricing import compute_lesson_pricing
from freelance_music.services.profile_service import (
    get_student_or_404,
    get_teacher_or_404,
)

logger = logging.getLogger(__name__)

FREQUENCIES = ("weekly", "biweekly", "monthly")

_ALLOWED_TRANSITIONS = {
    "active": {"paused", "cancelled"},
    "paused": {"active", "cancelled"},
    "cancelled": set(),
}


def _add_months(current: date, months: int) -> date:
    month_index = current.month - 1 + months
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(current.day, last_day))


def next_occurrence(current: date, day_of_week: int, frequency: str) -> date:
    """
    Date of the occurrence after ``current``.

    weekly adds 7 days and biweekly 14. monthly moves to the same day of the
    next calendar month, clamped to the month's last day, so 2024-01-31
    becomes 2024-02-29 rather than spilling into March. ``day_of_week`` is
    checked but only the weekly cadences stay on it.
    """
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"day_of_week must be 0-6, got {day_of_week}")
    if frequency == "weekly":
        return current + timedelta(days=7)
    if frequency == "biweekly":
        return current + timedelta(days=14)
    if frequency == "monthly":
        return _add_months(current, 1)
    raise ValueError(f"unknown frequency: {frequency!r}")


def first_occurrence(start_date: date, day_of_week: int) -> date:
    """First date on or after ``start_date`` that falls on ``day_of_week``."""
    return start_date + timedelta(days=(day_of_week - start_date.weekday()) % 7)


def get_recurring_lesson(db: Session, recurring_id: int) -> Optional[RecurringLesson]:
    return db.get(RecurringLesson, recurring_id)


def _get_or_404(db: Session, recurring_id: int) -> RecurringLesson:
    recurring = get_recurring_lesson(db, recurring_id)
    if recurring is None:
        raise RecurringLessonNotFound(recurring_id)
    return recurring


def add_recurring_slot(
    db: Session,
    *,
    teacher_id: int,
    obj_in: RecurringSlotCreate,
) -> RecurringLesson:
    teacher = get_teacher_or_404(db, teacher_id)
    slot = RecurringLesson(
        teacher_id=teacher.id,
        student_id=None,
        instrument=obj_in.instrument,
        day_of_week=obj_in.day_of_week,
        start_time=obj_in.start_time,
        duration=obj_in.duration,
        lesson_type=obj_in.lesson_type,
        frequency="weekly",
        status="active",
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def book_recurring_slot(
    db: Session,
    *,
    slot_id: int,
    obj_in: RecurringBookRequest,
) -> RecurringLesson:
    """
    Claim an open recurring slot for a student.

    The claim is an UPDATE guarded by ``student_id IS NULL``; if another
    student got there first no row matches and SlotAlreadyBooked is raised.
    """
    if obj_in.frequency not in FREQUENCIES:
        raise ValidationException(
            f"Unsupported frequency: {obj_in.frequency}", code="INVALID_FREQUENCY"
        )

    slot = get_recurring_lesson(db, slot_id)
    if slot is None:
        raise SlotNotFound(slot_id)
    student = get_student_or_404(db, obj_in.student_id)
    teacher = get_teacher_or_404(db, slot.teacher_id)

    pricing = compute_lesson_pricing(slot.duration, teacher.hourly_rate)
    try:
        claimed = (
            db.query(RecurringLesson)
            .filter(
                RecurringLesson.id == slot_id,
                RecurringLesson.student_id.is_(None),
                RecurringLesson.status != "cancelled",
            )
            .update(
                {
                    RecurringLesson.student_id: student.id,
                    RecurringLesson.frequency: obj_in.frequency,
                    RecurringLesson.status: "active",
                    RecurringLesson.next_lesson_date: first_occurrence(
                        obj_in.start_date, slot.day_of_week
                    ),
                    RecurringLesson.total_cost: pricing.total_cost,
                    RecurringLesson.teacher_earnings: pricing.teacher_earnings,
                    RecurringLesson.platform_fee: pricing.platform_fee,
                    RecurringLesson.notes: obj_in.notes,
                },
                synchronize_session=False,
            )
        )
        if claimed == 0:
            db.refresh(slot)
            if slot.student_id is None and slot.status == "cancelled":
                raise RecurringLessonNotActive(slot_id, slot.status)
            logger.warning(f"Recurring slot {slot_id} already claimed")
            raise SlotAlreadyBooked(slot_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(slot)
    logger.info(
        f"Student {student.id} booked recurring slot {slot_id} "
        f"({slot.frequency}, first lesson {slot.next_lesson_date})"
    )
    return slot


def confirm_recurring_lesson(
    db: Session,
    *,
    recurring_id: int,
    payment_date: Optional[datetime] = None,
    as_of: Optional[date] = None,
) -> RecurringConfirmation:
    """
    Bill one occurrence and advance the schedule.

    Meant to be called once per elapsed occurrence by an outside scheduler,
    which passes ``as_of`` so that an occurrence still in the future is
    refused. The date is advanced with an UPDATE guarded on the date that was
    read, so two confirmations racing for the same occurrence bill it once;
    the loser gets OccurrenceAlreadyBilled.
    """
    recurring = _get_or_404(db, recurring_id)
    if recurring.student_id is None:
        raise NotBooked(recurring_id)
    if recurring.status != "active":
        raise RecurringLessonNotActive(recurring_id, recurring.status)

    billed_date = recurring.next_lesson_date
    if billed_date is None:
        raise NotBooked(recurring_id)
    if as_of is not None and billed_date > as_of:
        raise RecurringLessonNotDue(recurring_id, billed_date, as_of)

    student = db.get(Student, recurring.student_id)
    method = get_primary_payment_method(db, user_id=student.user_id)
    if method is None:
        raise NoVerifiedPaymentMethod(student.id)

    next_date = next_occurrence(billed_date, recurring.day_of_week, recurring.frequency)
    try:
        advanced = (
            db.query(RecurringLesson)
            .filter(
                RecurringLesson.id == recurring_id,
                RecurringLesson.status == "active",
                RecurringLesson.next_lesson_date == billed_date,
            )
            .update(
                {RecurringLesson.next_lesson_date: next_date},
                synchronize_session=False,
            )
        )
        if advanced == 0:
            logger.warning(
                f"Recurring lesson {recurring_id} occurrence {billed_date} "
                f"was confirmed concurrently; not charging again"
            )
            raise OccurrenceAlreadyBilled(recurring_id, billed_date)

        payment = process_payment(
            db,
            student_id=student.id,
            teacher_id=recurring.teacher_id,
            amount=recurring.total_cost,
            payment_method_id=method.id,
            recurring_lesson_id=recurring.id,
            transaction_id=generate_transaction_id("REC", str(recurring.id)),
            payment_date=payment_date or datetime.now(timezone.utc),
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(recurring)
    logger.info(
        f"Confirmed recurring lesson {recurring_id} for {billed_date}; "
        f"next lesson {recurring.next_lesson_date}"
    )
    return RecurringConfirmation(
        next_lesson_date=recurring.next_lesson_date,
        transaction_id=payment.transaction_id,
        amount_charged=payment.amount,
    )


def _transition(db: Session, recurring_id: int, target: str) -> RecurringLesson:
    recurring = _get_or_404(db, recurring_id)
    current = recurring.status
    if target not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransition(recurring_id, current, target)

    updated = (
        db.query(RecurringLesson)
        .filter(RecurringLesson.id == recurring_id, RecurringLesson.status == current)
        .update({RecurringLesson.status: target}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(recurring)
        raise InvalidStatusTransition(recurring_id, recurring.status, target)

    db.commit()
    db.refresh(recurring)
    logger.info(f"Recurring lesson {recurring_id}: {current} -> {target}")
    return recurring


def pause_recurring_lesson(db: Session, *, recurring_id: int) -> RecurringLesson:
    return _transition(db, recurring_id, "paused")


def resume_recurring_lesson(db: Session, *, recurring_id: int) -> RecurringLesson:
    return _transition(db, recurring_id, "active")


def cancel_recurring_lesson(db: Session, *, recurring_id: int) -> RecurringLesson:
    # student_id stays set; the record is kept for history
    return _transition(db, recurring_id, "cancelled")


def delete_recurring_slot(db: Session, *, slot_id: int, teacher_id: int) -> None:
    """Remove an unbooked slot. Booked series must be cancelled instead."""
    slot = get_recurring_lesson(db, slot_id)
    if slot is None or slot.teacher_id != teacher_id:
        raise SlotNotFound(slot_id)

    deleted = (
        db.query(RecurringLesson)
        .filter(
            RecurringLesson.id == slot_id,
            RecurringLesson.student_id.is_(None),
        )
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise SlotAlreadyBooked(slot_id)
    db.commit()
    db.expunge(slot)


def list_teacher_recurring_lessons(
    db: Session,
    *,
    teacher_id: int,
    include_cancelled: bool = False,
) -> List[RecurringLesson]:
    query = db.query(RecurringLesson).filter(RecurringLesson.teacher_id == teacher_id)
    if not include_cancelled:
        query = query.filter(RecurringLesson.status != "cancelled")
    return query.order_by(
        RecurringLesson.day_of_week.asc(), RecurringLesson.start_time.asc()
    ).all()


def list_student_recurring_lessons(
    db: Session,
    *,
    student_id: int,
    include_cancelled: bool = False,
) -> List[RecurringLesson]:
    query = db.query(RecurringLesson).filter(RecurringLesson.student_id == student_id)
    if not include_cancelled:
        query = query.filter(RecurringLesson.status != "cancelled")
    return query.order_by(RecurringLesson.next_lesson_date.asc()).all()


def list_available_recurring_slots(
    db: Session,
    *,
    instrument: Optional[str] = None,
    lesson_type: Optional[str] = None,
) -> List[RecurringLesson]:
    query = db.query(RecurringLesson).filter(
        RecurringLesson.student_id.is_(None),
        RecurringLesson.status == "active",
    )
    if instrument:
        query = query.filter(RecurringLesson.instrument.ilike(instrument))
    if lesson_type:
        query = query.filter(RecurringLesson.lesson_type == lesson_type)
    return query.order_by(
        RecurringLesson.day_of_week.asc(), RecurringLesson.start_time.asc()
    ).all()


def list_due_recurring_lessons(db: Session, *, as_of: Optional[date] = None) -> List[RecurringLesson]:
    """Booked, active series whose next lesson date has arrived."""
    as_of = as_of or date.today()
    return (
        db.query(RecurringLesson)
        .filter(
            RecurringLesson.student_id.isnot(None),
            RecurringLesson.status == "active",
            RecurringLesson.next_lesson_date <= as_of,
        )
        .order_by(RecurringLesson.next_lesson_date.asc(), RecurringLesson.id.asc())
        .all()
    )
