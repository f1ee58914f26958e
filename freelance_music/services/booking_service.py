# freelance_music/services/booking_service.py
"""
Single-lesson booking.

A booking consumes an availability slot. The slot delete and the lesson
insert share one transaction, and the delete is checked by affected rows so
two students racing for the same slot cannot both win.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from freelance_music.core.exceptions import (
    LessonNotCancellable,
    LessonNotFound,
    SlotUnavailable,
)
from freelance_music.models.availability import AvailabilitySlot
from freelance_music.models.lesson import Lesson
from freelance_music.models.teacher import Teacher
from freelance_music.schemas.lesson import LessonBookRequest
from freelance_music.services.pricing import compute_lesson_pricing
from freelance_music.services.profile_service import (
    get_student_or_404,
    get_teacher_or_404,
)

logger = logging.getLogger(__name__)


def _find_matching_slot(db: Session, obj_in: LessonBookRequest) -> Optional[AvailabilitySlot]:
    return (
        db.query(AvailabilitySlot)
        .filter(
            AvailabilitySlot.teacher_id == obj_in.teacher_id,
            AvailabilitySlot.date == obj_in.date,
            AvailabilitySlot.start_time == obj_in.time,
            AvailabilitySlot.lesson_type == obj_in.lesson_type,
        )
        .first()
    )


def book_lesson(db: Session, *, obj_in: LessonBookRequest) -> Lesson:
    """
    Claim the matching availability slot and create an upcoming lesson.

    Raises TeacherNotFound / StudentNotFound when either party is missing and
    SlotUnavailable when there is no slot or another booking took it first.
    Nothing is written unless every step succeeds.
    """
    try:
        teacher = get_teacher_or_404(db, obj_in.teacher_id)
        student = get_student_or_404(db, obj_in.student_id)

        slot = _find_matching_slot(db, obj_in)
        if slot is None:
            raise SlotUnavailable(
                details={
                    "teacher_id": obj_in.teacher_id,
                    "date": obj_in.date.isoformat(),
                    "time": obj_in.time.isoformat(),
                    "lesson_type": obj_in.lesson_type,
                }
            )

        deleted = (
            db.query(AvailabilitySlot)
            .filter(AvailabilitySlot.id == slot.id)
            .delete(synchronize_session=False)
        )
        if deleted == 0:
            logger.warning(
                f"Slot {slot.id} was claimed concurrently; rejecting booking "
                f"for student {student.id}"
            )
            raise SlotUnavailable(
                "This time slot was just booked by someone else",
                details={"slot_id": slot.id},
            )

        pricing = compute_lesson_pricing(obj_in.duration, teacher.hourly_rate)
        lesson = Lesson(
            teacher_id=teacher.id,
            student_id=student.id,
            instrument=obj_in.instrument,
            date=obj_in.date,
            time=obj_in.time,
            duration=obj_in.duration,
            lesson_type=obj_in.lesson_type,
            status="upcoming",
            total_cost=pricing.total_cost,
            teacher_earnings=pricing.teacher_earnings,
            platform_fee=pricing.platform_fee,
            notes=obj_in.notes,
            sheet_music_urls=list(obj_in.sheet_music_urls),
        )
        db.add(lesson)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(lesson)
    logger.info(
        f"Booked lesson {lesson.id}: teacher={lesson.teacher_id} "
        f"student={lesson.student_id} total={lesson.total_cost}"
    )
    return lesson


def get_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
    return db.get(Lesson, lesson_id)


def cancel_lesson(db: Session, *, lesson_id: int) -> Lesson:
    """
    upcoming -> cancelled. The consumed availability slot is not restored.
    """
    lesson = get_lesson(db, lesson_id)
    if lesson is None:
        raise LessonNotFound(lesson_id)

    updated = (
        db.query(Lesson)
        .filter(Lesson.id == lesson_id, Lesson.status == "upcoming")
        .update({Lesson.status: "cancelled"}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(lesson)
        raise LessonNotCancellable(lesson_id, lesson.status)

    db.commit()
    db.refresh(lesson)
    logger.info(f"Cancelled lesson {lesson_id}")
    return lesson


def get_available_lessons(
    db: Session,
    *,
    instrument: Optional[str] = None,
    lesson_type: Optional[str] = None,
    today: Optional[date] = None,
) -> List[AvailabilitySlot]:
    """
    Open slots from today on, optionally narrowed by instrument and type.
    """
    today = today or date.today()
    query = (
        db.query(AvailabilitySlot)
        .join(Teacher, AvailabilitySlot.teacher_id == Teacher.id)
        .filter(AvailabilitySlot.date >= today)
    )
    if lesson_type:
        query = query.filter(AvailabilitySlot.lesson_type == lesson_type)

    slots = query.order_by(
        AvailabilitySlot.date.asc(),
        AvailabilitySlot.start_time.asc(),
    ).all()

    if not instrument:
        return slots

    wanted = instrument.strip().lower()
    # instruments live in JSON columns; filtering here keeps it dialect-neutral
    return [
        slot
        for slot in slots
        if wanted in {i.lower() for i in (slot.instruments or [])}
        or (not slot.instruments and slot.teacher.teaches(instrument))
    ]


def _list_lessons(
    db: Session,
    *filters,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Lesson]:
    query = db.query(Lesson).filter(*filters)
    if status:
        query = query.filter(Lesson.status == status)
    return (
        query.order_by(Lesson.date.desc(), Lesson.time.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_teacher_lessons(
    db: Session,
    *,
    teacher_id: int,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Lesson]:
    return _list_lessons(
        db, Lesson.teacher_id == teacher_id, status=status, skip=skip, limit=limit
    )


def get_student_lessons(
    db: Session,
    *,
    student_id: int,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Lesson]:
    return _list_lessons(
        db, Lesson.student_id == student_id, status=status, skip=skip, limit=limit
    )
