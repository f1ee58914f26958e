# freelance_music/services/availability_service.py
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from freelance_music.core.exceptions import SlotNotFound, ValidationException
from freelance_music.models.availability import AvailabilitySlot
from freelance_music.schemas.lesson import AvailabilityCreate
from freelance_music.services.profile_service import get_teacher_or_404


def add_availability(
    db: Session,
    *,
    teacher_id: int,
    obj_in: AvailabilityCreate,
) -> AvailabilitySlot:
    teacher = get_teacher_or_404(db, teacher_id)
    if obj_in.end_time <= obj_in.start_time:
        raise ValidationException(
            "end_time must be after start_time",
            code="INVALID_TIME_RANGE",
        )

    slot = AvailabilitySlot(
        teacher_id=teacher.id,
        date=obj_in.date,
        start_time=obj_in.start_time,
        end_time=obj_in.end_time,
        lesson_type=obj_in.lesson_type,
        # a slot with no instruments listed offers everything the teacher teaches
        instruments=list(obj_in.instruments or teacher.instruments or []),
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def get_teacher_availability(
    db: Session,
    *,
    teacher_id: int,
    today: Optional[date] = None,
) -> List[AvailabilitySlot]:
    today = today or date.today()
    return (
        db.query(AvailabilitySlot)
        .filter(
            AvailabilitySlot.teacher_id == teacher_id,
            AvailabilitySlot.date >= today,
        )
        .order_by(AvailabilitySlot.date.asc(), AvailabilitySlot.start_time.asc())
        .all()
    )


def delete_availability(db: Session, *, slot_id: int, teacher_id: int) -> None:
    deleted = (
        db.query(AvailabilitySlot)
        .filter(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.teacher_id == teacher_id,
        )
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise SlotNotFound(slot_id)
    db.commit()
