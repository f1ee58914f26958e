# freelance_music/api/v1/endpoints/recurring.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.recurring import (
    RecurringBookRequest,
    RecurringConfirmation,
    RecurringLessonPublic,
    RecurringSlotCreate,
)
from freelance_music.services import recurring_service

router = APIRouter(prefix="/recurring", tags=["recurring"])


@router.post(
    "/teachers/{teacher_id}/slots",
    response_model=RecurringLessonPublic,
    status_code=status.HTTP_201_CREATED,
)
def add_recurring_slot(teacher_id: int, obj_in: RecurringSlotCreate, db: Session = Depends(get_db)):
    return recurring_service.add_recurring_slot(db, teacher_id=teacher_id, obj_in=obj_in)


@router.delete("/teachers/{teacher_id}/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recurring_slot(teacher_id: int, slot_id: int, db: Session = Depends(get_db)):
    recurring_service.delete_recurring_slot(db, slot_id=slot_id, teacher_id=teacher_id)


@router.get("/available", response_model=List[RecurringLessonPublic])
def list_available_slots(
    instrument: Optional[str] = None,
    lesson_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return recurring_service.list_available_recurring_slots(
        db, instrument=instrument, lesson_type=lesson_type
    )


@router.get("/teacher/{teacher_id}", response_model=List[RecurringLessonPublic])
def list_teacher_recurring(teacher_id: int, db: Session = Depends(get_db)):
    return recurring_service.list_teacher_recurring_lessons(db, teacher_id=teacher_id)


@router.get("/student/{student_id}", response_model=List[RecurringLessonPublic])
def list_student_recurring(student_id: int, db: Session = Depends(get_db)):
    return recurring_service.list_student_recurring_lessons(db, student_id=student_id)


@router.post("/{slot_id}/book", response_model=RecurringLessonPublic)
def book_recurring_slot(slot_id: int, obj_in: RecurringBookRequest, db: Session = Depends(get_db)):
    return recurring_service.book_recurring_slot(db, slot_id=slot_id, obj_in=obj_in)


@router.post("/{recurring_id}/confirm", response_model=RecurringConfirmation)
def confirm_recurring_lesson(recurring_id: int, db: Session = Depends(get_db)):
    return recurring_service.confirm_recurring_lesson(
        db, recurring_id=recurring_id, as_of=date.today()
    )


@router.post("/{recurring_id}/pause", response_model=RecurringLessonPublic)
def pause_recurring_lesson(recurring_id: int, db: Session = Depends(get_db)):
    return recurring_service.pause_recurring_lesson(db, recurring_id=recurring_id)


@router.post("/{recurring_id}/resume", response_model=RecurringLessonPublic)
def resume_recurring_lesson(recurring_id: int, db: Session = Depends(get_db)):
    return recurring_service.resume_recurring_lesson(db, recurring_id=recurring_id)


@router.post("/{recurring_id}/cancel", response_model=RecurringLessonPublic)
def cancel_recurring_lesson(recurring_id: int, db: Session = Depends(get_db)):
    return recurring_service.cancel_recurring_lesson(db, recurring_id=recurring_id)
