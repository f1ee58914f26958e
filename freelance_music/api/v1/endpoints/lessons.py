# freelance_music/api/v1/endpoints/lessons.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.lesson import (
    AvailabilityPublic,
    LessonBookRequest,
    LessonBooked,
    LessonCompleteRequest,
    LessonPublic,
)
from freelance_music.schemas.payment import PaymentPublic
from freelance_music.services import booking_service, payment_service

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("/available", response_model=List[AvailabilityPublic])
def list_available_lessons(
    instrument: Optional[str] = None,
    lesson_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return booking_service.get_available_lessons(
        db, instrument=instrument, lesson_type=lesson_type
    )


@router.post("/book", response_model=LessonBooked, status_code=status.HTTP_201_CREATED)
def book_lesson(obj_in: LessonBookRequest, db: Session = Depends(get_db)):
    lesson = booking_service.book_lesson(db, obj_in=obj_in)
    return LessonBooked(lesson_id=lesson.id)


@router.post("/{lesson_id}/cancel", response_model=LessonPublic)
def cancel_lesson(lesson_id: int, db: Session = Depends(get_db)):
    return booking_service.cancel_lesson(db, lesson_id=lesson_id)


@router.post("/{lesson_id}/complete", response_model=PaymentPublic)
def complete_lesson(lesson_id: int, obj_in: LessonCompleteRequest, db: Session = Depends(get_db)):
    """
    Teacher marks the lesson done; the student's primary card is charged.
    """
    return payment_service.complete_lesson(
        db,
        lesson_id=lesson_id,
        teacher_id=obj_in.teacher_id,
        completion_notes=obj_in.completion_notes,
        student_rating=obj_in.student_rating,
        teacher_rating=obj_in.teacher_rating,
    )


@router.get("/teacher/{teacher_id}", response_model=List[LessonPublic])
def list_teacher_lessons(
    teacher_id: int,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return booking_service.get_teacher_lessons(
        db, teacher_id=teacher_id, status=status, skip=skip, limit=limit
    )


@router.get("/student/{student_id}", response_model=List[LessonPublic])
def list_student_lessons(
    student_id: int,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return booking_service.get_student_lessons(
        db, student_id=student_id, status=status, skip=skip, limit=limit
    )
