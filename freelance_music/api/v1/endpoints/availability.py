# freelance_music/api/v1/endpoints/availability.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.lesson import AvailabilityCreate, AvailabilityPublic
from freelance_music.services import availability_service

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post(
    "/teachers/{teacher_id}",
    response_model=AvailabilityPublic,
    status_code=status.HTTP_201_CREATED,
)
def add_availability(teacher_id: int, obj_in: AvailabilityCreate, db: Session = Depends(get_db)):
    return availability_service.add_availability(db, teacher_id=teacher_id, obj_in=obj_in)


@router.get("/teachers/{teacher_id}", response_model=List[AvailabilityPublic])
def list_availability(teacher_id: int, db: Session = Depends(get_db)):
    return availability_service.get_teacher_availability(db, teacher_id=teacher_id)


@router.delete("/teachers/{teacher_id}/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(teacher_id: int, slot_id: int, db: Session = Depends(get_db)):
    availability_service.delete_availability(db, slot_id=slot_id, teacher_id=teacher_id)
