# freelance_music/api/v1/endpoints/profiles.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.user import (
    StudentPublic,
    StudentUpdate,
    TeacherPublic,
    TeacherUpdate,
)
from freelance_music.services import profile_service

router = APIRouter(tags=["profiles"])


@router.get("/teachers/{teacher_id}", response_model=TeacherPublic)
def read_teacher(teacher_id: int, db: Session = Depends(get_db)):
    return profile_service.get_teacher_or_404(db, teacher_id)


@router.put("/teachers/{teacher_id}", response_model=TeacherPublic)
def update_teacher(teacher_id: int, obj_in: TeacherUpdate, db: Session = Depends(get_db)):
    return profile_service.update_teacher(db, teacher_id=teacher_id, obj_in=obj_in)


@router.get("/students/{student_id}", response_model=StudentPublic)
def read_student(student_id: int, db: Session = Depends(get_db)):
    return profile_service.get_student_or_404(db, student_id)


@router.put("/students/{student_id}", response_model=StudentPublic)
def update_student(student_id: int, obj_in: StudentUpdate, db: Session = Depends(get_db)):
    return profile_service.update_student(db, student_id=student_id, obj_in=obj_in)
