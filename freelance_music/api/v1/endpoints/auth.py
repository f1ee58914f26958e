# freelance_music/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.auth import LoginRequest, SignupResponse
from freelance_music.schemas.user import StudentSignup, TeacherSignup, UserPublic
from freelance_music.services import profile_service

router = APIRouter()


@router.post("/signup/teacher", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup_teacher(payload: TeacherSignup, db: Session = Depends(get_db)):
    teacher = profile_service.create_teacher(db, obj_in=payload)
    return SignupResponse(user_id=teacher.user_id, teacher_id=teacher.id)


@router.post("/signup/student", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup_student(payload: StudentSignup, db: Session = Depends(get_db)):
    student = profile_service.create_student(db, obj_in=payload)
    return SignupResponse(user_id=student.user_id, student_id=student.id)


@router.post("/signin", response_model=UserPublic)
def signin(payload: LoginRequest, db: Session = Depends(get_db)):
    user = profile_service.authenticate_user(db, payload.email, payload.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )
    return user
