# freelance_music/services/profile_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from freelance_music.core.exceptions import (
    EmailAlreadyRegistered,
    StudentNotFound,
    TeacherNotFound,
    ValidationException,
)
from freelance_music.core.security import get_password_hash, verify_password
from freelance_music.models.student import Student
from freelance_music.models.teacher import Teacher
from freelance_music.models.user import User
from freelance_music.schemas.user import (
    StudentSignup,
    StudentUpdate,
    TeacherSignup,
    TeacherUpdate,
    UserCreate,
)

logger = logging.getLogger(__name__)

_ACCOUNT_FIELDS = ("name", "email", "phone", "location")

# columns that cannot be cleared through a partial update
_REQUIRED_ACCOUNT_FIELDS = ("name", "email")
_REQUIRED_TEACHER_FIELDS = ("instruments", "hourly_rate", "virtual_available", "in_person_available")


def _reject_nulls(update_data: dict, required: tuple) -> None:
    for field in required:
        if field in update_data and update_data[field] is None:
            raise ValidationException(
                f"{field} cannot be null",
                code="NULL_NOT_ALLOWED",
                details={"field": field},
            )


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def _new_user(db: Session, obj_in: UserCreate) -> User:
    if get_user_by_email(db, obj_in.email) is not None:
        raise EmailAlreadyRegistered(obj_in.email)

    user = User(
        name=obj_in.name,
        email=obj_in.email,
        password_hash=get_password_hash(obj_in.password),
        phone=obj_in.phone,
        location=obj_in.location,
        role=obj_in.role,
    )
    db.add(user)
    db.flush()
    return user


def create_user(db: Session, *, obj_in: UserCreate) -> User:
    try:
        user = _new_user(db, obj_in)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def list_users(db: Session, *, skip: int = 0, limit: int = 100) -> List[User]:
    return (
        db.query(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


# Teachers


def create_teacher(db: Session, *, obj_in: TeacherSignup) -> Teacher:
    """
    Sign up a teacher: user row and teacher profile in one transaction.
    """
    try:
        user = _new_user(
            db,
            UserCreate(
                **obj_in.model_dump(include=set(_ACCOUNT_FIELDS) | {"password"}),
                role="teacher",
            ),
        )
        teacher = Teacher(
            user_id=user.id,
            bio=obj_in.bio,
            instruments=list(obj_in.instruments),
            hourly_rate=obj_in.hourly_rate,
            virtual_available=obj_in.virtual_available,
            in_person_available=obj_in.in_person_available,
        )
        db.add(teacher)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(teacher)
    logger.info(f"Created teacher {teacher.id} for user {user.id}")
    return teacher


def get_teacher(db: Session, teacher_id: int) -> Optional[Teacher]:
    return db.get(Teacher, teacher_id)


def get_teacher_or_404(db: Session, teacher_id: int) -> Teacher:
    teacher = get_teacher(db, teacher_id)
    if teacher is None:
        raise TeacherNotFound(teacher_id)
    return teacher


def get_teacher_by_user_id(db: Session, user_id: int) -> Optional[Teacher]:
    return db.query(Teacher).filter(Teacher.user_id == user_id).first()


def update_teacher(db: Session, *, teacher_id: int, obj_in: TeacherUpdate) -> Teacher:
    teacher = get_teacher_or_404(db, teacher_id)
    update_data = obj_in.model_dump(exclude_unset=True)
    _reject_nulls(update_data, _REQUIRED_TEACHER_FIELDS)

    try:
        for field, value in update_data.items():
            setattr(teacher, field, value)
        db.add(teacher)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(teacher)
    return teacher


# Students


def create_student(db: Session, *, obj_in: StudentSignup) -> Student:
    try:
        user = _new_user(
            db,
            UserCreate(
                **obj_in.model_dump(include=set(_ACCOUNT_FIELDS) | {"password"}),
                role="student",
            ),
        )
        student = Student(
            user_id=user.id,
            primary_instrument=obj_in.primary_instrument,
            skill_level=obj_in.skill_level,
            learning_goals=obj_in.learning_goals,
            referral_source=obj_in.referral_source,
        )
        db.add(student)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(student)
    logger.info(f"Created student {student.id} for user {user.id}")
    return student


def get_student(db: Session, student_id: int) -> Optional[Student]:
    return db.get(Student, student_id)


def get_student_or_404(db: Session, student_id: int) -> Student:
    student = get_student(db, student_id)
    if student is None:
        raise StudentNotFound(student_id)
    return student


def get_student_by_user_id(db: Session, user_id: int) -> Optional[Student]:
    return db.query(Student).filter(Student.user_id == user_id).first()


def update_student(db: Session, *, student_id: int, obj_in: StudentUpdate) -> Student:
    """
    Update the student's account fields and profile together.
    """
    student = get_student_or_404(db, student_id)
    update_data = obj_in.model_dump(exclude_unset=True)
    _reject_nulls(update_data, _REQUIRED_ACCOUNT_FIELDS)

    new_email = update_data.get("email")
    if new_email and new_email != student.user.email:
        if get_user_by_email(db, new_email) is not None:
            raise EmailAlreadyRegistered(new_email)

    try:
        for field, value in update_data.items():
            target = student.user if field in _ACCOUNT_FIELDS else student
            setattr(target, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(student)
    return student
