# freelance_music/api/v1/endpoints/payments.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.payment import (
    PaymentMethodCreate,
    PaymentMethodPublic,
    PaymentPublic,
    ValidationResult,
)
from freelance_music.services import payment_service
from freelance_music.services.payment_validation import validate_payment_method

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/methods/validate", response_model=ValidationResult)
def validate_method(obj_in: PaymentMethodCreate):
    return validate_payment_method(obj_in)


@router.post(
    "/methods/{user_id}",
    response_model=PaymentMethodPublic,
    status_code=status.HTTP_201_CREATED,
)
def add_payment_method(user_id: int, obj_in: PaymentMethodCreate, db: Session = Depends(get_db)):
    return payment_service.add_payment_method(db, user_id=user_id, obj_in=obj_in)


@router.get("/methods/{user_id}", response_model=List[PaymentMethodPublic])
def list_payment_methods(user_id: int, db: Session = Depends(get_db)):
    return payment_service.list_payment_methods(db, user_id=user_id)


@router.post("/methods/{payment_method_id}/verify", response_model=PaymentMethodPublic)
def verify_payment_method(payment_method_id: int, db: Session = Depends(get_db)):
    return payment_service.verify_payment_method(db, payment_method_id=payment_method_id)


@router.get("/teacher/{teacher_id}", response_model=List[PaymentPublic])
def list_teacher_payments(teacher_id: int, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return payment_service.get_teacher_payments(db, teacher_id=teacher_id, skip=skip, limit=limit)


@router.get("/student/{student_id}", response_model=List[PaymentPublic])
def list_student_payments(student_id: int, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return payment_service.get_student_payments(db, student_id=student_id, skip=skip, limit=limit)
