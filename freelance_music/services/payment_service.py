# freelance_music/services/payment_service.py
"""
Payment ledger: lesson completion, payment records and payment methods.

Payment rows are append-only. Revenue figures only count payments whose
status is 'completed'.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from freelance_music.core.exceptions import (
    AlreadyCompleted,
    LessonNotCompletable,
    LessonNotFound,
    NoPaymentMethod,
    PaymentMethodNotFound,
    ValidationException,
)
from freelance_music.models.lesson import Lesson
from freelance_music.models.payment import Payment
from freelance_music.models.payment_method import PaymentMethod
from freelance_music.models.student import Student
from freelance_music.schemas.payment import PaymentMethodCreate, RevenueSummary
from freelance_music.services.payment_validation import (
    detect_card_brand,
    normalize_number,
    validate_payment_method,
)
from freelance_music.services.pricing import split_amount, to_money

logger = logging.getLogger(__name__)


def generate_transaction_id(prefix: str = "TXN", suffix: Optional[str] = None) -> str:
    """
    ``<prefix>_<epoch-ms>_<suffix>``; a random suffix is used when none is given.
    """
    epoch_ms = int(time.time() * 1000)
    suffix = suffix if suffix is not None else uuid.uuid4().hex[:12]
    return f"{prefix}_{epoch_ms}_{suffix}"


# Payment methods


def add_payment_method(
    db: Session,
    *,
    user_id: int,
    obj_in: PaymentMethodCreate,
) -> PaymentMethod:
    """
    Validate and store a card or bank account. Only masked digits are kept.
    """
    result = validate_payment_method(obj_in)
    if not result.valid:
        raise ValidationException(result.error, code="INVALID_PAYMENT_METHOD")

    if obj_in.method_type == "credit_card":
        card_number = normalize_number(obj_in.card_number)
        method = PaymentMethod(
            user_id=user_id,
            method_type="credit_card",
            card_brand=detect_card_brand(card_number),
            card_last_four=card_number[-4:],
            card_exp_month=obj_in.card_exp_month,
            card_exp_year=obj_in.card_exp_year,
            cardholder_name=obj_in.cardholder_name,
            is_primary=obj_in.is_primary,
        )
    else:
        method = PaymentMethod(
            user_id=user_id,
            method_type="bank_account",
            bank_name=obj_in.bank_name,
            account_holder_name=obj_in.account_holder_name,
            routing_last_four=normalize_number(obj_in.bank_routing_number)[-4:],
            account_last_four=normalize_number(obj_in.bank_account_number)[-4:],
            is_primary=obj_in.is_primary,
        )

    try:
        if obj_in.is_primary:
            # one primary per user and method type
            db.query(PaymentMethod).filter(
                PaymentMethod.user_id == user_id,
                PaymentMethod.method_type == obj_in.method_type,
            ).update({PaymentMethod.is_primary: False}, synchronize_session=False)
        db.add(method)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(method)
    return method


def verify_payment_method(db: Session, *, payment_method_id: int) -> PaymentMethod:
    method = db.get(PaymentMethod, payment_method_id)
    if method is None:
        raise PaymentMethodNotFound(payment_method_id)
    method.is_verified = True
    db.add(method)
    db.commit()
    db.refresh(method)
    return method


def list_payment_methods(db: Session, *, user_id: int) -> List[PaymentMethod]:
    return (
        db.query(PaymentMethod)
        .filter(PaymentMethod.user_id == user_id)
        .order_by(PaymentMethod.is_primary.desc(), PaymentMethod.created_at.desc())
        .all()
    )


def get_primary_payment_method(
    db: Session,
    *,
    user_id: int,
    method_type: Optional[str] = None,
    verified_only: bool = True,
) -> Optional[PaymentMethod]:
    query = db.query(PaymentMethod).filter(
        PaymentMethod.user_id == user_id,
        PaymentMethod.is_primary.is_(True),
    )
    if method_type:
        query = query.filter(PaymentMethod.method_type == method_type)
    if verified_only:
        query = query.filter(PaymentMethod.is_verified.is_(True))
    return query.order_by(PaymentMethod.id.desc()).first()


# Payments


def process_payment(
    db: Session,
    *,
    student_id: int,
    teacher_id: int,
    amount,
    payment_method_id: Optional[int] = None,
    lesson_id: Optional[int] = None,
    recurring_lesson_id: Optional[int] = None,
    transaction_id: Optional[str] = None,
    payment_date: Optional[datetime] = None,
    commit: bool = True,
) -> Payment:
    """
    Record one charge against either a lesson or a recurring lesson.

    With ``commit=False`` the row is only flushed so the caller can include
    it in a larger transaction.
    """
    if (lesson_id is None) == (recurring_lesson_id is None):
        raise ValidationException(
            "A payment must reference exactly one of lesson_id or recurring_lesson_id",
            code="INVALID_PAYMENT_SOURCE",
        )

    split = split_amount(amount)
    payment = Payment(
        lesson_id=lesson_id,
        recurring_lesson_id=recurring_lesson_id,
        student_id=student_id,
        teacher_id=teacher_id,
        payment_method_id=payment_method_id,
        amount=split.total_cost,
        platform_fee=split.platform_fee,
        teacher_earnings=split.teacher_earnings,
        transaction_id=transaction_id or generate_transaction_id(),
        status="completed",
        payment_date=payment_date or datetime.now(timezone.utc),
    )
    db.add(payment)
    if commit:
        db.commit()
        db.refresh(payment)
    else:
        db.flush()
    return payment


def complete_lesson(
    db: Session,
    *,
    lesson_id: int,
    teacher_id: int,
    completion_notes: Optional[str] = None,
    student_rating: Optional[int] = None,
    teacher_rating: Optional[int] = None,
) -> Payment:
    """
    Mark an upcoming lesson completed and charge the student's primary card.

    The status flip is a conditional update, so calling this twice for the
    same lesson raises AlreadyCompleted and never records a second payment.
    """
    lesson = db.get(Lesson, lesson_id)
    if lesson is None or lesson.teacher_id != teacher_id:
        raise LessonNotFound(lesson_id)
    if lesson.status == "completed":
        raise AlreadyCompleted(lesson_id)
    if lesson.status != "upcoming":
        raise LessonNotCompletable(lesson_id, lesson.status)

    student = db.get(Student, lesson.student_id)
    method = get_primary_payment_method(
        db, user_id=student.user_id, method_type="credit_card"
    )
    if method is None:
        raise NoPaymentMethod(student.id)

    try:
        updated = (
            db.query(Lesson)
            .filter(Lesson.id == lesson_id, Lesson.status == "upcoming")
            .update(
                {
                    Lesson.status: "completed",
                    Lesson.completion_notes: completion_notes,
                    Lesson.student_rating: student_rating,
                    Lesson.teacher_rating: teacher_rating,
                    Lesson.completed_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise AlreadyCompleted(lesson_id)

        payment = Payment(
            lesson_id=lesson.id,
            student_id=lesson.student_id,
            teacher_id=lesson.teacher_id,
            payment_method_id=method.id,
            amount=lesson.total_cost,
            platform_fee=lesson.platform_fee,
            teacher_earnings=lesson.teacher_earnings,
            transaction_id=generate_transaction_id(),
            status="completed",
            payment_date=datetime.now(timezone.utc),
        )
        db.add(payment)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payment)
    db.refresh(lesson)
    logger.info(
        f"Completed lesson {lesson_id}; charged {payment.amount} "
        f"({payment.transaction_id})"
    )
    return payment


def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
    return db.get(Payment, payment_id)


def get_teacher_payments(
    db: Session,
    *,
    teacher_id: int,
    skip: int = 0,
    limit: int = 100,
) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.teacher_id == teacher_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_student_payments(
    db: Session,
    *,
    student_id: int,
    skip: int = 0,
    limit: int = 100,
) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.student_id == student_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_platform_revenue(
    db: Session,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> RevenueSummary:
    """
    Totals over completed payments, optionally within [start, end).
    """
    query = db.query(
        func.sum(Payment.amount),
        func.sum(Payment.platform_fee),
        func.sum(Payment.teacher_earnings),
        func.count(Payment.id),
    ).filter(Payment.status == "completed")
    if start is not None:
        query = query.filter(Payment.payment_date >= start)
    if end is not None:
        query = query.filter(Payment.payment_date < end)

    total, fees, earnings, count = query.one()
    return RevenueSummary(
        total_revenue=to_money(total),
        platform_fees=to_money(fees),
        teacher_earnings=to_money(earnings),
        payment_count=count or 0,
    )

