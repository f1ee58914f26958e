# freelance_music/models/payment.py
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from freelance_music.db.base import Base


class Payment(Base):
    """Ledger entry. Rows are inserted once and never updated."""

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "(lesson_id IS NULL) <> (recurring_lesson_id IS NULL)",
            name="ck_payments_single_source",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=True, index=True)
    recurring_lesson_id = Column(
        Integer, ForeignKey("recurring_lessons.id"), nullable=True, index=True
    )
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=True)

    amount = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)
    teacher_earnings = Column(Numeric(10, 2), nullable=False)

    transaction_id = Column(String(64), unique=True, nullable=False, index=True)
    # completed / failed / refunded
    status = Column(String(20), nullable=False, default="completed", index=True)
    payment_date = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    lesson = relationship("Lesson", back_populates="payments")
    recurring_lesson = relationship("RecurringLesson", back_populates="payments")
    student = relationship("Student")
    teacher = relationship("Teacher")
    payment_method = relationship("PaymentMethod")

    def __repr__(self):
        return f"<Payment {self.transaction_id} {self.amount}>"
