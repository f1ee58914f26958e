# freelance_music/models/recurring_lesson.py
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from freelance_music.db.base import Base


class RecurringLesson(Base):
    """
    A weekly time slot offered by a teacher.

    The same row is the open slot (student_id is NULL) and, once claimed,
    the booked series. Pricing and next_lesson_date are filled in on booking.
    """

    __tablename__ = "recurring_lessons"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True, index=True)

    instrument = Column(String(50), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    start_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    lesson_type = Column(String(20), nullable=False)

    # weekly / biweekly / monthly
    frequency = Column(String(20), nullable=False, default="weekly")
    # active / paused / cancelled
    status = Column(String(20), nullable=False, default="active", index=True)
    next_lesson_date = Column(Date, nullable=True)

    total_cost = Column(Numeric(10, 2), nullable=True)
    teacher_earnings = Column(Numeric(10, 2), nullable=True)
    platform_fee = Column(Numeric(10, 2), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    teacher = relationship("Teacher")
    student = relationship("Student")
    payments = relationship("Payment", back_populates="recurring_lesson")

    @property
    def is_booked(self) -> bool:
        return self.student_id is not None

    def __repr__(self):
        return f"<RecurringLesson {self.id} {self.frequency} {self.status}>"
