# freelance_music/models/lesson.py
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from freelance_music.db.base import Base


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)

    instrument = Column(String(50), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    lesson_type = Column(String(20), nullable=False)

    # upcoming / completed / cancelled
    status = Column(String(20), nullable=False, default="upcoming", index=True)

    total_cost = Column(Numeric(10, 2), nullable=False)
    teacher_earnings = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)

    notes = Column(Text, nullable=True)
    sheet_music_urls = Column(JSON, nullable=False, default=list)

    # filled in on completion
    completion_notes = Column(Text, nullable=True)
    student_rating = Column(Integer, nullable=True)
    teacher_rating = Column(Integer, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    teacher = relationship("Teacher")
    student = relationship("Student")
    payments = relationship("Payment", back_populates="lesson")

    def __repr__(self):
        return f"<Lesson {self.id} {self.instrument} {self.date} {self.status}>"
