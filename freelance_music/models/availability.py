# freelance_music/models/availability.py
from sqlalchemy import Column, Date, ForeignKey, Integer, JSON, String, Time
from sqlalchemy.orm import relationship

from freelance_music.db.base import Base


class AvailabilitySlot(Base):
    """An open block of a teacher's time. Booking a lesson deletes the row."""

    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    lesson_type = Column(String(20), nullable=False)  # 'virtual' / 'in-person'
    instruments = Column(JSON, nullable=False, default=list)

    teacher = relationship("Teacher")

    def __repr__(self):
        return f"<AvailabilitySlot teacher={self.teacher_id} {self.date} {self.start_time}>"
