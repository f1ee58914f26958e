# freelance_music/models/student.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from freelance_music.db.base import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    primary_instrument = Column(String(50), nullable=True)
    skill_level = Column(String(20), nullable=True)  # beginner / intermediate / advanced
    learning_goals = Column(Text, nullable=True)
    referral_source = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="student")

    def __repr__(self):
        return f"<Student {self.id} user={self.user_id}>"
