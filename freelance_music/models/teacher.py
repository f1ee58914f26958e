# freelance_music/models/teacher.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from freelance_music.db.base import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    bio = Column(Text, nullable=True)
    instruments = Column(JSON, nullable=False, default=list)
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    virtual_available = Column(Boolean, nullable=False, default=True)
    in_person_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="teacher")

    def teaches(self, instrument: str) -> bool:
        wanted = instrument.strip().lower()
        return any(i.lower() == wanted for i in self.instruments or [])

    def __repr__(self):
        return f"<Teacher {self.id} user={self.user_id}>"
