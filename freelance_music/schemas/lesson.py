# freelance_music/schemas/lesson.py
from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LessonType = Literal["virtual", "in-person"]


class AvailabilityCreate(BaseModel):
    date: date
    start_time: time
    end_time: time
    lesson_type: LessonType
    instruments: list[str] = Field(default_factory=list)


class AvailabilityPublic(AvailabilityCreate):
    id: int
    teacher_id: int

    model_config = ConfigDict(from_attributes=True)


class LessonBookRequest(BaseModel):
    teacher_id: int
    student_id: int
    date: date
    time: time
    duration: int = Field(gt=0, description="minutes")
    lesson_type: LessonType
    instrument: str
    notes: str | None = None
    sheet_music_urls: list[str] = Field(default_factory=list)


class LessonCompleteRequest(BaseModel):
    teacher_id: int
    completion_notes: str | None = None
    student_rating: int | None = Field(default=None, ge=1, le=5)
    teacher_rating: int | None = Field(default=None, ge=1, le=5)


class LessonPublic(BaseModel):
    id: int
    teacher_id: int
    student_id: int
    instrument: str
    date: date
    time: time
    duration: int
    lesson_type: str
    status: str  # upcoming / completed / cancelled

    total_cost: Decimal
    teacher_earnings: Decimal
    platform_fee: Decimal

    notes: str | None = None
    sheet_music_urls: list[str] = Field(default_factory=list)

    completion_notes: str | None = None
    student_rating: int | None = None
    teacher_rating: int | None = None
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class LessonBooked(BaseModel):
    lesson_id: int
