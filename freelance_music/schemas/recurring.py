# freelance_music/schemas/recurring.py
from datetime import date, time
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from freelance_music.schemas.lesson import LessonType

Frequency = Literal["weekly", "biweekly", "monthly"]


class RecurringSlotCreate(BaseModel):
    instrument: str
    day_of_week: int = Field(ge=0, le=6, description="0 = Monday ... 6 = Sunday")
    start_time: time
    duration: int = Field(gt=0, description="minutes")
    lesson_type: LessonType


class RecurringBookRequest(BaseModel):
    student_id: int
    start_date: date
    frequency: Frequency = "weekly"
    notes: str | None = None


class RecurringLessonPublic(BaseModel):
    id: int
    teacher_id: int
    student_id: int | None = None
    instrument: str
    day_of_week: int
    start_time: time
    duration: int
    lesson_type: str
    frequency: str
    status: str
    next_lesson_date: date | None = None

    total_cost: Decimal | None = None
    teacher_earnings: Decimal | None = None
    platform_fee: Decimal | None = None

    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class RecurringConfirmation(BaseModel):
    next_lesson_date: date
    transaction_id: str
    amount_charged: Decimal
