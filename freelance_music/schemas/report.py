# freelance_music/schemas/report.py
from decimal import Decimal

from pydantic import BaseModel, Field

from freelance_music.schemas.payment import RevenueSummary


class InstrumentStat(BaseModel):
    instrument: str
    lesson_count: int = 0
    revenue: Decimal = Decimal("0.00")


class StudentRevenue(BaseModel):
    student_id: int
    student_name: str
    revenue: Decimal


class UserCounts(BaseModel):
    total: int
    teachers: int
    students: int
    admins: int


class AdminDashboard(BaseModel):
    year: int
    revenue: RevenueSummary
    revenue_by_quarter: dict[str, Decimal]
    popular_instruments: list[InstrumentStat]
    revenue_by_instrument: list[InstrumentStat]
    revenue_by_student: list[StudentRevenue]
    referrals: dict[str, int]
    users: UserCounts
    total_lessons: int
    repeat_students: int


class ReferralReport(BaseModel):
    total_students: int
    sources: dict[str, int] = Field(default_factory=dict)


class RepeatStudent(BaseModel):
    student_id: int
    student_name: str
    lesson_count: int
    total_spent: Decimal


class RepeatLessonsReport(BaseModel):
    repeat_students: int
    total_students_with_lessons: int
    students: list[RepeatStudent] = Field(default_factory=list)
