# freelance_music/services/report_service.py
"""
Read-only rollups for the admin dashboard.

Only payments with status 'completed' count as revenue, and the placeholder
instrument 'mixed' is left out of the instrument reports.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from freelance_music.models.lesson import Lesson
from freelance_music.models.payment import Payment
from freelance_music.models.recurring_lesson import RecurringLesson
from freelance_music.models.student import Student
from freelance_music.models.user import User
from freelance_music.schemas.report import (
    AdminDashboard,
    InstrumentStat,
    ReferralReport,
    RepeatLessonsReport,
    RepeatStudent,
    StudentRevenue,
    UserCounts,
)
from freelance_music.services.payment_service import get_platform_revenue
from freelance_music.services.pricing import to_money

ACTIVE_LESSON_STATUSES = ("upcoming", "completed")
EXCLUDED_INSTRUMENT = "mixed"
UNKNOWN_REFERRAL = "Unknown"


def _completed_payments(db: Session, *columns):
    return db.query(*columns).select_from(Payment).filter(Payment.status == "completed")


def revenue_by_quarter(db: Session, *, year: Optional[int] = None) -> Dict[str, Decimal]:
    """Completed-payment revenue per quarter of one calendar year."""
    year = year or date.today().year
    rows = (
        _completed_payments(db, Payment.payment_date, Payment.amount)
        .filter(
            Payment.payment_date >= datetime(year, 1, 1),
            Payment.payment_date < datetime(year + 1, 1, 1),
        )
        .all()
    )

    quarters = {f"Q{q}": Decimal("0.00") for q in range(1, 5)}
    for payment_date, amount in rows:
        quarter = (payment_date.month - 1) // 3 + 1
        quarters[f"Q{quarter}"] += to_money(amount)
    return quarters


def popular_instruments(db: Session) -> List[InstrumentStat]:
    rows = (
        db.query(Lesson.instrument, func.count(Lesson.id))
        .filter(
            Lesson.status.in_(ACTIVE_LESSON_STATUSES),
            func.lower(Lesson.instrument) != EXCLUDED_INSTRUMENT,
        )
        .group_by(Lesson.instrument)
        .order_by(func.count(Lesson.id).desc(), Lesson.instrument.asc())
        .all()
    )
    return [InstrumentStat(instrument=name, lesson_count=count) for name, count in rows]


def revenue_by_instrument(db: Session) -> List[InstrumentStat]:
    """Revenue and paid-lesson count per instrument, one-off and recurring combined."""
    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    counts: Dict[str, int] = defaultdict(int)

    for source, fk in (
        (Lesson, Payment.lesson_id),
        (RecurringLesson, Payment.recurring_lesson_id),
    ):
        rows = (
            _completed_payments(
                db, source.instrument, func.sum(Payment.amount), func.count(Payment.id)
            )
            .join(source, fk == source.id)
            .filter(func.lower(source.instrument) != EXCLUDED_INSTRUMENT)
            .group_by(source.instrument)
            .all()
        )
        for instrument, revenue, count in rows:
            totals[instrument] += to_money(revenue)
            counts[instrument] += count

    stats = [
        InstrumentStat(instrument=name, lesson_count=counts[name], revenue=totals[name])
        for name in totals
    ]
    return sorted(stats, key=lambda s: (-s.revenue, s.instrument))


def revenue_by_student(db: Session, *, limit: int = 10) -> List[StudentRevenue]:
    total = func.sum(Payment.amount)
    rows = (
        _completed_payments(db, Student.id, User.name, total)
        .join(Student, Payment.student_id == Student.id)
        .join(User, Student.user_id == User.id)
        .group_by(Student.id, User.name)
        .order_by(total.desc(), Student.id.asc())
        .limit(limit)
        .all()
    )
    return [
        StudentRevenue(student_id=student_id, student_name=name, revenue=to_money(revenue))
        for student_id, name, revenue in rows
    ]


def _repeat_student_rows(db: Session):
    lesson_count = func.count(Lesson.id).label("lesson_count")
    return (
        db.query(Lesson.student_id, lesson_count)
        .filter(Lesson.status.in_(ACTIVE_LESSON_STATUSES))
        .group_by(Lesson.student_id)
        .having(lesson_count > 1)
    )


def count_repeat_students(db: Session) -> int:
    """Distinct students with more than one upcoming or completed lesson."""
    subquery = _repeat_student_rows(db).subquery()
    return db.query(func.count()).select_from(subquery).scalar() or 0


def referral_counts(db: Session) -> Dict[str, int]:
    rows = (
        db.query(Student.referral_source, func.count(Student.id))
        .group_by(Student.referral_source)
        .all()
    )
    counts: Dict[str, int] = defaultdict(int)
    for source, count in rows:
        counts[source or UNKNOWN_REFERRAL] += count
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def user_counts(db: Session) -> UserCounts:
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    return UserCounts(
        total=sum(by_role.values()),
        teachers=by_role.get("teacher", 0),
        students=by_role.get("student", 0),
        admins=by_role.get("admin", 0),
    )


def get_admin_dashboard_data(db: Session, *, year: Optional[int] = None) -> AdminDashboard:
    year = year or date.today().year
    return AdminDashboard(
        year=year,
        revenue=get_platform_revenue(db),
        revenue_by_quarter=revenue_by_quarter(db, year=year),
        popular_instruments=popular_instruments(db),
        revenue_by_instrument=revenue_by_instrument(db),
        revenue_by_student=revenue_by_student(db),
        referrals=referral_counts(db),
        users=user_counts(db),
        total_lessons=db.query(func.count(Lesson.id)).scalar() or 0,
        repeat_students=count_repeat_students(db),
    )


def get_referral_report(db: Session) -> ReferralReport:
    sources = referral_counts(db)
    return ReferralReport(total_students=sum(sources.values()), sources=sources)


def get_repeat_lessons_report(db: Session) -> RepeatLessonsReport:
    repeat_rows = _repeat_student_rows(db).subquery()

    spent = (
        _completed_payments(
            db, Payment.student_id, func.sum(Payment.amount).label("total_spent")
        )
        .group_by(Payment.student_id)
        .subquery()
    )

    rows = (
        db.query(
            repeat_rows.c.student_id,
            User.name,
            repeat_rows.c.lesson_count,
            spent.c.total_spent,
        )
        .select_from(repeat_rows)
        .join(Student, Student.id == repeat_rows.c.student_id)
        .join(User, Student.user_id == User.id)
        .outerjoin(spent, spent.c.student_id == repeat_rows.c.student_id)
        .order_by(repeat_rows.c.lesson_count.desc(), repeat_rows.c.student_id.asc())
        .all()
    )

    students = [
        RepeatStudent(
            student_id=student_id,
            student_name=name,
            lesson_count=lesson_count,
            total_spent=to_money(total_spent),
        )
        for student_id, name, lesson_count, total_spent in rows
    ]

    with_lessons = (
        db.query(func.count(func.distinct(Lesson.student_id)))
        .filter(Lesson.status.in_(ACTIVE_LESSON_STATUSES))
        .scalar()
        or 0
    )
    return RepeatLessonsReport(
        repeat_students=len(students),
        total_students_with_lessons=with_lessons,
        students=students,
    )
