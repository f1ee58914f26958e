"""
Shared fixtures: an in-memory SQLite database per test plus small factories
for teachers, students, slots, lessons and payment methods.
"""

import os
from datetime import date, time
from decimal import Decimal

# Keep the application engine off the local database file
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from freelance_music import models  # noqa
from freelance_music.db.base import Base
from freelance_music.models.availability import AvailabilitySlot
from freelance_music.models.lesson import Lesson
from freelance_music.models.payment_method import PaymentMethod
from freelance_music.models.student import Student
from freelance_music.models.teacher import Teacher
from freelance_music.models.user import User
from freelance_music.services.pricing import compute_lesson_pricing

TEST_DATABASE_URL = "sqlite:///:memory:"

# Pre-hashed password to avoid running bcrypt in every fixture
FAKE_HASH = "$2b$12$hashed_password_for_tests"


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_teacher(db_session):
    counter = {"n": 0}

    def _make(hourly_rate="60.00", instruments=("Piano", "Guitar"), name=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"Teacher {n}",
            email=f"teacher{n}@test.com",
            password_hash=FAKE_HASH,
            role="teacher",
        )
        db_session.add(user)
        db_session.flush()
        teacher = Teacher(
            user_id=user.id,
            bio="Conservatory trained",
            instruments=list(instruments),
            hourly_rate=Decimal(hourly_rate),
        )
        db_session.add(teacher)
        db_session.commit()
        db_session.refresh(teacher)
        return teacher

    return _make


@pytest.fixture
def make_student(db_session):
    counter = {"n": 0}

    def _make(name=None, referral_source=None, primary_instrument="Piano"):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"Student {n}",
            email=f"student{n}@test.com",
            password_hash=FAKE_HASH,
            role="student",
        )
        db_session.add(user)
        db_session.flush()
        student = Student(
            user_id=user.id,
            primary_instrument=primary_instrument,
            skill_level="beginner",
            referral_source=referral_source,
        )
        db_session.add(student)
        db_session.commit()
        db_session.refresh(student)
        return student

    return _make


@pytest.fixture
def teacher(make_teacher):
    return make_teacher()


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def make_slot(db_session):
    def _make(teacher, slot_date=date(2030, 3, 4), start=time(10, 0), lesson_type="in-person"):
        slot = AvailabilitySlot(
            teacher_id=teacher.id,
            date=slot_date,
            start_time=start,
            end_time=time(start.hour + 1, start.minute),
            lesson_type=lesson_type,
            instruments=list(teacher.instruments),
        )
        db_session.add(slot)
        db_session.commit()
        db_session.refresh(slot)
        return slot

    return _make


@pytest.fixture
def make_lesson(db_session):
    """Insert a lesson row directly, bypassing the booking flow."""

    def _make(
        teacher,
        student,
        instrument="Piano",
        status="upcoming",
        duration=60,
        lesson_date=date(2030, 3, 4),
    ):
        pricing = compute_lesson_pricing(duration, teacher.hourly_rate)
        lesson = Lesson(
            teacher_id=teacher.id,
            student_id=student.id,
            instrument=instrument,
            date=lesson_date,
            time=time(10, 0),
            duration=duration,
            lesson_type="virtual",
            status=status,
            total_cost=pricing.total_cost,
            teacher_earnings=pricing.teacher_earnings,
            platform_fee=pricing.platform_fee,
        )
        db_session.add(lesson)
        db_session.commit()
        db_session.refresh(lesson)
        return lesson

    return _make


@pytest.fixture
def make_card(db_session):
    def _make(student, is_primary=True, is_verified=True, method_type="credit_card"):
        method = PaymentMethod(
            user_id=student.user_id,
            method_type=method_type,
            card_brand="visa" if method_type == "credit_card" else None,
            card_last_four="4242" if method_type == "credit_card" else None,
            account_last_four="6789" if method_type == "bank_account" else None,
            is_primary=is_primary,
            is_verified=is_verified,
        )
        db_session.add(method)
        db_session.commit()
        db_session.refresh(method)
        return method

    return _make
