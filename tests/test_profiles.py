from decimal import Decimal

import pytest
from pydantic import ValidationError

from freelance_music.core.exceptions import (
    EmailAlreadyRegistered,
    StudentNotFound,
    ValidationException,
)
from freelance_music.core.security import get_password_hash, verify_password
from freelance_music.models.user import User
from freelance_music.schemas.user import (
    StudentSignup,
    StudentUpdate,
    TeacherSignup,
    TeacherUpdate,
)
from freelance_music.services import profile_service


def _teacher_signup(**overrides):
    data = dict(
        name="Tom Teacher",
        email="tom@music.com",
        password="s3cret-pass",
        bio="Jazz pianist",
        instruments=["Piano"],
        hourly_rate=Decimal("75.00"),
    )
    data.update(overrides)
    return TeacherSignup(**data)


def test_password_hashing():
    hashed = get_password_hash("hunter2")
    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


class TestSignup:
    def test_teacher_signup_creates_user_and_profile(self, db_session):
        teacher = profile_service.create_teacher(db_session, obj_in=_teacher_signup())

        assert teacher.user.role == "teacher"
        assert teacher.user.email == "tom@music.com"
        assert teacher.hourly_rate == Decimal("75.00")
        assert teacher.instruments == ["Piano"]
        assert teacher.user.password_hash != "s3cret-pass"
        assert profile_service.get_teacher_by_user_id(db_session, teacher.user_id).id == teacher.id

    def test_duplicate_email_leaves_nothing_behind(self, db_session):
        profile_service.create_teacher(db_session, obj_in=_teacher_signup())

        with pytest.raises(EmailAlreadyRegistered):
            profile_service.create_student(
                db_session,
                obj_in=StudentSignup(name="Copy", email="tom@music.com", password="x"),
            )
        assert db_session.query(User).count() == 1

    def test_authenticate(self, db_session):
        profile_service.create_student(
            db_session,
            obj_in=StudentSignup(
                name="Sam Student",
                email="sam@music.com",
                password="letmein",
                referral_source="Friend",
            ),
        )

        user = profile_service.authenticate_user(db_session, "sam@music.com", "letmein")
        assert user is not None and user.role == "student"
        assert profile_service.authenticate_user(db_session, "sam@music.com", "wrong") is None
        assert profile_service.authenticate_user(db_session, "nobody@music.com", "letmein") is None


class TestUpdates:
    def test_update_teacher_partial(self, db_session, teacher):
        updated = profile_service.update_teacher(
            db_session, teacher_id=teacher.id, obj_in=TeacherUpdate(hourly_rate=Decimal("90.00"))
        )
        assert updated.hourly_rate == Decimal("90.00")
        assert updated.bio == "Conservatory trained"

    def test_update_student_account_and_profile(self, db_session, student):
        updated = profile_service.update_student(
            db_session,
            student_id=student.id,
            obj_in=StudentUpdate(name="Renamed", location="Austin", skill_level="advanced"),
        )

        assert updated.user.name == "Renamed"
        assert updated.user.location == "Austin"
        assert updated.skill_level == "advanced"
        assert updated.primary_instrument == "Piano"

    def test_update_student_email_taken(self, db_session, make_student):
        first, second = make_student(), make_student()
        with pytest.raises(EmailAlreadyRegistered):
            profile_service.update_student(
                db_session,
                student_id=second.id,
                obj_in=StudentUpdate(email=first.user.email),
            )

    def test_unknown_student(self, db_session):
        with pytest.raises(StudentNotFound):
            profile_service.update_student(db_session, student_id=5, obj_in=StudentUpdate())

    def test_null_hourly_rate_is_rejected(self, db_session, teacher):
        with pytest.raises(ValidationException) as exc_info:
            profile_service.update_teacher(
                db_session, teacher_id=teacher.id, obj_in=TeacherUpdate(hourly_rate=None)
            )
        assert exc_info.value.details == {"field": "hourly_rate"}

        # the session is still usable and nothing changed
        reloaded = profile_service.get_teacher(db_session, teacher.id)
        assert reloaded.hourly_rate == Decimal("60.00")

    def test_null_bio_clears_it(self, db_session, teacher):
        updated = profile_service.update_teacher(
            db_session, teacher_id=teacher.id, obj_in=TeacherUpdate(bio=None)
        )
        assert updated.bio is None

    def test_null_student_name_is_rejected(self, db_session, student):
        with pytest.raises(ValidationException):
            profile_service.update_student(
                db_session, student_id=student.id, obj_in=StudentUpdate(name=None)
            )
        assert profile_service.get_student(db_session, student.id).user.name == "Student 1"

    def test_null_optional_account_field_is_allowed(self, db_session, student):
        updated = profile_service.update_student(
            db_session, student_id=student.id, obj_in=StudentUpdate(phone=None, learning_goals=None)
        )
        assert updated.user.phone is None


class TestHourlyRate:
    @pytest.mark.parametrize("rate", ["-10.00", "0"])
    def test_signup_rejects_non_positive_rate(self, rate):
        with pytest.raises(ValidationError):
            _teacher_signup(hourly_rate=Decimal(rate))

    def test_signup_requires_rate(self):
        with pytest.raises(ValidationError):
            TeacherSignup(name="No Rate", email="norate@music.com", password="pw")

    def test_update_rejects_negative_rate(self):
        with pytest.raises(ValidationError):
            TeacherUpdate(hourly_rate=Decimal("-1"))
