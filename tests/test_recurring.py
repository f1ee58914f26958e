import re
import time as clock
from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from freelance_music.core.exceptions import (
    InvalidStatusTransition,
    NotBooked,
    NoVerifiedPaymentMethod,
    OccurrenceAlreadyBilled,
    RecurringLessonNotActive,
    RecurringLessonNotDue,
    RecurringLessonNotFound,
    SlotAlreadyBooked,
    SlotNotFound,
)
from freelance_music.models.payment import Payment
from freelance_music.models.recurring_lesson import RecurringLesson
from freelance_music.schemas.recurring import RecurringBookRequest, RecurringSlotCreate
from freelance_music.services import recurring_service
from freelance_music.services.recurring_service import first_occurrence, next_occurrence

MONDAY = 0


@pytest.fixture
def open_slot(db_session, teacher):
    return recurring_service.add_recurring_slot(
        db_session,
        teacher_id=teacher.id,
        obj_in=RecurringSlotCreate(
            instrument="Piano",
            day_of_week=MONDAY,
            start_time=time(16, 0),
            duration=60,
            lesson_type="virtual",
        ),
    )


@pytest.fixture
def booked(db_session, open_slot, student):
    return recurring_service.book_recurring_slot(
        db_session,
        slot_id=open_slot.id,
        obj_in=RecurringBookRequest(student_id=student.id, start_date=date(2024, 1, 15)),
    )


class TestOccurrences:
    def test_weekly(self):
        assert next_occurrence(date(2024, 1, 15), MONDAY, "weekly") == date(2024, 1, 22)

    def test_biweekly(self):
        assert next_occurrence(date(2024, 1, 15), MONDAY, "biweekly") == date(2024, 1, 29)

    def test_monthly_clamps_to_month_end(self):
        assert next_occurrence(date(2024, 1, 31), 2, "monthly") == date(2024, 2, 29)
        assert next_occurrence(date(2023, 1, 31), 1, "monthly") == date(2023, 2, 28)

    def test_monthly_rolls_year(self):
        assert next_occurrence(date(2024, 12, 10), 1, "monthly") == date(2025, 1, 10)

    def test_rejects_bad_input(self):
        with pytest.raises(ValueError):
            next_occurrence(date(2024, 1, 15), 7, "weekly")
        with pytest.raises(ValueError):
            next_occurrence(date(2024, 1, 15), MONDAY, "daily")

    def test_first_occurrence(self):
        # 2024-01-17 is a Wednesday
        assert first_occurrence(date(2024, 1, 17), MONDAY) == date(2024, 1, 22)
        assert first_occurrence(date(2024, 1, 15), MONDAY) == date(2024, 1, 15)


class TestBooking:
    def test_new_slot_is_open(self, open_slot):
        assert open_slot.student_id is None
        assert open_slot.status == "active"
        assert open_slot.frequency == "weekly"
        assert open_slot.total_cost is None

    def test_booking_fixes_price_and_first_date(self, booked, student):
        assert booked.student_id == student.id
        assert booked.is_booked
        assert booked.next_lesson_date == date(2024, 1, 15)
        assert booked.total_cost == Decimal("60.00")
        assert booked.platform_fee == Decimal("6.00")
        assert booked.teacher_earnings == Decimal("54.00")

    def test_second_student_is_refused(self, db_session, booked, make_student):
        latecomer = make_student()
        with pytest.raises(SlotAlreadyBooked):
            recurring_service.book_recurring_slot(
                db_session,
                slot_id=booked.id,
                obj_in=RecurringBookRequest(student_id=latecomer.id, start_date=date(2024, 2, 1)),
            )

        db_session.refresh(booked)
        assert booked.student_id != latecomer.id

    def test_unknown_slot(self, db_session, student):
        with pytest.raises(SlotNotFound):
            recurring_service.book_recurring_slot(
                db_session,
                slot_id=404,
                obj_in=RecurringBookRequest(student_id=student.id, start_date=date(2024, 1, 15)),
            )

    def test_listing_available_slots(self, db_session, open_slot, teacher):
        other = recurring_service.add_recurring_slot(
            db_session,
            teacher_id=teacher.id,
            obj_in=RecurringSlotCreate(
                instrument="Guitar",
                day_of_week=3,
                start_time=time(9, 0),
                duration=30,
                lesson_type="in-person",
            ),
        )

        found = recurring_service.list_available_recurring_slots(db_session, instrument="guitar")

        assert [slot.id for slot in found] == [other.id]
        assert len(recurring_service.list_available_recurring_slots(db_session)) == 2


class TestConfirmation:
    def test_confirm_bills_and_advances(self, db_session, booked, student, make_card):
        card = make_card(student)

        result = recurring_service.confirm_recurring_lesson(db_session, recurring_id=booked.id)

        assert result.next_lesson_date == date(2024, 1, 22)
        assert result.amount_charged == Decimal("60.00")
        assert re.fullmatch(rf"REC_\d+_{booked.id}", result.transaction_id)

        payments = db_session.query(Payment).all()
        assert len(payments) == 1
        assert payments[0].recurring_lesson_id == booked.id
        assert payments[0].lesson_id is None
        assert payments[0].payment_method_id == card.id
        assert payments[0].platform_fee == Decimal("6.00")

    def test_consecutive_confirmations(self, db_session, booked, student, make_card):
        make_card(student)
        first = recurring_service.confirm_recurring_lesson(
            db_session,
            recurring_id=booked.id,
            payment_date=datetime(2024, 1, 15, 17, tzinfo=timezone.utc),
        )
        # transaction ids carry a millisecond timestamp
        clock.sleep(0.005)
        second = recurring_service.confirm_recurring_lesson(
            db_session,
            recurring_id=booked.id,
            payment_date=datetime(2024, 1, 22, 17, tzinfo=timezone.utc),
        )

        assert second.next_lesson_date == date(2024, 1, 29)
        assert first.transaction_id != second.transaction_id
        assert db_session.query(Payment).count() == 2

    def test_bank_account_is_accepted(self, db_session, booked, student, make_card):
        make_card(student, method_type="bank_account")
        result = recurring_service.confirm_recurring_lesson(db_session, recurring_id=booked.id)
        assert result.amount_charged == Decimal("60.00")

    def test_unbooked_slot(self, db_session, open_slot):
        with pytest.raises(NotBooked):
            recurring_service.confirm_recurring_lesson(db_session, recurring_id=open_slot.id)

    def test_missing_series(self, db_session):
        with pytest.raises(RecurringLessonNotFound):
            recurring_service.confirm_recurring_lesson(db_session, recurring_id=99)

    def test_requires_verified_method(self, db_session, booked, student, make_card):
        make_card(student, is_verified=False)

        with pytest.raises(NoVerifiedPaymentMethod):
            recurring_service.confirm_recurring_lesson(db_session, recurring_id=booked.id)

        db_session.refresh(booked)
        assert booked.next_lesson_date == date(2024, 1, 15)
        assert db_session.query(Payment).count() == 0

    def test_paused_series_is_not_billed(self, db_session, booked, student, make_card):
        make_card(student)
        recurring_service.pause_recurring_lesson(db_session, recurring_id=booked.id)

        with pytest.raises(RecurringLessonNotActive):
            recurring_service.confirm_recurring_lesson(db_session, recurring_id=booked.id)
        assert db_session.query(Payment).count() == 0

    def test_racing_confirmations_bill_once(
        self, db_session, session_factory, booked, student, make_card
    ):
        make_card(student)

        # a second worker loads the series before the first one bills it
        other = session_factory()
        try:
            stale = other.get(RecurringLesson, booked.id)
            assert stale.next_lesson_date == date(2024, 1, 15)

            first = recurring_service.confirm_recurring_lesson(db_session, recurring_id=booked.id)
            assert first.next_lesson_date == date(2024, 1, 22)

            with pytest.raises(OccurrenceAlreadyBilled):
                recurring_service.confirm_recurring_lesson(other, recurring_id=booked.id)
        finally:
            other.close()

        db_session.refresh(booked)
        assert booked.next_lesson_date == date(2024, 1, 22)
        assert db_session.query(Payment).count() == 1

    def test_future_occurrence_is_not_billed(self, db_session, booked, student, make_card):
        make_card(student)

        with pytest.raises(RecurringLessonNotDue):
            recurring_service.confirm_recurring_lesson(
                db_session, recurring_id=booked.id, as_of=date(2024, 1, 14)
            )

        recurring_service.confirm_recurring_lesson(
            db_session, recurring_id=booked.id, as_of=date(2024, 1, 15)
        )
        # a repeated run on the same day would bill next week early
        with pytest.raises(RecurringLessonNotDue):
            recurring_service.confirm_recurring_lesson(
                db_session, recurring_id=booked.id, as_of=date(2024, 1, 15)
            )
        assert db_session.query(Payment).count() == 1


class TestStatusTransitions:
    def test_pause_and_resume(self, db_session, booked):
        paused = recurring_service.pause_recurring_lesson(db_session, recurring_id=booked.id)
        assert paused.status == "paused"

        resumed = recurring_service.resume_recurring_lesson(db_session, recurring_id=booked.id)
        assert resumed.status == "active"

    def test_resume_active_is_rejected(self, db_session, booked):
        with pytest.raises(InvalidStatusTransition):
            recurring_service.resume_recurring_lesson(db_session, recurring_id=booked.id)

    def test_cancel_is_terminal_and_keeps_student(self, db_session, booked, student):
        cancelled = recurring_service.cancel_recurring_lesson(db_session, recurring_id=booked.id)

        assert cancelled.status == "cancelled"
        assert cancelled.student_id == student.id
        for transition in (
            recurring_service.resume_recurring_lesson,
            recurring_service.pause_recurring_lesson,
            recurring_service.cancel_recurring_lesson,
        ):
            with pytest.raises(InvalidStatusTransition):
                transition(db_session, recurring_id=booked.id)

    def test_cancelled_open_slot_cannot_be_booked(self, db_session, open_slot, student):
        recurring_service.cancel_recurring_lesson(db_session, recurring_id=open_slot.id)

        with pytest.raises(RecurringLessonNotActive):
            recurring_service.book_recurring_slot(
                db_session,
                slot_id=open_slot.id,
                obj_in=RecurringBookRequest(student_id=student.id, start_date=date(2024, 1, 15)),
            )

    def test_listings_hide_cancelled(self, db_session, booked, teacher, student):
        recurring_service.cancel_recurring_lesson(db_session, recurring_id=booked.id)

        assert recurring_service.list_teacher_recurring_lessons(db_session, teacher_id=teacher.id) == []
        assert recurring_service.list_student_recurring_lessons(db_session, student_id=student.id) == []
        history = recurring_service.list_student_recurring_lessons(
            db_session, student_id=student.id, include_cancelled=True
        )
        assert [r.id for r in history] == [booked.id]


class TestDeleteAndDue:
    def test_delete_open_slot(self, db_session, open_slot, teacher):
        slot_id = open_slot.id
        recurring_service.delete_recurring_slot(db_session, slot_id=slot_id, teacher_id=teacher.id)
        assert db_session.get(RecurringLesson, slot_id) is None

    def test_booked_slot_cannot_be_deleted(self, db_session, booked, teacher):
        with pytest.raises(SlotAlreadyBooked):
            recurring_service.delete_recurring_slot(db_session, slot_id=booked.id, teacher_id=teacher.id)
        assert db_session.get(RecurringLesson, booked.id) is not None

    def test_other_teacher_cannot_delete(self, db_session, open_slot, make_teacher):
        stranger = make_teacher()
        with pytest.raises(SlotNotFound):
            recurring_service.delete_recurring_slot(db_session, slot_id=open_slot.id, teacher_id=stranger.id)

    def test_due_lessons(self, db_session, booked, open_slot):
        assert recurring_service.list_due_recurring_lessons(db_session, as_of=date(2024, 1, 14)) == []

        due = recurring_service.list_due_recurring_lessons(db_session, as_of=date(2024, 1, 15))
        assert [r.id for r in due] == [booked.id]

        recurring_service.pause_recurring_lesson(db_session, recurring_id=booked.id)
        assert recurring_service.list_due_recurring_lessons(db_session, as_of=date(2024, 2, 1)) == []
