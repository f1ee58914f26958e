from datetime import date, time
from decimal import Decimal

import pytest

from freelance_music.models.payment import Payment
from freelance_music.models.recurring_lesson import RecurringLesson
from freelance_music.workers import queue, tasks


@pytest.fixture(autouse=True)
def worker_sessions(monkeypatch, session_factory):
    monkeypatch.setattr(tasks, "SessionLocal", session_factory)


@pytest.fixture
def due_series(db_session, teacher, student):
    series = RecurringLesson(
        teacher_id=teacher.id,
        student_id=student.id,
        instrument="Cello",
        day_of_week=0,
        start_time=time(18, 0),
        duration=30,
        lesson_type="in-person",
        frequency="biweekly",
        status="active",
        next_lesson_date=date(2024, 3, 4),
        total_cost=Decimal("30.00"),
        platform_fee=Decimal("3.00"),
        teacher_earnings=Decimal("27.00"),
    )
    db_session.add(series)
    db_session.commit()
    db_session.refresh(series)
    return series


def test_confirm_task_success(db_session, due_series, student, make_card):
    make_card(student)

    result = tasks.confirm_recurring_lesson_task(due_series.id)

    assert result["status"] == "success"
    assert result["amount_charged"] == "30.00"
    assert result["next_lesson_date"] == "2024-03-18"
    assert db_session.query(Payment).count() == 1


def test_confirm_task_reports_domain_errors(db_session, due_series):
    result = tasks.confirm_recurring_lesson_task(due_series.id)

    assert result["status"] == "error"
    assert result["code"] == "NO_VERIFIED_PAYMENT_METHOD"
    assert db_session.query(Payment).count() == 0


def test_confirm_task_refuses_future_occurrence(db_session, due_series, student, make_card):
    make_card(student)

    result = tasks.confirm_recurring_lesson_task(due_series.id, as_of="2024-03-03")

    assert result["status"] == "error"
    assert result["code"] == "RECURRING_LESSON_NOT_DUE"
    assert db_session.query(Payment).count() == 0


def test_duplicate_jobs_charge_once(db_session, due_series, student, make_card):
    make_card(student)

    first = tasks.confirm_recurring_lesson_task(due_series.id, as_of="2024-03-04")
    second = tasks.confirm_recurring_lesson_task(due_series.id, as_of="2024-03-04")

    assert first["status"] == "success"
    assert second["code"] == "RECURRING_LESSON_NOT_DUE"
    assert db_session.query(Payment).count() == 1


@pytest.fixture
def fake_queue(monkeypatch):
    queued = {}

    def fake_enqueue(recurring_id, lesson_date):
        job_id = queue.recurring_confirmation_job_id(recurring_id, lesson_date)
        if job_id in queued:
            return None
        queued[job_id] = recurring_id
        return job_id

    monkeypatch.setattr(queue, "enqueue_recurring_confirmation", fake_enqueue)
    return queued


def test_dispatch_enqueues_due_series(fake_queue, due_series):
    assert tasks.dispatch_due_recurring_confirmations(as_of=date(2024, 3, 1)) == []
    job_ids = tasks.dispatch_due_recurring_confirmations(as_of=date(2024, 3, 4))

    assert job_ids == [f"recurring-confirm-{due_series.id}-2024-03-04"]
    assert list(fake_queue.values()) == [due_series.id]


def test_dispatch_twice_queues_one_job(fake_queue, due_series):
    tasks.dispatch_due_recurring_confirmations(as_of=date(2024, 3, 4))
    again = tasks.dispatch_due_recurring_confirmations(as_of=date(2024, 3, 4))

    assert again == []
    assert len(fake_queue) == 1
