# freelance_music/core/exceptions.py
"""
Domain exceptions for the booking, payment and recurring-lesson services.

Services raise these; the HTTP layer turns them into responses through
``to_http_exception``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundException(DomainException):
    """Raised when a teacher, student, lesson or slot does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a slot has already been claimed by someone else."""

    status_code = status.HTTP_409_CONFLICT


class ValidationException(DomainException):
    """Raised when input is missing or fails a checksum."""

    status_code = status.HTTP_400_BAD_REQUEST


class PreconditionFailedException(DomainException):
    """Raised when the current state does not allow the operation."""

    status_code = 422


# Not found


class TeacherNotFound(NotFoundException):
    def __init__(self, teacher_id: int):
        super().__init__(
            message=f"Teacher {teacher_id} not found",
            code="TEACHER_NOT_FOUND",
            details={"teacher_id": teacher_id},
        )


class StudentNotFound(NotFoundException):
    def __init__(self, student_id: int):
        super().__init__(
            message=f"Student {student_id} not found",
            code="STUDENT_NOT_FOUND",
            details={"student_id": student_id},
        )


class LessonNotFound(NotFoundException):
    def __init__(self, lesson_id: int):
        super().__init__(
            message=f"Lesson {lesson_id} not found",
            code="LESSON_NOT_FOUND",
            details={"lesson_id": lesson_id},
        )


class SlotNotFound(NotFoundException):
    def __init__(self, slot_id: int):
        super().__init__(
            message=f"Slot {slot_id} not found",
            code="SLOT_NOT_FOUND",
            details={"slot_id": slot_id},
        )


class RecurringLessonNotFound(NotFoundException):
    def __init__(self, recurring_id: int):
        super().__init__(
            message=f"Recurring lesson {recurring_id} not found",
            code="RECURRING_LESSON_NOT_FOUND",
            details={"recurring_id": recurring_id},
        )


class PaymentMethodNotFound(NotFoundException):
    def __init__(self, payment_method_id: int):
        super().__init__(
            message=f"Payment method {payment_method_id} not found",
            code="PAYMENT_METHOD_NOT_FOUND",
            details={"payment_method_id": payment_method_id},
        )


# Conflicts


class SlotUnavailable(ConflictException):
    """The requested availability slot is gone or was just booked."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "This time slot is no longer available",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class SlotAlreadyBooked(ConflictException):
    def __init__(self, slot_id: int):
        super().__init__(
            message=f"Recurring slot {slot_id} is already booked",
            code="SLOT_ALREADY_BOOKED",
            details={"slot_id": slot_id},
        )


class OccurrenceAlreadyBilled(ConflictException):
    """Another confirmation billed this occurrence first."""

    def __init__(self, recurring_id: int, lesson_date):
        super().__init__(
            message=f"Recurring lesson {recurring_id} was already billed for {lesson_date}",
            code="OCCURRENCE_ALREADY_BILLED",
            details={"recurring_id": recurring_id, "lesson_date": str(lesson_date)},
        )


class EmailAlreadyRegistered(ConflictException):
    def __init__(self, email: str):
        super().__init__(
            message="Email already registered",
            code="EMAIL_ALREADY_REGISTERED",
            details={"email": email},
        )


# Preconditions


class AlreadyCompleted(PreconditionFailedException):
    def __init__(self, lesson_id: int):
        super().__init__(
            message=f"Lesson {lesson_id} is already completed",
            code="ALREADY_COMPLETED",
            details={"lesson_id": lesson_id},
        )


class LessonNotCompletable(PreconditionFailedException):
    def __init__(self, lesson_id: int, current_status: str):
        super().__init__(
            message=f"Lesson {lesson_id} cannot be completed from status '{current_status}'",
            code="LESSON_NOT_COMPLETABLE",
            details={"lesson_id": lesson_id, "status": current_status},
        )


class LessonNotCancellable(PreconditionFailedException):
    def __init__(self, lesson_id: int, current_status: str):
        super().__init__(
            message=f"Lesson {lesson_id} cannot be cancelled from status '{current_status}'",
            code="LESSON_NOT_CANCELLABLE",
            details={"lesson_id": lesson_id, "status": current_status},
        )


class NoPaymentMethod(PreconditionFailedException):
    def __init__(self, student_id: int):
        super().__init__(
            message="Student has no primary verified credit card on file",
            code="NO_PAYMENT_METHOD",
            details={"student_id": student_id},
        )


class NoVerifiedPaymentMethod(PreconditionFailedException):
    def __init__(self, student_id: int):
        super().__init__(
            message="Student has no primary verified payment method",
            code="NO_VERIFIED_PAYMENT_METHOD",
            details={"student_id": student_id},
        )


class NotBooked(PreconditionFailedException):
    def __init__(self, recurring_id: int):
        super().__init__(
            message=f"Recurring slot {recurring_id} has not been booked by a student",
            code="NOT_BOOKED",
            details={"recurring_id": recurring_id},
        )


class RecurringLessonNotActive(PreconditionFailedException):
    def __init__(self, recurring_id: int, current_status: str):
        super().__init__(
            message=f"Recurring lesson {recurring_id} is {current_status}",
            code="RECURRING_LESSON_NOT_ACTIVE",
            details={"recurring_id": recurring_id, "status": current_status},
        )


class InvalidStatusTransition(PreconditionFailedException):
    def __init__(self, recurring_id: int, current_status: str, target_status: str):
        super().__init__(
            message=(
                f"Recurring lesson {recurring_id} cannot move from "
                f"'{current_status}' to '{target_status}'"
            ),
            code="INVALID_STATUS_TRANSITION",
            details={
                "recurring_id": recurring_id,
                "status": current_status,
                "target_status": target_status,
            },
        )


class RecurringLessonNotDue(PreconditionFailedException):
    def __init__(self, recurring_id: int, next_lesson_date, as_of):
        super().__init__(
            message=(
                f"Recurring lesson {recurring_id} is not due until {next_lesson_date}"
            ),
            code="RECURRING_LESSON_NOT_DUE",
            details={
                "recurring_id": recurring_id,
                "next_lesson_date": str(next_lesson_date),
                "as_of": str(as_of),
            },
        )
