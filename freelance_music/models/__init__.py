from freelance_music.models.user import User
from freelance_music.models.teacher import Teacher
from freelance_music.models.student import Student
from freelance_music.models.availability import AvailabilitySlot
from freelance_music.models.lesson import Lesson
from freelance_music.models.recurring_lesson import RecurringLesson
from freelance_music.models.payment_method import PaymentMethod
from freelance_music.models.payment import Payment

__all__ = [
    "User",
    "Teacher",
    "Student",
    "AvailabilitySlot",
    "Lesson",
    "RecurringLesson",
    "PaymentMethod",
    "Payment",
]
