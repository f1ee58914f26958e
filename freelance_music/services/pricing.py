# freelance_music/services/pricing.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

PLATFORM_FEE_RATE = Decimal("0.10")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class LessonPricing:
    total_cost: Decimal
    platform_fee: Decimal
    teacher_earnings: Decimal


def to_money(value) -> Decimal:
    """Quantize anything numeric to cents. ``None`` counts as zero."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def split_amount(amount) -> LessonPricing:
    """
    Split a charge into platform fee and teacher earnings.

    The fee is rounded to cents; earnings take the remainder so that
    fee + earnings always equals the amount exactly.
    """
    total = to_money(amount)
    fee = to_money(total * PLATFORM_FEE_RATE)
    return LessonPricing(
        total_cost=total,
        platform_fee=fee,
        teacher_earnings=total - fee,
    )


def compute_lesson_pricing(duration_minutes: int, hourly_rate) -> LessonPricing:
    rate = Decimal(str(hourly_rate))
    return split_amount(Decimal(duration_minutes) * rate / Decimal(60))
