# freelance_music/schemas/payment.py
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict


class ValidationResult(BaseModel):
    """Outcome of a payment-detail check. ``error`` is set when not valid."""
    valid: bool
    error: str | None = None


class PaymentMethodCreate(BaseModel):
    method_type: Literal["credit_card", "bank_account"]

    # credit_card
    card_number: str | None = None
    card_exp_month: int | None = None
    card_exp_year: int | None = None
    card_cvv: str | None = None
    cardholder_name: str | None = None

    # bank_account
    bank_name: str | None = None
    account_holder_name: str | None = None
    bank_routing_number: str | None = None
    bank_account_number: str | None = None

    is_primary: bool = False


class PaymentMethodPublic(BaseModel):
    id: int
    user_id: int
    method_type: str

    card_brand: str | None = None
    card_last_four: str | None = None
    card_exp_month: int | None = None
    card_exp_year: int | None = None
    cardholder_name: str | None = None

    bank_name: str | None = None
    account_holder_name: str | None = None
    routing_last_four: str | None = None
    account_last_four: str | None = None

    is_primary: bool
    is_verified: bool

    model_config = ConfigDict(from_attributes=True)


class PaymentPublic(BaseModel):
    id: int
    lesson_id: int | None = None
    recurring_lesson_id: int | None = None
    student_id: int
    teacher_id: int
    payment_method_id: int | None = None

    amount: Decimal
    platform_fee: Decimal
    teacher_earnings: Decimal

    transaction_id: str
    status: str
    payment_date: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RevenueSummary(BaseModel):
    total_revenue: Decimal
    platform_fees: Decimal
    teacher_earnings: Decimal
    payment_count: int
