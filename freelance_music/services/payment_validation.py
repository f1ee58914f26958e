# freelance_music/services/payment_validation.py
"""
Checks for card and bank details entered by users.

Every function returns a ValidationResult and never raises, so callers can
run them before touching the database.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from freelance_music.schemas.payment import PaymentMethodCreate, ValidationResult

_NON_DIGITS = re.compile(r"[\s-]")
_ASCII_DIGITS = re.compile(r"[0-9]+")


def _ok() -> ValidationResult:
    return ValidationResult(valid=True)


def _fail(error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error)


def normalize_number(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_ascii_digits(value: str) -> bool:
    # str.isdigit() also accepts characters like "²" that int() rejects
    return _ASCII_DIGITS.fullmatch(value) is not None


def luhn_checksum_ok(digits: str) -> bool:
    total = 0
    for index, char in enumerate(reversed(digits)):
        n = int(char)
        if index % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def detect_card_brand(card_number: str) -> str:
    digits = normalize_number(card_number)
    if not is_ascii_digits(digits):
        return "unknown"
    if digits.startswith("4"):
        return "visa"
    if digits[:2] in {"34", "37"}:
        return "amex"
    if digits[:2] in {"51", "52", "53", "54", "55"} or (
        len(digits) >= 4 and 2221 <= int(digits[:4]) <= 2720
    ):
        return "mastercard"
    if digits.startswith("6011") or digits.startswith("65"):
        return "discover"
    return "unknown"


def validate_card_number(card_number: Optional[str]) -> ValidationResult:
    digits = normalize_number(card_number)
    if not digits:
        return _fail("Card number is required")
    if not is_ascii_digits(digits):
        return _fail("Card number must contain only digits")
    if not 13 <= len(digits) <= 19:
        return _fail("Card number must be between 13 and 19 digits")
    if not luhn_checksum_ok(digits):
        return _fail("Invalid card number")
    return _ok()


def validate_cvv(cvv: Optional[str], card_brand: str = "unknown") -> ValidationResult:
    cvv = (cvv or "").strip()
    expected = 4 if card_brand == "amex" else 3
    if not is_ascii_digits(cvv) or len(cvv) != expected:
        return _fail(f"CVV must be {expected} digits")
    return _ok()


def validate_expiry(
    month: Optional[int],
    year: Optional[int],
    *,
    today: Optional[date] = None,
) -> ValidationResult:
    if month is None or year is None:
        return _fail("Expiry month and year are required")
    if not 1 <= month <= 12:
        return _fail("Expiry month must be between 1 and 12")
    if year < 100:
        year += 2000
    today = today or date.today()
    # cards are valid through the end of the expiry month
    if (year, month) < (today.year, today.month):
        return _fail("Card has expired")
    return _ok()


def validate_routing_number(routing_number: Optional[str]) -> ValidationResult:
    digits = normalize_number(routing_number)
    if len(digits) != 9 or not is_ascii_digits(digits):
        return _fail("Routing number must be 9 digits")
    d = [int(c) for c in digits]
    checksum = (
        3 * (d[0] + d[3] + d[6])
        + 7 * (d[1] + d[4] + d[7])
        + (d[2] + d[5] + d[8])
    )
    if checksum % 10 != 0:
        return _fail("Invalid routing number")
    return _ok()


def validate_account_number(account_number: Optional[str]) -> ValidationResult:
    digits = normalize_number(account_number)
    if not is_ascii_digits(digits) or not 4 <= len(digits) <= 17:
        return _fail("Account number must be between 4 and 17 digits")
    return _ok()


def validate_credit_card(
    obj_in: PaymentMethodCreate,
    *,
    today: Optional[date] = None,
) -> ValidationResult:
    if not (obj_in.cardholder_name or "").strip():
        return _fail("Cardholder name is required")
    for result in (
        validate_card_number(obj_in.card_number),
        validate_expiry(obj_in.card_exp_month, obj_in.card_exp_year, today=today),
        validate_cvv(obj_in.card_cvv, detect_card_brand(obj_in.card_number or "")),
    ):
        if not result.valid:
            return result
    return _ok()


def validate_bank_account(obj_in: PaymentMethodCreate) -> ValidationResult:
    if not (obj_in.account_holder_name or "").strip():
        return _fail("Account holder name is required")
    if not (obj_in.bank_name or "").strip():
        return _fail("Bank name is required")
    for result in (
        validate_routing_number(obj_in.bank_routing_number),
        validate_account_number(obj_in.bank_account_number),
    ):
        if not result.valid:
            return result
    return _ok()


def validate_payment_method(
    obj_in: PaymentMethodCreate,
    *,
    today: Optional[date] = None,
) -> ValidationResult:
    if obj_in.method_type == "credit_card":
        return validate_credit_card(obj_in, today=today)
    return validate_bank_account(obj_in)
